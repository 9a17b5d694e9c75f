"""Fluxos interativos de autorização com o provider."""

from app.infra.auth.browser_flow import BrowserAuthorizationFlow

__all__ = ["BrowserAuthorizationFlow"]
