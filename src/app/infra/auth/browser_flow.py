"""Fluxo de autorização via navegador do sistema.

Abre a URL de autorização e aguarda o deep link de retorno, entregue por
``deliver_callback`` (rota ``/oauth/exchange`` ou handler de deep link).
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from collections.abc import Callable

from app.protocols.auth_flow import AuthorizationFlowProtocol

logger = logging.getLogger(__name__)


class BrowserAuthorizationFlow(AuthorizationFlowProtocol):
    """Autorização interativa com um único callback pendente por vez."""

    def __init__(
        self,
        opener: Callable[[str], bool] | None = None,
        timeout_seconds: float = 300.0,
    ) -> None:
        self._opener = opener or webbrowser.open
        self._timeout_seconds = timeout_seconds
        self._pending: asyncio.Future[str | None] | None = None

    @property
    def is_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def authorize(self, auth_url: str, redirect_uri: str) -> str | None:
        if self.is_pending:
            msg = "Já existe uma autorização pendente"
            raise RuntimeError(msg)

        loop = asyncio.get_running_loop()
        self._pending = loop.create_future()
        opened = await asyncio.to_thread(self._opener, auth_url)
        logger.info(
            "auth_flow_opened",
            extra={"opened": bool(opened), "redirect_uri": redirect_uri},
        )
        try:
            return await asyncio.wait_for(self._pending, timeout=self._timeout_seconds)
        except TimeoutError:
            logger.warning("auth_flow_timeout", extra={"timeout_seconds": self._timeout_seconds})
            return None
        finally:
            self._pending = None

    def deliver_callback(self, url: str) -> bool:
        """Entrega a URL de callback ao fluxo pendente.

        Returns:
            True se havia um fluxo aguardando.
        """
        if not self.is_pending:
            logger.info("auth_flow_callback_without_pending")
            return False
        assert self._pending is not None
        self._pending.set_result(url)
        return True

    def cancel(self) -> None:
        if self.is_pending:
            assert self._pending is not None
            self._pending.set_result(None)
            logger.info("auth_flow_cancelled")
