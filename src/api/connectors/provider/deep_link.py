"""Parser do deep link de retorno da autorização.

Aceita apenas ``<scheme>://oauth/exchange?code=...`` (ou path ``/exchange``
em URL http da rota de callback).
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

EXCHANGE_PATH = "exchange"


def extract_exchange_code(url: str) -> str | None:
    """Extrai ``code`` do callback; None se o path ou o código forem inválidos."""
    if not url:
        return None
    parts = urlsplit(url.strip())
    segments = [segment for segment in f"{parts.netloc}/{parts.path}".split("/") if segment]
    if not segments or segments[-1] != EXCHANGE_PATH:
        return None
    codes = parse_qs(parts.query).get("code") or []
    code = codes[0].strip() if codes else ""
    return code or None
