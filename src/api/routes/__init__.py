"""Rotas HTTP da API.

Responsabilidades:
- Endpoints de sincronização, eventos e compartilhamento
- Validação inicial de request (body, path params)
- Delegação para SyncSession/MirrorPublisher/SharedViewAggregator
- Conversão de erros de domínio em respostas HTTP

Estrutura:
- routes/calendar/: sync, eventos e compartilhamentos
- routes/health/: health checks e readiness

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
