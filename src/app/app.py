"""Entrypoint do serviço de sincronização de calendário.

Inicializa o bootstrap, monta o runtime (sessão local + visão
compartilhada) e expõe a aplicação ASGI (FastAPI).

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.routes import create_api_router
from app.bootstrap import initialize_app, validate_runtime_settings
from app.bootstrap.clients import create_async_redis_client, create_firestore_client
from app.bootstrap.dependencies import create_calendar_runtime
from app.observability import correlation_scope, generate_correlation_id
from config.logging import get_logger
from config.settings import get_base_settings, get_sync_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from starlette.responses import Response

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-Id"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações
    - Cria clientes dos backends configurados
    - Monta e inicia o runtime (restaura token, abre listeners)

    Shutdown:
    - Para poller e listeners
    - Fecha conexão Redis
    """
    service = get_base_settings().service_name
    logger.info("app_starting", extra={"service": service})
    validate_runtime_settings()
    sync_settings = get_sync_settings()
    app.state.redis_client = None
    app.state.firestore_client = None

    if sync_settings.token_store_backend == "redis":
        try:
            app.state.redis_client = create_async_redis_client()
        except ValueError as exc:
            logger.warning("redis_client_not_ready", extra={"error_type": type(exc).__name__})

    if sync_settings.shared_store_backend == "firestore":
        try:
            app.state.firestore_client = create_firestore_client()
        except Exception as exc:
            logger.warning("firestore_client_not_ready", extra={"error_type": type(exc).__name__})

    runtime = create_calendar_runtime(sync_settings)
    app.state.runtime = runtime
    await runtime.start()

    yield

    logger.info("app_shutting_down", extra={"service": service})
    await runtime.stop()
    app.state.runtime = None
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is not None:
        await redis_client.aclose()


async def correlation_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Propaga (ou gera) o correlation_id de cada request."""
    correlation_id = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
    with correlation_scope(correlation_id):
        response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


def create_app() -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Returns:
        Aplicação FastAPI configurada.
    """
    fastapi_app = FastAPI(
        title="Calendar Sync",
        description="Sincronização incremental de calendário com espelho compartilhado",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    fastapi_app.middleware("http")(correlation_middleware)

    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": get_base_settings().service_name})

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("app_dev_server_starting")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()
