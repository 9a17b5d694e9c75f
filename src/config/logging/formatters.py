"""Formatters de logging estruturado.

Define o formatter JSON usado por todo o serviço de sincronização.
Todo log carrega os campos obrigatórios abaixo; campos adicionais
chegam via `extra` (ex: state, cursor_present, event_count).
"""

from __future__ import annotations

from pythonjsonlogger.json import JsonFormatter

# Campos obrigatórios em todo log estruturado
REQUIRED_LOG_FIELDS = (
    "asctime",
    "levelname",
    "name",
    "message",
    "correlation_id",
    "service",
)

# Mapeamento de nomes de campos para formato padrão
FIELD_RENAME_MAP = {
    "levelname": "level",
    "name": "logger",
}


def create_json_formatter() -> JsonFormatter:
    """Cria formatter JSON com campos padronizados.

    Returns:
        JsonFormatter configurado para logs estruturados.

    Exemplo de output:
        {
            "asctime": "2025-03-03T10:30:00",
            "level": "INFO",
            "logger": "app.sessions.sync_session",
            "message": "sync_poll_completed",
            "correlation_id": "5f0c...",
            "service": "calendar_sync",
            "event_count": 42
        }
    """
    format_string = " ".join(f"%({field})s" for field in REQUIRED_LOG_FIELDS)
    return JsonFormatter(format_string, rename_fields=FIELD_RENAME_MAP)
