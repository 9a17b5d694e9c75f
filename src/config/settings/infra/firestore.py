"""Settings do Firestore.

Store compartilhado onde cada usuário publica o espelho do seu calendário.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class FirestoreSettings:
    """Configurações do Firestore.

    Attributes:
        project_id: ID do projeto GCP (usa GCP_PROJECT se não definido)
        collection_users: Collection de perfis (listas de compartilhamento)
        collection_calendar_events: Collection dos documentos espelhados
    """

    project_id: str = ""
    collection_users: str = "users"
    collection_calendar_events: str = "calendar_events"

    def validate(self, gcp_project: str) -> list[str]:
        """Valida configurações do Firestore.

        Args:
            gcp_project: Projeto GCP padrão para fallback.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if not (self.project_id or gcp_project):
            errors.append("FIRESTORE_PROJECT_ID ou GCP_PROJECT deve estar configurado")

        if self.collection_users == self.collection_calendar_events:
            errors.append("Collections de users e calendar_events devem ser distintas")

        return errors


def _load_firestore_from_env() -> FirestoreSettings:
    """Carrega FirestoreSettings de variáveis de ambiente."""
    return FirestoreSettings(
        project_id=os.getenv("FIRESTORE_PROJECT_ID", ""),
        collection_users=os.getenv("FIRESTORE_COLLECTION_USERS", "users"),
        collection_calendar_events=os.getenv(
            "FIRESTORE_COLLECTION_CALENDAR_EVENTS", "calendar_events"
        ),
    )


@lru_cache(maxsize=1)
def get_firestore_settings() -> FirestoreSettings:
    """Retorna instância cacheada de FirestoreSettings."""
    return _load_firestore_from_env()
