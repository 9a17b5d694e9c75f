"""Modelos de domínio para eventos de calendário.

O campo ``when`` guarda a representação crua do provider para que o
espelho remoto receba exatamente o que foi sincronizado. A forma canônica
(exatamente uma variante: ``TimedWhen`` ou ``AllDayWhen``) é exposta por
``Event.canonical_when`` e calculada uma única vez por timezone de
exibição. ``when`` ausente ou inválido degrada para ``NormalizationError``:
o evento continua na coleção e os rótulos mostram os sentinelas de erro.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, tzinfo
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from app.domain.event_time import AllDayWhen, NormalizationError, TimedWhen

ParticipantStatus = Literal["yes", "no", "maybe", "pending"]


class Participant(BaseModel):
    """Participante de um evento."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="", description="Nome exibido do participante.")
    email: str = Field(default="", description="Email do participante.")
    status: ParticipantStatus = Field(
        default="pending",
        description="Resposta ao convite.",
    )

    @field_validator("name", "email", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> str:
        """Status desconhecidos do provider (ex.: noreply) viram pending."""
        if isinstance(value, str) and value.lower() in {"yes", "no", "maybe", "pending"}:
            return value.lower()
        return "pending"


class Event(BaseModel):
    """Evento de calendário identificado por ``id``.

    ``deleted=True`` marca um tombstone: nunca aparece em coleção exibida e
    não permanece na coleção local após o ciclo de merge que o entregou.
    Imutável, para que a forma canônica de ``when`` possa ser reaproveitada.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    _canonical: dict[str, TimedWhen | AllDayWhen | NormalizationError] = PrivateAttr(
        default_factory=dict
    )

    id: str = Field(..., min_length=1, description="Chave única do evento.")
    title: str = Field(default="", description="Título do evento.")
    location: str | None = Field(default=None, description="Local do evento.")
    description: str | None = Field(default=None, description="Descrição livre.")
    when: dict[str, Any] = Field(
        default_factory=dict,
        description="Representação de horário crua do provider.",
    )
    participants: list[Participant] = Field(default_factory=list)
    deleted: bool = Field(default=False, description="Tombstone.")

    @field_validator("title", mode="before")
    @classmethod
    def _title_none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("when", mode="before")
    @classmethod
    def _when_none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("participants", mode="before")
    @classmethod
    def _participants_none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def canonical_when(
        self,
        zone: tzinfo | None = None,
    ) -> TimedWhen | AllDayWhen | NormalizationError:
        """Variante canônica de ``when`` exibida em ``zone`` (default: local).

        Calculada na primeira chamada para cada timezone e reaproveitada.
        """
        from app.services.time_normalizer import normalize, system_local_zone

        local_zone = zone or system_local_zone()
        key = repr(local_zone)
        cached = self._canonical.get(key)
        if cached is None:
            cached = normalize(self.when, local_zone)
            self._canonical[key] = cached
        return cached

    def __eq__(self, other: object) -> bool:
        """Igualdade pelos campos; o cache de ``when`` canônico não conta."""
        if not isinstance(other, Event):
            return NotImplemented
        return self.model_dump() == other.model_dump()

    @property
    def has_valid_when(self) -> bool:
        """Indica se ``when`` resolve para exatamente uma variante canônica."""
        return not isinstance(self.canonical_when(UTC), NormalizationError)

    def to_mirror_dict(self) -> dict[str, Any]:
        """Serializa o evento para o documento espelhado (sem tombstone)."""
        return self.model_dump(exclude={"deleted"}, exclude_none=True)


EventCollection = dict[str, Event]


@dataclass(frozen=True, slots=True)
class FullSnapshot:
    """Resultado de fetch sem cursor: substitui a coleção inteira."""

    events: tuple[Event, ...] = ()
    sync_token: str | None = None


@dataclass(frozen=True, slots=True)
class Delta:
    """Resultado incremental: patches aplicados por id, em ordem."""

    events: tuple[Event, ...] = ()
    sync_token: str | None = None


FetchResult = FullSnapshot | Delta


@dataclass(frozen=True, slots=True)
class MergeStats:
    """Contadores de um ciclo de merge (usados em logs)."""

    created: int = 0
    updated: int = 0
    deleted: int = 0
    noop: int = 0
    invalid_when: int = 0
    replaced: bool = False
    total: int = 0

    def to_log_dict(self) -> dict[str, Any]:
        return {
            "created": self.created,
            "updated": self.updated,
            "deleted": self.deleted,
            "noop": self.noop,
            "invalid_when": self.invalid_when,
            "replaced": self.replaced,
            "total": self.total,
        }


@dataclass(frozen=True, slots=True)
class EventDraft:
    """Dados para criação de um evento no provider."""

    title: str
    start_time: str
    end_time: str
    participants: tuple[Participant, ...] = field(default_factory=tuple)
    location: str | None = None
    description: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Monta o corpo JSON de ``POST /nylas/create-event``."""
        payload: dict[str, Any] = {
            "title": self.title,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }
        if self.participants:
            payload["participants"] = [p.model_dump() for p in self.participants]
        if self.location:
            payload["location"] = self.location
        if self.description:
            payload["description"] = self.description
        return payload


__all__ = [
    "Delta",
    "Event",
    "EventCollection",
    "EventDraft",
    "FetchResult",
    "FullSnapshot",
    "MergeStats",
    "Participant",
    "ParticipantStatus",
]
