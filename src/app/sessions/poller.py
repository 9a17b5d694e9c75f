"""Tarefa periódica cancelável que dispara os polls da sessão.

Criada ao entrar em CONNECTED e cancelada exatamente uma vez em qualquer
saída. Falhas de um tick são logadas e não interrompem o laço.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class Poller:
    """Executa ``tick`` a cada ``interval_seconds`` numa asyncio.Task."""

    def __init__(
        self,
        tick: Callable[[], Awaitable[object]],
        interval_seconds: float,
        *,
        name: str = "sync-poller",
        immediate: bool = True,
    ) -> None:
        if interval_seconds <= 0:
            msg = "interval_seconds deve ser > 0"
            raise ValueError(msg)
        self._tick = tick
        self._interval = interval_seconds
        self._name = name
        self._immediate = immediate
        self._task: asyncio.Task[None] | None = None
        self.cancellations = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def start(self) -> bool:
        """Cria a task se ainda não estiver rodando."""
        if self.running:
            return False
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)
        logger.debug("poller_started", extra={"interval_seconds": self._interval})
        return True

    def stop(self) -> bool:
        """Cancela a task; chamadas repetidas não fazem nada."""
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        self.cancellations += 1
        logger.debug("poller_stopped")
        return True

    async def _run(self) -> None:
        if not self._immediate:
            await asyncio.sleep(self._interval)
        while True:
            try:
                await self._tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("poller_tick_failed")
            await asyncio.sleep(self._interval)
