"""Worker que ejecuta el barrido de expiración de ofertas de forma periódica."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from uuid import uuid4

from farmout_dispatch.application.dtos import SweepReport

logger = logging.getLogger(__name__)


class ExpirySweepWorker:
    """
    Worker de polling para el barrido de expiración.

    Cada ciclo abre su propia unidad de trabajo a través de `run_sweep`, de
    modo que una falla en un ciclo no afecta al siguiente. Varios workers
    pueden correr a la vez: la resolución condicional de la oferta garantiza
    que cada expiración se aplica una sola vez.
    """

    def __init__(
        self,
        run_sweep: Callable[[], Awaitable[SweepReport]],
        worker_id: str | None = None,
        poll_interval_seconds: float = 60.0,
    ) -> None:
        """
        Args:
            run_sweep: Función async que ejecuta un barrido completo.
            worker_id: Identificador del worker (auto-generado si no se provee).
            poll_interval_seconds: Intervalo entre barridos en segundos.
        """
        self._run_sweep = run_sweep
        self._worker_id = worker_id or f"expiry-{uuid4().hex[:8]}"
        self._poll_interval = poll_interval_seconds
        self._running = False

    @property
    def worker_id(self) -> str:
        return self._worker_id

    @property
    def is_running(self) -> bool:
        """Verifica si el worker está corriendo."""
        return self._running

    async def run_once(self) -> SweepReport:
        report = await self._run_sweep()
        if report.expired_count or report.skipped_offer_ids or report.pending_requeue_results:
            logger.info(
                "Expiry sweep finished",
                extra={
                    "worker_id": self._worker_id,
                    "expired": report.expired_count,
                    "skipped": len(report.skipped_offer_ids),
                    "requeued": len(report.requeue_results),
                    "pending_requeued": len(report.pending_requeue_results),
                },
            )
        return report

    async def start(self) -> None:
        """Inicia el worker en modo polling."""
        self._running = True
        logger.info(f"ExpirySweepWorker {self._worker_id} iniciado")

        while self._running:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                self._running = False
                raise
            except Exception as e:
                logger.exception(f"Error en ciclo del worker: {e}")
            await asyncio.sleep(self._poll_interval)

    async def stop(self) -> None:
        """Detiene el worker de forma graceful."""
        self._running = False
        logger.info(f"ExpirySweepWorker {self._worker_id} detenido")
