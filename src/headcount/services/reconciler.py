"""Scheduled reconciliation of the user counter.

The synchronous write path keeps the counter exact; this worker only exists
to repair drift introduced by writes that bypassed it (manual SQL, restores).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from headcount.core.settings import settings
from headcount.services.counter import UNAVAILABLE_ERRORS, recalculate
from headcount.services.errors import HeadcountError

logger = logging.getLogger(__name__)


class ReconcileWorker:
    """Periodically recomputes ``user_stats`` from the ledger.

    Each run opens its own session and executes in a worker thread so the
    event loop is never blocked by the ledger scan.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        interval_seconds: float | None = None,
    ) -> None:
        if session_factory is None:
            from headcount.db.session import SessionLocal

            session_factory = SessionLocal
        self.session_factory = session_factory
        self.interval_seconds = (
            settings.reconcile_interval_seconds if interval_seconds is None else interval_seconds
        )
        self.runs = 0
        self.last_count: int | None = None
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background reconciliation loop."""

        if not self.enabled:
            return

        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())
            logger.info("Reconcile worker started (every %.1fs)", self.interval_seconds)

    async def stop(self) -> None:
        """Stop the background reconciliation loop."""

        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    def _recalculate(self) -> int:
        db = self.session_factory()
        try:
            return recalculate(db)
        finally:
            db.close()

    async def run_once(self) -> int:
        """Run a single reconciliation and return the recomputed count."""
        count = await asyncio.to_thread(self._recalculate)
        self.runs += 1
        self.last_count = count
        return count

    async def _run(self) -> None:
        interval = max(0.1, float(self.interval_seconds))

        while not self._stopping.is_set():
            try:
                await self.run_once()
            except UNAVAILABLE_ERRORS as e:
                logger.warning("Reconcile worker could not reach the database: %s", e)
            except HeadcountError as e:
                logger.error("Reconcile worker failed: %s", e)
            except SQLAlchemyError as e:
                logger.exception("Reconcile worker hit a database error: %s", e)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue
