"""Background worker purging soft-deleted campaigns past their recovery window."""
from __future__ import annotations

import threading
from typing import Callable

from sqlalchemy.orm import Session

from app.config import HOUSEKEEPING_SETTINGS
from app.database import SessionLocal
from app.services.campaign_lifecycle import purge_expired_deleted
from app.utils import get_logger, log_business_event
from app.utils.time import Clock, format_elapsed, utc_now

logger = get_logger(__name__)


class HousekeepingWorker:
    def __init__(
        self,
        *,
        interval_seconds: float | None = None,
        session_factory: Callable[[], Session] | None = None,
        clock: Clock = utc_now,
    ):
        self.interval_seconds = float(
            interval_seconds if interval_seconds is not None else HOUSEKEEPING_SETTINGS["interval_seconds"]
        )
        self.session_factory = session_factory
        self.clock = clock
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():  # pragma: no cover
            return
        self._thread = threading.Thread(target=self._loop, name="housekeeping-worker", daemon=True)
        self._thread.start()
        logger.info("Housekeeping worker started", interval_seconds=self.interval_seconds)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        logger.info("Housekeeping worker stop requested")
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():  # pragma: no cover - run_once still busy
                logger.warning("Housekeeping worker did not stop in time", timeout_seconds=timeout)
            self._thread = None

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.run_once()
            except Exception as e:  # pragma: no cover - next tick retries
                logger.error("Housekeeping run failed", error=str(e), exc_info=True)

    def run_once(self) -> int:
        # SessionLocal is looked up at call time so tests can rebind it
        factory = self.session_factory or SessionLocal
        started = utc_now()
        session = factory()
        try:
            purged = purge_expired_deleted(session, now=self.clock())
        finally:
            session.close()
        if purged:
            log_business_event(event_type="deleted_campaigns_purged", details={"count": purged})
        logger.info("Housekeeping run completed", purged=purged, elapsed=format_elapsed(started))
        return purged


__all__ = ["HousekeepingWorker"]
