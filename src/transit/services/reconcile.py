"""Reconciliation sweep: persist ``completed`` for trips whose arrival has passed."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone, tzinfo

from pydantic import BaseModel

from transit.errors import StaleRecordError
from transit.models.trip import Trip, TripStatus
from transit.services.status import derive_status
from transit.store import RecordStore

logger = logging.getLogger(__name__)


class ReconcileResult(BaseModel):
    scanned: int = 0
    completed: int = 0
    conflicts: int = 0


def auto_complete(
    trips: list[Trip],
    now: datetime,
    *,
    delay_grace: timedelta | None = None,
    tz: tzinfo = timezone.utc,
) -> tuple[list[Trip], bool]:
    """Return the trips with finished ones flipped to ``completed``, and whether any changed.

    Cancelled and already-completed trips pass through untouched, which
    makes a second pass with the same ``now`` a no-op.
    """
    changed = False
    result: list[Trip] = []
    for trip in trips:
        if trip.status not in (TripStatus.COMPLETED, TripStatus.CANCELLED) and (
            derive_status(trip, now, delay_grace=delay_grace, tz=tz) == TripStatus.COMPLETED
        ):
            trip = trip.model_copy(update={"status": TripStatus.COMPLETED, "updated_at": now})
            changed = True
        result.append(trip)
    return result, changed


class Reconciler(ABC):
    @abstractmethod
    def reconcile(self, now: datetime | None = None) -> ReconcileResult: ...


class StoreReconciler(Reconciler):
    """Runs ``auto_complete`` over every stored trip and writes back only what changed.

    Each write is a compare-and-set on the status that was read, so a trip
    cancelled between the scan and the write is left alone.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        delay_grace: timedelta | None = None,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self._store = store
        self._delay_grace = delay_grace
        self._tz = tz

    def reconcile(self, now: datetime | None = None) -> ReconcileResult:
        now = now or datetime.now(timezone.utc)
        trips = [Trip.model_validate(record) for record in self._store.scan("trips")]
        reconciled, changed = auto_complete(trips, now, delay_grace=self._delay_grace, tz=self._tz)

        result = ReconcileResult(scanned=len(trips))
        if not changed:
            return result

        for before, after in zip(trips, reconciled):
            if after is before:
                continue
            try:
                self._store.put("trips", after.to_record(), expected={"status": before.status.value})
                result.completed += 1
            except StaleRecordError:
                result.conflicts += 1
                logger.info("Trip %s changed during reconciliation, skipping", before.id)

        logger.info(
            "Reconciled %d trips: %d completed, %d conflicts",
            result.scanned,
            result.completed,
            result.conflicts,
        )
        return result
