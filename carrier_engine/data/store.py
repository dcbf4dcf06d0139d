"""
In-memory carrier directory, load board and scorecard ledger.

Stands in for the relational store: enforces the unique
(carrier_id, period) constraint on scorecards and gives tier overrides an
all-or-nothing transaction with their audit record.
"""

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Optional

import structlog

from carrier_engine.core.errors import ConflictError, NotFoundError
from carrier_engine.data.models.carrier import CarrierProfile, CarrierStatus, TierTransition
from carrier_engine.data.models.load import Load
from carrier_engine.data.models.scorecard import Scorecard


class CarrierStore:
    """
    Thread-safe in-memory store.

    Reads hand out copies, so callers work on a snapshot and must write
    changes back through update_carrier().
    """

    def __init__(self, logger: Optional[structlog.BoundLogger] = None) -> None:
        self.logger = logger or structlog.get_logger(component="store")
        self._lock = threading.RLock()
        self._carriers: dict[str, CarrierProfile] = {}
        self._loads: dict[str, Load] = {}
        self._scorecards: dict[tuple[str, str], Scorecard] = {}
        self._transitions: list[TierTransition] = []

    # Carriers

    def add_carrier(self, profile: CarrierProfile) -> CarrierProfile:
        with self._lock:
            if profile.carrier_id in self._carriers:
                raise ConflictError(
                    f"Carrier {profile.carrier_id} already exists",
                    details={"carrier_id": profile.carrier_id},
                )
            self._carriers[profile.carrier_id] = profile.model_copy(deep=True)
        return profile

    def get_carrier(self, carrier_id: str) -> CarrierProfile:
        """
        Fetch a carrier profile.

        Raises:
            NotFoundError: If no carrier has this id
        """
        with self._lock:
            profile = self._carriers.get(carrier_id)
            if profile is None:
                raise NotFoundError(f"Carrier {carrier_id} not found", details={"carrier_id": carrier_id})
            return profile.model_copy(deep=True)

    def update_carrier(self, profile: CarrierProfile) -> None:
        with self._lock:
            if profile.carrier_id not in self._carriers:
                raise NotFoundError(
                    f"Carrier {profile.carrier_id} not found", details={"carrier_id": profile.carrier_id}
                )
            self._carriers[profile.carrier_id] = profile.model_copy(deep=True)

    def list_carriers(
        self, predicate: Optional[Callable[[CarrierProfile], bool]] = None
    ) -> list[CarrierProfile]:
        """Carriers in insertion order, optionally filtered."""
        with self._lock:
            profiles = [p.model_copy(deep=True) for p in self._carriers.values()]
        if predicate is None:
            return profiles
        return [p for p in profiles if predicate(p)]

    def deactivate_carrier(self, carrier_id: str) -> CarrierProfile:
        with self._lock:
            profile = self.get_carrier(carrier_id)
            profile.status = CarrierStatus.DEACTIVATED
            self.update_carrier(profile)
        self.logger.info("carrier_deactivated", carrier_id=carrier_id)
        return profile

    # Loads

    def add_load(self, load: Load) -> Load:
        with self._lock:
            self._loads[load.load_id] = load.model_copy(deep=True)
        return load

    def get_load(self, load_id: str) -> Load:
        """
        Fetch a load.

        Raises:
            NotFoundError: If no load has this id
        """
        with self._lock:
            load = self._loads.get(load_id)
            if load is None:
                raise NotFoundError(f"Load {load_id} not found", details={"load_id": load_id})
            return load.model_copy(deep=True)

    # Scorecards

    def find_scorecard(self, carrier_id: str, period: str) -> Optional[Scorecard]:
        with self._lock:
            return self._scorecards.get((carrier_id, period))

    def insert_scorecard(self, scorecard: Scorecard) -> Scorecard:
        """
        Append a scorecard.

        Raises:
            ConflictError: If the (carrier_id, period) pair is already taken
        """
        key = (scorecard.carrier_id, scorecard.period)
        with self._lock:
            if key in self._scorecards:
                raise ConflictError(
                    f"Scorecard for carrier {scorecard.carrier_id} period {scorecard.period} already exists",
                    details={"carrier_id": scorecard.carrier_id, "period": scorecard.period},
                )
            self._scorecards[key] = scorecard
        return scorecard

    def scorecards_for(self, carrier_id: str) -> list[Scorecard]:
        """Scorecard history, oldest first."""
        with self._lock:
            history = [s for (cid, _), s in self._scorecards.items() if cid == carrier_id]
        return sorted(history, key=lambda s: s.calculated_at)

    def latest_scorecard(self, carrier_id: str) -> Optional[Scorecard]:
        history = self.scorecards_for(carrier_id)
        return history[-1] if history else None

    # Audit

    def record_transition(self, transition: TierTransition) -> None:
        with self._lock:
            self._transitions.append(transition)

    def transitions_for(self, carrier_id: str) -> list[TierTransition]:
        with self._lock:
            return [t for t in self._transitions if t.carrier_id == carrier_id]

    @contextmanager
    def transaction(self) -> Iterator["CarrierStore"]:
        """
        All-or-nothing block over carriers and the audit log.

        Holds the store lock for the whole block and restores both on error.
        """
        with self._lock:
            carriers = dict(self._carriers)
            transitions = list(self._transitions)
            try:
                yield self
            except Exception:
                self._carriers = carriers
                self._transitions = transitions
                self.logger.warning("transaction_rolled_back")
                raise
