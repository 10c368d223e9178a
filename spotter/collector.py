"""
Result sink shared by all workers, and the aggregation done after the
barrier.

The sink is sized to exactly clients * requests outcomes. Writers use
put_nowait, so as long as that invariant holds no writer ever blocks; if
it is broken the overflow raises queue.Full instead of silently stalling
or dropping results.
"""

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Dict, List

from spotter.exceptions import CollectorClosedError
from spotter.worker import Category, Outcome

logger = logging.getLogger(__name__)


@dataclass
class CategorizedBodies:
    net: List[str] = field(default_factory=list)
    bad: List[str] = field(default_factory=list)
    succ: List[str] = field(default_factory=list)

    def add(self, outcome: Outcome) -> None:
        if outcome.category is Category.NETWORK:
            self.net.append(outcome.payload)
        elif outcome.category is Category.BAD:
            self.bad.append(outcome.payload)
        elif outcome.category is Category.SUCCESS:
            self.succ.append(outcome.payload)
        else:
            raise ValueError(f"unknown outcome category: {outcome.category!r}")

    def to_json(self) -> Dict[str, List[str]]:
        return {"Net": list(self.net), "Bad": list(self.bad), "Succ": list(self.succ)}


@dataclass(frozen=True)
class AggregateReport:
    total: int
    success: int
    network_failed: int
    bad_failed: int
    elapsed: float

    @property
    def requests_per_second(self) -> float:
        if self.elapsed <= 0:
            return 0.0
        return self.total / self.elapsed


class ResultCollector:
    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._queue: "queue.Queue[Outcome]" = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, outcome: Outcome) -> None:
        if self._closed.is_set():
            raise CollectorClosedError("result sink is closed")
        self._queue.put_nowait(outcome)

    def close(self) -> None:
        self._closed.set()

    def drain(self) -> CategorizedBodies:
        """Read every queued outcome exactly once, in enqueue order."""
        if not self._closed.is_set():
            raise CollectorClosedError("result sink must be closed before draining")
        if self._drained:
            raise CollectorClosedError("result sink was already drained")
        self._drained = True

        bodies = CategorizedBodies()
        while True:
            try:
                outcome = self._queue.get_nowait()
            except queue.Empty:
                break
            bodies.add(outcome)
        logger.debug(f"Drained {len(bodies.net) + len(bodies.bad) + len(bodies.succ)} outcomes")
        return bodies


def aggregate(bodies: CategorizedBodies, elapsed: float) -> AggregateReport:
    success = len(bodies.succ)
    network_failed = len(bodies.net)
    bad_failed = len(bodies.bad)
    return AggregateReport(
        total=success + network_failed + bad_failed,
        success=success,
        network_failed=network_failed,
        bad_failed=bad_failed,
        elapsed=elapsed,
    )
