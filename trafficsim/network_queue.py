"""Single-server FIFO queue fed by the aggregate traffic.

Every packet takes a deterministic ``1 / service_rate`` seconds of service.
The buffer is unbounded, so nothing is ever dropped; the waiting and sojourn
times grow with the burstiness of the arrivals instead.

Service is evaluated lazily: the simulator enqueues packets at sample
instants and calls :meth:`NetworkQueue.process_until` to move the server
forward in time.
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional

from trafficsim.parameters import ConfigurationError


@dataclass
class QueueElement:
    """One packet in the queue.  Unset timestamps are ``None``."""

    arrival_time: float
    service_start_time: Optional[float] = None
    departure_time: Optional[float] = None

    @property
    def waiting_time(self) -> float:
        if self.service_start_time is None:
            return 0.0
        return self.service_start_time - self.arrival_time

    @property
    def system_time(self) -> float:
        if self.departure_time is None:
            return 0.0
        return self.departure_time - self.arrival_time


class NetworkQueue:
    """Deterministic single-server queue with an unbounded FIFO buffer.

    The server starts the head packet at
    ``max(arrival_time, last_processed_time, server_busy_until)`` and
    releases it one service time later.  Packets are served strictly in arrival order.

    Parameters
    ----------
    service_rate : float
        Packets served per second (> 0).
    """

    def __init__(self, service_rate: float) -> None:
        if service_rate <= 0:
            raise ConfigurationError("service_rate must be > 0")
        self.service_rate = service_rate
        self.service_time = 1.0 / service_rate

        self._queue: Deque[QueueElement] = deque()
        self.server_busy_until: float = 0.0
        self.last_processed_time: float = 0.0

        self.total_arrived: int = 0
        self.total_served: int = 0
        self.total_dropped: int = 0
        self._total_waiting_time: float = 0.0
        self._total_system_time: float = 0.0

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def enqueue(self, time: float) -> None:
        self.enqueue_bulk(time, 1)

    def enqueue_bulk(self, time: float, count: int) -> None:
        """Append *count* packets arriving at *time*; no-op for ``count <= 0``."""
        if count <= 0:
            return
        self._queue.extend(QueueElement(time) for _ in range(count))
        self.total_arrived += count

    def process_until(self, time: float) -> None:
        """Serve every packet whose departure falls at or before *time*.

        The head packet is assigned its service slot as soon as the server
        reaches it, even if it only departs after *time*; its waiting time is
        accounted at that moment.
        """
        if time <= self.last_processed_time:
            return

        while self._queue:
            head = self._queue[0]
            if head.service_start_time is None:
                start = max(
                    head.arrival_time, self.last_processed_time, self.server_busy_until
                )
                head.service_start_time = start
                head.departure_time = start + self.service_time
                self.server_busy_until = head.departure_time
                self._total_waiting_time += head.waiting_time

            if head.departure_time > time:
                break

            self._queue.popleft()
            self._total_system_time += head.system_time
            self.total_served += 1

        self.last_processed_time = time

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    @property
    def avg_waiting_time(self) -> float:
        if self.total_served == 0:
            return 0.0
        return self._total_waiting_time / self.total_served

    @property
    def avg_system_time(self) -> float:
        if self.total_served == 0:
            return 0.0
        return self._total_system_time / self.total_served

    def metrics(self) -> Dict[str, float]:
        """Snapshot of the queue counters for reports and summaries."""
        return {
            "service_rate": self.service_rate,
            "total_arrived": self.total_arrived,
            "total_served": self.total_served,
            "total_dropped": self.total_dropped,
            "queue_length": self.queue_length,
            "avg_waiting_time": self.avg_waiting_time,
            "avg_system_time": self.avg_system_time,
        }

    def __repr__(self) -> str:
        return (
            f"NetworkQueue(mu={self.service_rate:.3f}, len={self.queue_length}, "
            f"served={self.total_served}/{self.total_arrived})"
        )
