"""
Bounded, time-windowed ledger of per-request metric samples.
"""

import threading
import time
from collections import deque
from itertools import islice
from typing import Deque, List, Optional

from mloptimizer.utils.logger import get_logger

from .metric_sample import MetricSample


class MetricSampleStore:
    """Time-series sample store with a background retention sweep.

    Samples are appended in arrival order. ``recent`` and ``current_load`` walk
    the ledger from the newest end, so both stay proportional to the amount of
    data they return rather than to the size of the ledger.
    """

    def __init__(
        self,
        retention_hours: float = 24,
        sweep_interval: float = 60,
        max_samples: int = 100000,
        load_window: float = 60,
    ):
        self.retention_seconds = retention_hours * 3600
        self.sweep_interval = sweep_interval
        self.max_samples = max_samples
        self.load_window = load_window

        self._samples: Deque[MetricSample] = deque(maxlen=max_samples)
        self._error_count = 0
        self._total_recorded = 0

        # Threading
        self._sweep_thread: Optional[threading.Thread] = None
        self._stop_sweep = threading.Event()
        self._lock = threading.RLock()

        self.logger = get_logger(__name__)

    def record(self, sample: MetricSample) -> None:
        """Append a sample"""
        with self._lock:
            self._samples.append(sample)
            self._total_recorded += 1

    def record_error(self, sample: MetricSample) -> None:
        """Append a sample recorded after a handler failure"""
        with self._lock:
            self._samples.append(sample)
            self._total_recorded += 1
            self._error_count += 1

    def recent(self, n: int) -> List[MetricSample]:
        """Return the last ``n`` samples (or fewer) in insertion order"""
        if n <= 0:
            return []
        with self._lock:
            newest_first = list(islice(reversed(self._samples), n))
        newest_first.reverse()
        return newest_first

    def recent_for(self, key: str, n: int) -> List[MetricSample]:
        """Samples for one endpoint key among the last ``n`` samples"""
        return [s for s in self.recent(n) if s.endpoint_key == key]

    def current_load(self, now: Optional[float] = None) -> int:
        """Number of samples observed within the trailing load window"""
        now = time.time() if now is None else now
        count = 0
        with self._lock:
            for sample in reversed(self._samples):
                if now - sample.timestamp >= self.load_window:
                    break
                count += 1
        return count

    def sweep(self, now: Optional[float] = None) -> int:
        """Discard samples older than the retention horizon"""
        now = time.time() if now is None else now
        with self._lock:
            before = len(self._samples)
            self._samples = deque(
                (s for s in self._samples if now - s.timestamp <= self.retention_seconds),
                maxlen=self.max_samples,
            )
            removed = before - len(self._samples)

        if removed:
            self.logger.debug(f"Retention sweep removed {removed} samples")
        return removed

    def start(self):
        """Start the background retention sweep"""
        if self._sweep_thread is None or not self._sweep_thread.is_alive():
            self._stop_sweep.clear()
            self._sweep_thread = threading.Thread(
                target=self._sweep_loop, name="mloptimizer-sweep", daemon=True
            )
            self._sweep_thread.start()
            self.logger.info("Sample retention sweep started")

    def stop(self, timeout: float = 10):
        """Stop the background retention sweep"""
        if self._sweep_thread and self._sweep_thread.is_alive():
            self._stop_sweep.set()
            self._sweep_thread.join(timeout=timeout)
            self.logger.info("Sample retention sweep stopped")
        self._sweep_thread = None

    @property
    def is_running(self) -> bool:
        return self._sweep_thread is not None and self._sweep_thread.is_alive()

    def _sweep_loop(self):
        while not self._stop_sweep.wait(self.sweep_interval):
            try:
                self.sweep()
            except Exception as e:
                self.logger.error(f"Error in retention sweep: {e}")

    @property
    def error_count(self) -> int:
        with self._lock:
            return self._error_count

    @property
    def total_recorded(self) -> int:
        with self._lock:
            return self._total_recorded

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
