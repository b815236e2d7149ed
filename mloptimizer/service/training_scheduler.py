"""
Periodic retraining of the predictor and baselines from the sample window.
"""

import threading
import time
from typing import Optional

from mloptimizer.core.predictor import PerformancePredictor
from mloptimizer.exceptions import TrainingError
from mloptimizer.monitoring.baseline_tracker import BaselineTracker
from mloptimizer.monitoring.sample_store import MetricSampleStore
from mloptimizer.utils.logger import get_logger


class TrainingScheduler:
    """Background training loop.

    Every ``interval`` seconds the most recent ``batch_size`` samples are
    pulled from the store, the predictor is retrained and the baselines are
    recomputed. A failing cycle is logged and the next cycle runs as usual.
    """

    def __init__(
        self,
        store: MetricSampleStore,
        predictor: PerformancePredictor,
        baselines: BaselineTracker,
        interval: float = 1800,
        batch_size: int = 10000,
    ):
        self.store = store
        self.predictor = predictor
        self.baselines = baselines
        self.interval = interval
        self.batch_size = batch_size

        self.cycles = 0
        self.failures = 0
        self.last_trained: Optional[float] = None

        # Threading
        self._training_thread: Optional[threading.Thread] = None
        self._stop_training = threading.Event()

        self.logger = get_logger(__name__)

    def run_once(self) -> int:
        """Run one training cycle; returns the number of samples used"""
        batch = self.store.recent(self.batch_size)
        if not batch:
            self.logger.debug("Skipping training cycle: no samples")
            return 0

        started = time.perf_counter()
        try:
            endpoints = self.predictor.train(batch)
        except Exception as e:
            raise TrainingError("predictor", cause=e) from e

        try:
            self.baselines.recompute(batch)
        except Exception as e:
            raise TrainingError("baselines", cause=e) from e

        self.cycles += 1
        self.last_trained = time.time()
        self.logger.info(
            f"Training cycle completed: {len(batch)} samples, "
            f"{endpoints} endpoints in {(time.perf_counter() - started) * 1000:.1f}ms"
        )
        return len(batch)

    def start(self):
        """Start the background training loop"""
        if self._training_thread is None or not self._training_thread.is_alive():
            self._stop_training.clear()
            self._training_thread = threading.Thread(
                target=self._training_loop, name="mloptimizer-training", daemon=True
            )
            self._training_thread.start()
            self.logger.info(f"Training scheduler started (every {self.interval:.0f}s)")

    def stop(self, timeout: float = 10):
        """Stop the background training loop"""
        if self._training_thread and self._training_thread.is_alive():
            self._stop_training.set()
            self._training_thread.join(timeout=timeout)
            self.logger.info("Training scheduler stopped")
        self._training_thread = None

    @property
    def is_running(self) -> bool:
        return self._training_thread is not None and self._training_thread.is_alive()

    def _training_loop(self):
        while not self._stop_training.wait(self.interval):
            try:
                self.run_once()
            except TrainingError as e:
                self.failures += 1
                self.logger.error(str(e))
            except Exception as e:
                self.failures += 1
                self.logger.error(f"Unexpected error in training loop: {e}")
