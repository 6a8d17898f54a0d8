"""
Benchmark timers.

Two independent accumulators measure the same span: HostTimer observes
wall-clock time on the CPU, DeviceTimer records CUDA events on the current
stream. BenchmarkMeter pairs them and applies the warm-up policy: batches
whose index is at or below the warm-up index are never timed.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional, Tuple

from trtdetect.errors import TimerStateError
from trtdetect.models.config import DEFAULT_WARMUP_INDEX

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class Timer(ABC):
    """
    Start/stop accumulator.

    idle --start()--> running --stop()--> idle (adds the elapsed span)

    Starting a running timer or stopping an idle one raises TimerStateError.
    """

    def __init__(self):
        self._state = TimerState.IDLE
        self._total_ms = 0.0
        self._count = 0

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def count(self) -> int:
        """Number of completed start/stop spans."""
        return self._count

    def milliseconds(self) -> float:
        """Accumulated time of all completed spans."""
        return self._total_ms

    def start(self) -> None:
        if self._state is TimerState.RUNNING:
            raise TimerStateError(f"{self.__class__.__name__} started while already running")
        self._mark_start()
        self._state = TimerState.RUNNING

    def stop(self) -> float:
        """Stop the timer and return the elapsed span in milliseconds."""
        if self._state is TimerState.IDLE:
            raise TimerStateError(f"{self.__class__.__name__} stopped while idle")
        elapsed = self._mark_stop()
        self._state = TimerState.IDLE
        self._total_ms += elapsed
        self._count += 1
        return elapsed

    def reset(self) -> None:
        self._state = TimerState.IDLE
        self._total_ms = 0.0
        self._count = 0

    @abstractmethod
    def _mark_start(self) -> None:
        pass

    @abstractmethod
    def _mark_stop(self) -> float:
        """Return milliseconds since the matching _mark_start."""
        pass


class HostTimer(Timer):
    """Wall-clock timer based on time.perf_counter."""

    def __init__(self):
        super().__init__()
        self._t0 = 0.0

    def _mark_start(self) -> None:
        self._t0 = time.perf_counter()

    def _mark_stop(self) -> float:
        return (time.perf_counter() - self._t0) * 1000.0


class DeviceTimer(Timer):
    """
    CUDA event timer.

    Events are recorded on `stream` (the current stream when None); stop()
    waits for the end event, so the span covers all work queued in between.
    """

    def __init__(self, stream: Optional[Any] = None):
        super().__init__()
        try:
            import torch  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "PyTorch is required for device timing. Install with `pip install torch`."
            ) from e
        if not torch.cuda.is_available():
            raise RuntimeError("CUDA is not available; device timing needs a GPU")

        self._torch = torch
        self._stream = stream
        self._start_event = None

    def _mark_start(self) -> None:
        self._start_event = self._torch.cuda.Event(enable_timing=True)
        self._start_event.record(self._stream)

    def _mark_stop(self) -> float:
        end_event = self._torch.cuda.Event(enable_timing=True)
        end_event.record(self._stream)
        end_event.synchronize()
        return float(self._start_event.elapsed_time(end_event))


class BenchmarkMeter:
    """
    Warm-up aware host/device timer pair.

    Example:
        meter = BenchmarkMeter(HostTimer(), DeviceTimer(), warmup_index=5)
        for index, batch in enumerate(batches):
            with meter.measure(index):
                detector.predict(batch)
        averages = meter.averages()
    """

    def __init__(
        self,
        host_timer: Timer,
        device_timer: Timer,
        warmup_index: int = DEFAULT_WARMUP_INDEX,
    ):
        if warmup_index < 0:
            raise ValueError("warmup_index must be non-negative")
        self.host_timer = host_timer
        self.device_timer = device_timer
        self.warmup_index = warmup_index
        self._count = 0

    @classmethod
    def create(cls, warmup_index: int = DEFAULT_WARMUP_INDEX, stream: Optional[Any] = None) -> "BenchmarkMeter":
        """Build a meter over a HostTimer and a CUDA DeviceTimer."""
        return cls(HostTimer(), DeviceTimer(stream), warmup_index=warmup_index)

    @property
    def count(self) -> int:
        """Number of batches accumulated into the totals."""
        return self._count

    def is_measured(self, batch_index: int) -> bool:
        return batch_index > self.warmup_index

    @contextmanager
    def measure(self, batch_index: int) -> Iterator[None]:
        """
        Time the enclosed block for batches after the warm-up index.

        The timers are left running if the block raises; the run is aborted
        in that case and the totals are never reported.
        """
        if not self.is_measured(batch_index):
            yield
            return

        self.host_timer.start()
        self.device_timer.start()
        yield
        device_ms = self.device_timer.stop()
        host_ms = self.host_timer.stop()
        self._count += 1
        logger.debug(f"Batch {batch_index}: host={host_ms:.3f} ms device={device_ms:.3f} ms")

    def averages(self) -> Optional[Tuple[float, float]]:
        """Return (host_ms, device_ms) per measured batch, or None if nothing was measured."""
        if self._count == 0:
            return None
        return (
            self.host_timer.milliseconds() / self._count,
            self.device_timer.milliseconds() / self._count,
        )
