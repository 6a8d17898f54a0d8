"""
Tests for benchmark timers and the warm-up policy.
"""

from unittest.mock import patch

import pytest

from trtdetect.errors import TimerStateError
from trtdetect.ops.timing import BenchmarkMeter, DeviceTimer, HostTimer, TimerState

from conftest import StubTimer


def _cuda_available() -> bool:
    try:
        import torch
    except ImportError:
        return False
    return torch.cuda.is_available()


class TestTimerStateMachine:
    def test_start_stop_accumulates(self):
        timer = StubTimer([2.5, 1.5])
        assert timer.state is TimerState.IDLE
        timer.start()
        assert timer.state is TimerState.RUNNING
        assert timer.stop() == 2.5
        timer.start()
        timer.stop()
        assert timer.state is TimerState.IDLE
        assert timer.milliseconds() == 4.0
        assert timer.count == 2

    def test_double_start(self):
        timer = StubTimer()
        timer.start()
        with pytest.raises(TimerStateError):
            timer.start()

    def test_stop_while_idle(self):
        with pytest.raises(TimerStateError):
            StubTimer().stop()

    def test_double_stop(self):
        timer = StubTimer()
        timer.start()
        timer.stop()
        with pytest.raises(TimerStateError):
            timer.stop()

    def test_reset(self):
        timer = StubTimer([3.0])
        timer.start()
        timer.stop()
        timer.reset()
        assert timer.milliseconds() == 0.0
        assert timer.count == 0


class TestHostTimer:
    def test_measures_perf_counter(self):
        timer = HostTimer()
        with patch("trtdetect.ops.timing.time.perf_counter", side_effect=[10.0, 10.25]):
            timer.start()
            elapsed = timer.stop()
        assert elapsed == pytest.approx(250.0)
        assert timer.milliseconds() == pytest.approx(250.0)


@pytest.mark.skipif(not _cuda_available(), reason="needs CUDA")
class TestDeviceTimer:
    def test_records_events(self):
        import torch

        timer = DeviceTimer()
        timer.start()
        x = torch.ones(256, 256, device="cuda")
        (x @ x).sum().item()
        elapsed = timer.stop()
        assert elapsed >= 0.0
        assert timer.count == 1


class TestBenchmarkMeter:
    def _run(self, meter: BenchmarkMeter, total_batches: int):
        for index in range(total_batches):
            with meter.measure(index):
                pass

    def test_warmup_batches_are_not_timed(self):
        host, device = StubTimer(), StubTimer()
        meter = BenchmarkMeter(host, device, warmup_index=5)
        self._run(meter, 6)
        assert meter.count == 0
        assert host.starts == 0
        assert device.starts == 0
        assert meter.averages() is None

    @pytest.mark.parametrize("total_batches,warmup_index", [(10, 5), (7, 5), (4, 0), (9, 2)])
    def test_average_over_batches_after_warmup(self, total_batches, warmup_index):
        measured = total_batches - warmup_index - 1
        host_spans = [float(i + 1) for i in range(measured)]
        device_spans = [float(2 * (i + 1)) for i in range(measured)]
        meter = BenchmarkMeter(StubTimer(host_spans), StubTimer(device_spans), warmup_index=warmup_index)

        self._run(meter, total_batches)

        assert meter.count == measured
        host_avg, device_avg = meter.averages()
        assert host_avg == pytest.approx(sum(host_spans) / measured)
        assert device_avg == pytest.approx(sum(device_spans) / measured)

    def test_is_measured_boundary(self):
        meter = BenchmarkMeter(StubTimer(), StubTimer(), warmup_index=5)
        assert not meter.is_measured(5)
        assert meter.is_measured(6)

    def test_failure_inside_block_does_not_accumulate(self):
        meter = BenchmarkMeter(StubTimer(), StubTimer(), warmup_index=0)
        with pytest.raises(RuntimeError):
            with meter.measure(1):
                raise RuntimeError("boom")
        assert meter.count == 0

    def test_negative_warmup_rejected(self):
        with pytest.raises(ValueError):
            BenchmarkMeter(StubTimer(), StubTimer(), warmup_index=-1)
