import pytest

from sign_cam.utils.fps import FPSTracker


class TestFPSTracker:
    def test_single_frame_has_no_rate(self):
        tracker = FPSTracker()
        tracker.update(now=1.0)
        assert tracker.get_fps() == 0.0

    def test_rate_over_window(self):
        tracker = FPSTracker(window=5)
        for i in range(10):
            tracker.update(now=i * 0.1)
        assert tracker.get_fps() == pytest.approx(10.0)

    def test_reset(self):
        tracker = FPSTracker()
        tracker.update(now=0.0)
        tracker.update(now=0.5)
        tracker.reset()
        assert tracker.get_fps() == 0.0

    def test_uses_clock(self):
        times = iter([0.0, 0.25, 0.5])
        tracker = FPSTracker(clock=lambda: next(times))
        for _ in range(3):
            tracker.update()
        assert tracker.get_fps() == pytest.approx(4.0)
