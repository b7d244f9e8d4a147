"""
Unit tests for the OpenCV drawing helpers and the render sink.
"""
import numpy as np
import pytest

from sign_cam.history import HistoryEntry
from sign_cam.landmarks import EMPTY
from sign_cam.render import (
    HINT_COLOR,
    LABEL_COLOR,
    OpenCVRenderSink,
    draw_hand,
    draw_history,
    draw_label,
    draw_progress,
    status_card,
)
from tests.fakes import pose_b


@pytest.fixture
def frame():
    return np.zeros((480, 640, 3), dtype=np.uint8)


def has_color(image, color):
    return bool(np.all(image == np.array(color, dtype=np.uint8), axis=-1).any())


class TestDrawing:
    def test_draw_hand(self, frame):
        draw_hand(frame, pose_b())
        assert frame.any()

    def test_draw_hand_without_hand(self, frame):
        draw_hand(frame, EMPTY)
        assert not frame.any()

    def test_letter_drawn_large_in_green(self, frame):
        draw_label(frame, "A", known_labels=("A",))
        assert has_color(frame, LABEL_COLOR)

    def test_sentinel_drawn_as_hint(self, frame):
        draw_label(frame, "no hands visible", known_labels=("A",))
        assert has_color(frame, HINT_COLOR)
        assert not has_color(frame, LABEL_COLOR)

    def test_no_label(self, frame):
        draw_label(frame, None)
        assert not frame.any()

    def test_history_panel(self, frame):
        draw_history(frame, [HistoryEntry("A", 0.0), HistoryEntry("B", 1.0)])
        assert frame[:, 400:].any()
        assert not frame[:, :200].any()

    def test_progress_clamped(self, frame):
        draw_progress(frame, 150)
        assert has_color(frame, LABEL_COLOR)

    def test_status_card(self):
        card = status_card(320, 240, ["Press C to turn the camera on"])
        assert card.shape == (240, 320, 3)
        assert card.any()


class TestOpenCVRenderSink:
    def test_render_composes_on_copy(self, frame):
        sink = OpenCVRenderSink(known_labels=("B",))
        sink.render(frame, pose_b(), "B", [HistoryEntry("B", 0.0)])

        assert not frame.any()
        assert sink.canvas is not None and sink.canvas.any()
        assert sink.frames_rendered == 1

    def test_skeleton_can_be_hidden(self, frame):
        sink = OpenCVRenderSink(show_skeleton=False, show_history=False)
        sink.render(frame, pose_b(), None, [])
        assert not sink.canvas.any()

    def test_clear(self, frame):
        sink = OpenCVRenderSink()
        sink.render(frame, EMPTY, None, [])
        sink.clear()
        assert sink.canvas is None
