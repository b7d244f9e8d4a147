"""
OpenCV drawing for the live sign recognizer.

The render sink receives every frame from the detection loop together with
the latest landmarks, current label and history, and composes the annotated
frame the application shows.
"""
from typing import Optional, Sequence

import cv2
import numpy as np

from sign_cam.history import HistoryEntry
from sign_cam.landmarks import is_hand, skeleton_edges

# BGR
BONE_COLOR = (246, 130, 59)
JOINT_COLOR = (68, 68, 239)
LABEL_COLOR = (0, 255, 0)
HINT_COLOR = (0, 255, 255)
TEXT_COLOR = (255, 255, 255)
PANEL_COLOR = (0, 0, 0)

FONT = cv2.FONT_HERSHEY_SIMPLEX


def _pt(point) -> tuple:
    return int(round(point[0])), int(round(point[1]))


def draw_hand(frame: np.ndarray, landmarks, bone_thickness: int = 4,
              joint_radius: int = 6) -> np.ndarray:
    """Draw the hand skeleton in place: bones first, joints on top."""
    if not is_hand(landmarks):
        return frame
    for start, end in skeleton_edges():
        cv2.line(frame, _pt(landmarks[start]), _pt(landmarks[end]), BONE_COLOR, bone_thickness)
    for point in landmarks:
        cv2.circle(frame, _pt(point), joint_radius, JOINT_COLOR, -1)
    return frame


def draw_label(frame: np.ndarray, label: Optional[str], known_labels: Sequence[str] = ()) -> np.ndarray:
    """
    Draw the current label big and centered at the top of the frame.

    Recognized letters are drawn large in green; sentinel messages such as
    'no hands visible' are drawn as a smaller yellow hint.
    """
    if not label:
        return frame
    h, w = frame.shape[:2]

    if label in known_labels or len(label) == 1:
        text, scale, thickness, color = label, 5.0, 8, LABEL_COLOR
    else:
        text, scale, thickness, color = label, 1.0, 2, HINT_COLOR

    (text_w, text_h), baseline = cv2.getTextSize(text, FONT, scale, thickness)
    x = (w - text_w) // 2
    y = 40 + text_h
    padding = 15
    cv2.rectangle(frame, (x - padding, y - text_h - padding),
                  (x + text_w + padding, y + baseline + padding), PANEL_COLOR, -1)
    cv2.putText(frame, text, (x, y), FONT, scale, color, thickness)
    return frame


def draw_history(frame: np.ndarray, history: Sequence[HistoryEntry]) -> np.ndarray:
    """Draw the history panel on the right edge, newest first."""
    if not history:
        return frame
    h, w = frame.shape[:2]
    line_h = 28
    panel_w = 190
    panel_h = line_h * (len(history) + 1) + 10
    x0 = w - panel_w - 10

    overlay = frame.copy()
    cv2.rectangle(overlay, (x0, 10), (w - 10, 10 + panel_h), PANEL_COLOR, -1)
    cv2.addWeighted(overlay, 0.6, frame, 0.4, 0, dst=frame)

    cv2.putText(frame, "History", (x0 + 10, 10 + line_h), FONT, 0.7, TEXT_COLOR, 2)
    for i, entry in enumerate(history):
        y = 10 + line_h * (i + 2)
        cv2.putText(frame, f"{entry.label}  {entry.time_label}", (x0 + 10, y), FONT, 0.6, TEXT_COLOR, 1)
    return frame


def draw_progress(frame: np.ndarray, progress: int, text: str = "Loading hand model...") -> np.ndarray:
    """Draw a centered progress bar, progress in percent."""
    h, w = frame.shape[:2]
    cv2.putText(frame, f"{text} {progress}%", (50, h // 2 - 30), FONT, 1.0, HINT_COLOR, 2)
    cv2.rectangle(frame, (50, h // 2), (w - 50, h // 2 + 30), (100, 100, 100), -1)
    filled = int((w - 100) * max(0, min(progress, 100)) / 100)
    cv2.rectangle(frame, (50, h // 2), (50 + filled, h // 2 + 30), LABEL_COLOR, -1)
    return frame


def status_card(width: int, height: int, lines: Sequence[str],
                history: Sequence[HistoryEntry] = ()) -> np.ndarray:
    """Blank card with a few lines of text, shown while the camera is off."""
    card = np.zeros((height, width, 3), dtype=np.uint8)
    for i, line in enumerate(lines):
        cv2.putText(card, line, (30, 60 + 40 * i), FONT, 0.8, TEXT_COLOR, 2)
    return draw_history(card, history)


class OpenCVRenderSink:
    """
    Composes the annotated frame for each loop iteration.

    The latest composition is kept in `canvas` for the application to show;
    clear() drops it when a session ends.
    """

    def __init__(self, known_labels: Sequence[str] = (), show_skeleton: bool = True,
                 show_history: bool = True):
        self.known_labels = tuple(known_labels)
        self.show_skeleton = show_skeleton
        self.show_history = show_history
        self.canvas: Optional[np.ndarray] = None
        self.frames_rendered = 0

    def render(self, frame: np.ndarray, landmarks, label: Optional[str],
               history: Sequence[HistoryEntry]):
        canvas = frame.copy()
        if self.show_skeleton:
            draw_hand(canvas, landmarks)
        draw_label(canvas, label, self.known_labels)
        if self.show_history:
            draw_history(canvas, history)
        self.canvas = canvas
        self.frames_rendered += 1

    def clear(self):
        self.canvas = None
