"""
Webcam capture for the live sign recognizer.

The CameraProvider opens an OpenCV capture device and hands out a
StreamHandle. Whoever holds the handle is responsible for stopping it;
the detection loop takes ownership while a session is running.
"""
import logging
from typing import Optional

import cv2
import numpy as np

from sign_cam.config import CameraConstraints
from sign_cam.errors import CameraAcquisitionFailure

logger = logging.getLogger(__name__)


class StreamHandle:
    """
    A live camera stream.

    Wraps a cv2.VideoCapture; the stream has one video track which is live
    until stop() is called.
    """

    def __init__(self, capture: cv2.VideoCapture, constraints: CameraConstraints):
        self._capture = capture
        self.constraints = constraints
        self._stopped = False

    @property
    def live(self) -> bool:
        return not self._stopped and self._capture.isOpened()

    @property
    def active_tracks(self) -> int:
        """Number of tracks still delivering frames (0 or 1)."""
        return 1 if self.live else 0

    @property
    def resolution(self):
        width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        return width, height

    def read(self) -> Optional[np.ndarray]:
        """Grab the next frame, mirrored if the constraints ask for it. None on failure."""
        if not self.live:
            return None
        ret, frame = self._capture.read()
        if not ret or frame is None:
            return None
        if self.constraints.mirror:
            frame = cv2.flip(frame, 1)
        return frame

    def stop(self):
        """Stop the track and release the device. Safe to call more than once."""
        if self._stopped:
            return
        self._stopped = True
        self._capture.release()
        logger.info(f"Camera {self.constraints.device_id} released")


class CameraProvider:
    """Acquires and releases OpenCV camera streams."""

    def acquire(self, constraints: Optional[CameraConstraints] = None) -> StreamHandle:
        """
        Open the camera described by the constraints.

        Raises:
            CameraAcquisitionFailure: if the device cannot be opened
        """
        constraints = constraints or CameraConstraints()
        try:
            cap = cv2.VideoCapture(constraints.device_id)
        except cv2.error as e:
            raise CameraAcquisitionFailure(f"Could not open camera device {constraints.device_id}: {e}") from e

        if not cap.isOpened():
            cap.release()
            raise CameraAcquisitionFailure(f"Could not open camera device {constraints.device_id}")

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.height)
        cap.set(cv2.CAP_PROP_FPS, constraints.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)  # keep latency low

        handle = StreamHandle(cap, constraints)
        width, height = handle.resolution
        logger.info(f"📹 Camera {constraints.device_id}: {width}x{height}")
        return handle

    def release(self, handle: Optional[StreamHandle]):
        if handle is not None:
            handle.stop()
