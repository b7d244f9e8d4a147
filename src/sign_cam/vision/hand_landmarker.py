"""
MediaPipe Hand Landmarker

Loads the MediaPipe hand landmark model (downloading it on first use) and
wraps it as the landmark source the detection loop calls.

Landmarks are returned in pixel coordinates of the frame they were
estimated on: x and y scaled by the frame width and height, z scaled by the
width as MediaPipe recommends.
"""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional

import cv2
import mediapipe as mp
import numpy as np
import requests
from mediapipe.tasks import python as mp_python
from mediapipe.tasks.python import vision

from sign_cam.config import ModelConfig
from sign_cam.errors import ModelLoadFailure
from sign_cam.landmarks import EMPTY, LandmarkSet, as_landmark_set

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

# Share of the progress bar spent downloading; the rest is model initialisation
DOWNLOAD_SHARE = 0.9
CHUNK_SIZE = 64 * 1024


def download_model(url: str, path: Path, on_progress: Optional[ProgressCallback] = None,
                   timeout: float = 30.0) -> Path:
    """
    Download the model file to path, reporting progress as a 0.0-1.0 fraction.

    The file is written to a temporary name first so an interrupted download
    never leaves a truncated model behind.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".part")

    logger.info(f"⬇️ Downloading hand landmark model from {url}")
    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            total = int(response.headers.get("content-length", 0))
            received = 0
            with open(tmp_path, "wb") as fh:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    fh.write(chunk)
                    received += len(chunk)
                    if on_progress and total:
                        on_progress(min(received / total, 1.0))
    except (requests.RequestException, OSError) as e:
        tmp_path.unlink(missing_ok=True)
        raise ModelLoadFailure(f"Could not download hand model: {e}") from e

    tmp_path.replace(path)
    logger.info(f"✅ Model saved to {path} ({received / 1e6:.1f} MB)")
    return path


class HandLandmarkModel:
    """
    Loaded hand landmark model.

    estimate() runs the detector on a dedicated worker thread; the
    underlying landmarker must not be called concurrently.
    """

    def __init__(self, landmarker):
        self._landmarker = landmarker
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="hand-model")
        self._closed = False

    @property
    def valid(self) -> bool:
        return not self._closed

    async def estimate(self, frame: np.ndarray) -> LandmarkSet:
        """Landmarks of the first hand in a BGR frame, or the empty set."""
        if self._closed:
            raise RuntimeError("hand model is closed")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.detect, frame)

    def detect(self, frame: np.ndarray) -> LandmarkSet:
        """Synchronous estimate on the calling thread."""
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        result = self._landmarker.detect(image)

        if not result.hand_landmarks:
            return EMPTY

        h, w = frame.shape[:2]
        hand = result.hand_landmarks[0]
        return as_landmark_set([(p.x * w, p.y * h, p.z * w) for p in hand])

    def close(self):
        if self._closed:
            return
        self._closed = True
        # Queued behind any detect() still running on the worker
        self._executor.submit(self._landmarker.close)
        self._executor.shutdown(wait=False)
        logger.info("Hand model closed")


class HandModelLoader:
    """Creates HandLandmarkModel instances from a ModelConfig."""

    def __init__(self, config: Optional[ModelConfig] = None):
        self.config = config or ModelConfig()

    async def load(self, on_progress: Optional[ProgressCallback] = None) -> HandLandmarkModel:
        """
        Load the model off the event loop, reporting progress from 0.0 to 1.0.

        Raises:
            ModelLoadFailure: if the model cannot be downloaded or created
        """
        loop = asyncio.get_running_loop()

        def report(fraction: float):
            if on_progress is not None:
                loop.call_soon_threadsafe(on_progress, fraction)

        try:
            return await loop.run_in_executor(None, self._load_blocking, report)
        except ModelLoadFailure:
            raise
        except Exception as e:
            raise ModelLoadFailure(f"Could not initialise hand model: {e}") from e

    def _load_blocking(self, report: ProgressCallback) -> HandLandmarkModel:
        path = Path(self.config.model_path)
        report(0.0)
        if not path.exists():
            download_model(
                self.config.model_url, path,
                on_progress=lambda fraction: report(fraction * DOWNLOAD_SHARE),
                timeout=self.config.download_timeout,
            )
        report(DOWNLOAD_SHARE)

        options = vision.HandLandmarkerOptions(
            base_options=mp_python.BaseOptions(model_asset_path=str(path)),
            running_mode=vision.RunningMode.IMAGE,
            num_hands=1,
            min_hand_detection_confidence=self.config.min_detection_confidence,
            min_hand_presence_confidence=self.config.min_presence_confidence,
        )
        landmarker = vision.HandLandmarker.create_from_options(options)
        report(1.0)
        logger.info(f"🖐️ Hand landmarker ready ({path})")
        return HandLandmarkModel(landmarker)
