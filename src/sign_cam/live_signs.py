#!/usr/bin/env python3
"""
Live Sign Recognition

Shows the camera feed with the detected hand skeleton, the recognized ASL
letter and a history of recent letters.

Controls:
- Q / ESC: Quit
- C: Camera on/off
- SPACE: Pause/resume detection
- V: Speak the current letter
- H: Clear history
- S: Toggle statistics display
- R: Restart after an error

Author: CV-ASL Team
"""
import argparse
import asyncio
import logging
from typing import Optional

import cv2
import numpy as np
from tqdm import tqdm

from sign_cam.capture import CameraProvider
from sign_cam.config import DetectionConfig, load_config
from sign_cam.render import OpenCVRenderSink, draw_progress, status_card
from sign_cam.scheduler import NO_HANDS, UNRECOGNIZED, DetectionScheduler, DetectionState, DetectionStatus
from sign_cam.utils.fps import FPSTracker

logger = logging.getLogger(__name__)

WINDOW_NAME = "Live Sign Recognition"
CARD_SIZE = (960, 540)


class LiveSignRecognizer:
    """
    Desktop front end for the detection loop.

    The asyncio UI pump shows the latest composed frame and polls the
    OpenCV window for key presses; the scheduler drives sampling and
    classification on the same event loop.
    """

    def __init__(self, config: Optional[DetectionConfig] = None, model_loader=None,
                 camera_provider=None, speech=None, auto_start: bool = False):
        self.config = config or DetectionConfig()
        if model_loader is None:
            from sign_cam.vision.hand_landmarker import HandModelLoader
            model_loader = HandModelLoader(self.config.model)
        if speech is None and self.config.speech_enabled:
            from sign_cam.speech import SpeechSink
            speech = SpeechSink(rate=self.config.speech_rate)

        self.render_sink = OpenCVRenderSink()
        self.scheduler = DetectionScheduler(
            model_loader,
            camera_provider or CameraProvider(),
            render_sink=self.render_sink,
            config=self.config,
        )
        self.render_sink.known_labels = tuple(self.scheduler.classifier.labels)
        self.speech = speech
        self.fps_tracker = FPSTracker()
        self.auto_start = auto_start

        self.show_stats = True
        self.running = False
        self._frames_seen = 0
        self._progress_bar: Optional[tqdm] = None
        self.scheduler.add_listener(self._on_status)

    # ------------------------------------------------------------------

    def _on_status(self, status: DetectionStatus):
        if status.state is DetectionState.MODEL_LOADING:
            if self._progress_bar is None:
                self._progress_bar = tqdm(total=100, desc="Loading hand model", unit="%")
            self._progress_bar.update(status.progress - self._progress_bar.n)
        elif self._progress_bar is not None:
            self._progress_bar.close()
            self._progress_bar = None

        if status.message:
            logger.info(f"💬 {status.message}")

    def speak_current(self):
        """Speak the current letter; sentinels and empty labels are skipped."""
        label = self.scheduler.current_label
        if self.speech is None or not label or label in (NO_HANDS, UNRECOGNIZED):
            return None
        return self.speech.speak(label)

    async def handle_key(self, key: int) -> bool:
        """React to a key press. Returns False when the application should quit."""
        if key in (ord('q'), 27):
            logger.info("👋 Exiting...")
            return False
        elif key == ord('c'):
            await self.scheduler.toggle_camera()
        elif key == ord(' '):
            if self.scheduler.toggle_detection():
                paused = self.scheduler.state is DetectionState.PAUSED
                logger.info("⏸️ Paused" if paused else "▶️ Resumed")
        elif key == ord('v'):
            self.speak_current()
        elif key == ord('h'):
            self.scheduler.history.clear()
            logger.info("🧹 History cleared")
        elif key == ord('s'):
            self.show_stats = not self.show_stats
        elif key == ord('r'):
            await self.scheduler.restart()
        return True

    # ------------------------------------------------------------------

    def compose(self) -> np.ndarray:
        """Build the image to show for the current state."""
        status = self.scheduler.status
        width, height = CARD_SIZE

        if status.state in (DetectionState.IDLE, DetectionState.MODEL_LOADING):
            return draw_progress(np.zeros((height, width, 3), dtype=np.uint8), status.progress)

        canvas = self.render_sink.canvas
        if status.is_active and canvas is not None:
            if self.render_sink.frames_rendered != self._frames_seen:
                self._frames_seen = self.render_sink.frames_rendered
                self.fps_tracker.update()
            frame = canvas.copy()
            if self.show_stats:
                self._draw_stats(frame)
            if status.state is DetectionState.PAUSED:
                h, w = frame.shape[:2]
                cv2.putText(frame, "PAUSED", (w // 2 - 100, h // 2), cv2.FONT_HERSHEY_SIMPLEX, 2, (0, 0, 255), 4)
            return frame

        lines = ["Press C to turn the camera on", "Q to quit"]
        if status.state is DetectionState.ERROR:
            lines = ["Press R to restart", "Q to quit"]
        if status.message:
            lines.insert(0, status.message)
        return status_card(width, height, lines, self.scheduler.history.list())

    def _draw_stats(self, frame: np.ndarray):
        s = self.scheduler.session
        h = frame.shape[0]
        y = h - 90
        cv2.putText(frame, f"FPS: {self.fps_tracker.get_fps():.1f}", (10, y),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.8, (0, 255, 0), 2)
        cv2.putText(frame, f"Classified: {s.classifications}", (10, y + 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 0), 2)
        cv2.putText(frame, f"Dropped ticks: {s.skipped_ticks}", (10, y + 60),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 0), 2)

    async def run(self):
        """Main loop for the application."""
        logger.info("🟢 Starting Live Sign Recognition...")
        logger.info("📋 Controls: Q=Quit | C=Camera | SPACE=Pause | V=Speak | H=Clear history | S=Stats | R=Restart")

        cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
        load_task = asyncio.create_task(self.scheduler.load_model())
        self.running = True
        try:
            while self.running:
                if (self.auto_start and load_task.done() and
                        self.scheduler.state is DetectionState.READY):
                    self.auto_start = False
                    await self.scheduler.start()

                cv2.imshow(WINDOW_NAME, self.compose())
                key = cv2.waitKey(1) & 0xFF
                if key != 0xFF:
                    self.running = await self.handle_key(key)
                await asyncio.sleep(self.config.frame_interval / 2)
        finally:
            if not load_task.done():
                load_task.cancel()
            self.scheduler.close()
            if self.speech is not None:
                self.speech.close()
            if self._progress_bar is not None:
                self._progress_bar.close()
            cv2.destroyAllWindows()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Live ASL letter recognition from hand landmarks")
    parser.add_argument("--config", type=str, help="JSON config file")
    parser.add_argument("--camera", type=int, help="Camera device ID (default: 0)")
    parser.add_argument("--model-path", type=str, help="Path to hand_landmarker.task")
    parser.add_argument("--interval", type=float, help="Seconds between classifications (default: 0.1)")
    parser.add_argument("--no-speech", action="store_true", help="Disable text-to-speech")
    parser.add_argument("--auto-start", action="store_true", help="Turn the camera on once the model is loaded")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> DetectionConfig:
    """Merge the config file with command-line overrides."""
    overrides = {}
    if args.camera is not None:
        overrides["camera"] = {"device_id": args.camera}
    if args.model_path:
        overrides["model"] = {"model_path": args.model_path}
    if args.interval is not None:
        overrides["classification_interval"] = args.interval
    if args.no_speech:
        overrides["speech_enabled"] = False
    return load_config(args.config, overrides)


def main(argv=None):
    """Main function to run the recognizer"""
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s - %(levelname)s - %(message)s')
    recognizer = LiveSignRecognizer(build_config(args), auto_start=args.auto_start)
    try:
        asyncio.run(recognizer.run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


if __name__ == "__main__":
    main()
