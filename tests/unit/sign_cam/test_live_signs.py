"""
Unit tests for the live recognizer front end: key handling, frame
composition and command-line configuration. No window is opened.
"""
import asyncio
from unittest.mock import MagicMock, Mock, patch

import pytest

from sign_cam.config import DetectionConfig
from sign_cam.live_signs import CARD_SIZE, LiveSignRecognizer, build_config, main, parse_args
from sign_cam.scheduler import NO_HANDS, DetectionState
from tests.fakes import FakeCameraProvider, FakeModel, FakeModelLoader, pose_a, settle


def make_recognizer(model=None):
    config = DetectionConfig(settle_delay=0.0, refresh_rate=0.001)
    return LiveSignRecognizer(
        config,
        model_loader=FakeModelLoader(model or FakeModel(pose_a())),
        camera_provider=FakeCameraProvider(),
        speech=Mock(),
    )


def run(coro):
    return asyncio.run(coro)


class TestHandleKey:
    @pytest.mark.parametrize("key", [ord('q'), 27])
    def test_quit(self, key):
        assert run(make_recognizer().handle_key(key)) is False

    def test_camera_toggle(self):
        async def scenario():
            app = make_recognizer()
            await app.scheduler.load_model()
            assert await app.handle_key(ord('c'))
            on = app.scheduler.state
            await app.handle_key(ord('c'))
            return on, app.scheduler.state

        assert run(scenario()) == (DetectionState.RUNNING, DetectionState.STOPPED)

    def test_space_pauses(self):
        async def scenario():
            app = make_recognizer()
            await app.scheduler.load_model()
            await app.scheduler.start()
            await app.handle_key(ord(' '))
            state = app.scheduler.state
            app.scheduler.close()
            return state

        assert run(scenario()) is DetectionState.PAUSED

    def test_speak_letter(self):
        app = make_recognizer()
        app.scheduler.current_label = "A"
        run(app.handle_key(ord('v')))
        app.speech.speak.assert_called_once_with("A")

    @pytest.mark.parametrize("label", [None, NO_HANDS])
    def test_sentinels_not_spoken(self, label):
        app = make_recognizer()
        app.scheduler.current_label = label
        assert app.speak_current() is None
        app.speech.speak.assert_not_called()

    def test_clear_history(self):
        app = make_recognizer()
        app.scheduler.history.record("A")
        run(app.handle_key(ord('h')))
        assert len(app.scheduler.history) == 0

    def test_stats_toggle(self):
        app = make_recognizer()
        run(app.handle_key(ord('s')))
        assert app.show_stats is False

    def test_restart_after_error(self):
        async def scenario():
            app = make_recognizer(FakeModel(error=RuntimeError("boom")))
            await app.scheduler.load_model()
            await app.scheduler.start()
            app.scheduler.tick(now=0.0)
            await settle()
            failed = app.scheduler.state
            await app.handle_key(ord('r'))
            return failed, app.scheduler.state

        assert run(scenario()) == (DetectionState.ERROR, DetectionState.READY)


class TestCompose:
    def test_loading_card(self):
        frame = make_recognizer().compose()
        width, height = CARD_SIZE
        assert frame.shape == (height, width, 3)

    def test_live_frame_while_running(self):
        async def scenario():
            app = make_recognizer()
            await app.scheduler.load_model()
            await app.scheduler.start()
            app.scheduler.tick(now=0.0)
            await settle()
            app.scheduler.tick(now=0.01)
            live = app.compose()
            app.scheduler.pause()
            paused = app.compose()
            app.scheduler.close()
            return live, paused, app

        live, paused, app = run(scenario())
        assert live.shape == (480, 640, 3)
        assert paused.shape == (480, 640, 3)
        assert app.scheduler.history.labels() == ["A"]

    def test_stopped_card(self):
        async def scenario():
            app = make_recognizer()
            await app.scheduler.load_model()
            await app.scheduler.start()
            app.scheduler.stop()
            return app.compose()

        width, height = CARD_SIZE
        assert run(scenario()).shape == (height, width, 3)

    def test_progress_bar_closed_after_loading(self):
        async def scenario():
            app = make_recognizer()
            await app.scheduler.load_model()
            return app

        assert run(scenario())._progress_bar is None


class TestCommandLine:
    def test_overrides(self):
        args = parse_args(["--camera", "2", "--interval", "0.2", "--no-speech",
                           "--model-path", "/tmp/hand.task"])
        config = build_config(args)
        assert config.camera.device_id == 2
        assert config.classification_interval == 0.2
        assert config.speech_enabled is False
        assert config.model.model_path == "/tmp/hand.task"

    def test_defaults(self):
        config = build_config(parse_args([]))
        assert config == DetectionConfig()

    def test_config_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"history_size": 5}')
        config = build_config(parse_args(["--config", str(path), "--camera", "1"]))
        assert config.history_size == 5
        assert config.camera.device_id == 1

    @patch("sign_cam.live_signs.asyncio.run")
    @patch("sign_cam.live_signs.LiveSignRecognizer")
    def test_main(self, mock_recognizer, mock_run):
        main(["--no-speech", "--auto-start", "--log-level", "DEBUG"])

        config = mock_recognizer.call_args.args[0]
        assert config.speech_enabled is False
        assert mock_recognizer.call_args.kwargs["auto_start"] is True
        mock_run.assert_called_once()
