import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

# pynput needs a display backend on Linux
kb = pytest.importorskip("utils.keyboard")

from utils.error_tracker import ErrorTracker


class FakeHotKeys:
    instances: list = []

    def __init__(self, hotkeys) -> None:
        self.hotkeys = hotkeys
        self.started = False
        self.stopped = False
        FakeHotKeys.instances.append(self)

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True


@pytest.fixture(autouse=True)
def fake_hotkeys(monkeypatch):
    FakeHotKeys.instances = []
    monkeypatch.setattr(kb.keyboard, "GlobalHotKeys", FakeHotKeys)
    yield
    ErrorTracker.stop_keyboard_listener()


def test_stop_key_calls_callback() -> None:
    pressed = []
    listener = kb.StopKeyListener(lambda: pressed.append(True), "esc", hide_echo=False)
    with listener:
        assert listener.running
        (hk,) = FakeHotKeys.instances
        assert hk.started and list(hk.hotkeys) == ["<esc>"]
        hk.hotkeys["<esc>"]()
    assert pressed == [True]
    assert hk.stopped and not listener.running


def test_error_tracker_installs_one_listener() -> None:
    stops = []
    ErrorTracker.install_keyboard_listener(on_stop=lambda: stops.append(1))
    ErrorTracker.install_keyboard_listener(on_stop=lambda: stops.append(2))
    assert len(FakeHotKeys.instances) == 1
    FakeHotKeys.instances[0].hotkeys["<esc>"]()
    assert stops == [1]
    ErrorTracker.stop_keyboard_listener()
    assert FakeHotKeys.instances[0].stopped
