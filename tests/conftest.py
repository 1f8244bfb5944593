import io

import pytest

from scrcpy_menu.config import Settings
from scrcpy_menu.keys import KeyEvent, decode_key
from scrcpy_menu.models import DeviceRecord, DeviceState, Preset
from scrcpy_menu.presets import PresetStore
from scrcpy_menu.session import RETURN

KEY_NAMES = {
    'up': "\x1b[A",
    'down': "\x1b[B",
    'right': "\x1b[C",
    'left': "\x1b[D",
    'enter': "\r",
    'esc': "\x1b",
    'backspace': "\x7f",
    'delete': "\x1b[3~",
    'pgup': "\x1b[5~",
    'pgdn': "\x1b[6~",
    'home': "\x1b[H",
    'end': "\x1b[F",
}


def scripted_reader(*keys):
    """A key reader replaying named keys ('up', 'enter', ...) or typed text."""
    events = []
    for key in keys:
        if isinstance(key, KeyEvent):
            events.append(key)
        elif key in KEY_NAMES:
            events.append(decode_key(KEY_NAMES[key]))
        else:
            events.extend(decode_key(ch) for ch in key)

    def reader():
        if not events:
            raise AssertionError("ran out of scripted keys")
        return events.pop(0)

    reader.remaining = events
    return reader


@pytest.fixture
def keys():
    return scripted_reader


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        config_path=str(tmp_path / "config.json"),
        log_path=str(tmp_path / "test.log"),
        clear_screen=False,
        scrcpy_path="scrcpy",
        adb_path="adb",
    )


@pytest.fixture
def store(tmp_path):
    store = PresetStore(str(tmp_path / "config.json"))
    store.load()
    return store


class FakeDirectory:
    """Stands in for DeviceDirectory with a scripted sequence of device lists."""

    def __init__(self, *snapshots):
        self.snapshots = list(snapshots) or [[]]
        self.ready_checks = []

    def list(self):
        if len(self.snapshots) > 1:
            return self.snapshots.pop(0)
        return self.snapshots[0]

    def get(self, serial):
        for device in self.list():
            if device.serial == serial:
                return device
        return None

    def wait_until_ready(self, serial, attempts=5, delay=1.0):
        self.ready_checks.append(serial)
        device = self.get(serial)
        return device if device and device.is_ready else None

    def display_name(self, serial):
        return serial


@pytest.fixture
def ready_device():
    return DeviceRecord("ABC123", DeviceState.READY, "Pixel 7", "device")


@pytest.fixture
def make_directory():
    return FakeDirectory


@pytest.fixture
def sample_presets():
    return [
        Preset(name="=== Games ==="),
        Preset(name="Gaming", description="Low latency", tags="fast, games",
               video_codec="h264", video_bitrate="16M"),
        Preset(name="Movies", description="High quality video", tags="cinema",
               video_codec="h265", audio_codec="opus"),
        Preset(name="=== Work ==="),
        Preset(name="Office", description="Text readability", tags="work",
               resolution="1024", other_options="--stay-awake --turn-screen-off"),
    ]


class FakeUI:
    """Scripted answers for the interactive parts of a session."""

    def __init__(self, devices=(), presets=(), filenames=(), choices=(RETURN,)):
        self.devices = list(devices)
        self.presets = list(presets)
        self.filenames = list(filenames)
        self.choices = list(choices)
        self.messages = []
        self.pauses = []
        self.post_runs = []

    def select_device(self, directory):
        return self.devices.pop(0) if self.devices else None

    def select_preset(self, store):
        if not self.presets:
            return None
        return store.find(self.presets.pop(0))

    def prompt_filename(self, default):
        self.default_filename = default
        return self.filenames.pop(0) if self.filenames else None

    def post_run_menu(self, preset, code, recording):
        self.post_runs.append((preset.name, code, recording))
        return self.choices.pop(0) if self.choices else RETURN

    def notify(self, message):
        self.messages.append(message)

    def pause(self, seconds):
        self.pauses.append(seconds)


class FakeLauncher:
    def __init__(self, code=0, create=False):
        self.code = code
        self.create = create
        self.commands = []

    def __call__(self, command, capture=False):
        self.commands.append(command)
        if self.create and "--record" in command:
            path = command[command.index("--record") + 1]
            with open(path, 'wb') as f:
                f.write(b"video")
        return self.code
