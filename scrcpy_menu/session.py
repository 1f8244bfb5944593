"""The launch session: device and preset resolution, running scrcpy, post-run choices."""

import enum
import logging
import os
from datetime import datetime
from typing import Callable, List, Optional, Protocol

from .config import INVALID_DEVICE_PAUSE, Settings
from .conversion import remux_to_mp4
from .devices import DeviceDirectory
from .mirroring import (
    build_arguments, default_recording_name, describe_exit, launch, recording_arguments,
)
from .models import Preset, RecordingFormat
from .presets import PresetStore
from .utils import format_size

logger = logging.getLogger(__name__)


class Step(enum.Enum):
    RESOLVE_DEVICE = "resolve_device"
    VALIDATE_DEVICE = "validate_device"
    RESOLVE_PRESET = "resolve_preset"
    BUILD_ARGUMENTS = "build_arguments"
    LAUNCH = "launch"
    AWAIT_EXIT = "await_exit"
    POST_RUN = "post_run"
    RELAUNCH = "relaunch"
    RETURN_TO_MENU = "return_to_menu"
    EXIT_PROCESS = "exit_process"


class Outcome(enum.Enum):
    RETURN = "return"    # back to the main menu
    ABORTED = "aborted"  # cancelled or failed before launching
    EXIT = "exit"        # the user asked to quit the program


# Post-run menu choices
RETURN = "return"
RELAUNCH = "relaunch"
EXIT = "exit"


class SessionUI(Protocol):
    """The interactive pieces a session needs."""

    def select_device(self, directory: DeviceDirectory) -> Optional[str]: ...

    def select_preset(self, store: PresetStore) -> Optional[Preset]: ...

    def prompt_filename(self, default: str) -> Optional[str]: ...

    def post_run_menu(self, preset: Preset, code: int, recording: Optional[str]) -> str: ...

    def notify(self, message: str) -> None: ...

    def pause(self, seconds: float) -> None: ...


class Session:
    """Drives one mirroring run from device selection to the post-run menu."""

    def __init__(self, store: PresetStore, directory: DeviceDirectory,
                 ui: SessionUI, settings: Settings,
                 launcher: Callable[..., int] = launch,
                 remuxer: Callable[..., Optional[str]] = remux_to_mp4,
                 clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.directory = directory
        self.ui = ui
        self.settings = settings
        self.launcher = launcher
        self.remuxer = remuxer
        self.clock = clock
        self.history: List[Step] = []

    @property
    def config(self):
        return self.store.config

    def run(self, preset_name: Optional[str] = None, record: bool = False,
            forced: bool = False) -> Outcome:
        """Run the session.

        forced marks a direct launch from the command line: an unavailable
        device or unknown preset ends the launch instead of falling back to
        the interactive menus.
        """
        step = Step.RESOLVE_DEVICE
        serial = None
        preset = None
        command: List[str] = []
        recording = None
        code = 0

        while True:
            self.history.append(step)

            if step is Step.RESOLVE_DEVICE:
                serial = self.config.selected_device
                if not serial:
                    serial = self.ui.select_device(self.directory)
                    if not serial:
                        logger.info("Device selection cancelled")
                        return Outcome.ABORTED
                    self.config.selected_device = serial
                    self.store.save()
                step = Step.VALIDATE_DEVICE

            elif step is Step.VALIDATE_DEVICE:
                device = self.directory.wait_until_ready(serial)
                if device:
                    logger.info("Using device %s", device.display_name)
                    step = Step.RESOLVE_PRESET
                    continue

                self.ui.notify(f"❌ Device {serial} is not connected or not authorized")
                logger.warning("Device %s is not ready", serial)
                if forced:
                    return Outcome.ABORTED
                self.config.selected_device = None
                self.store.save()
                self.ui.pause(INVALID_DEVICE_PAUSE)
                step = Step.RESOLVE_DEVICE

            elif step is Step.RESOLVE_PRESET:
                preset = self.store.find(preset_name)
                if preset is None:
                    if preset_name:
                        self.ui.notify(f"⚠️  Preset '{preset_name}' not found")
                        logger.warning("Preset %s not found", preset_name)
                    if forced:
                        return Outcome.ABORTED
                    preset = self.ui.select_preset(self.store)
                    if preset is None:
                        logger.info("Preset selection cancelled")
                        return Outcome.ABORTED
                preset_name = preset.name
                self.config.last_used_preset = preset.name
                self.store.save()
                step = Step.BUILD_ARGUMENTS

            elif step is Step.BUILD_ARGUMENTS:
                command = [self.settings.scrcpy_path] + build_arguments(preset, serial)
                step = Step.LAUNCH

            elif step is Step.LAUNCH:
                recording = None
                if record:
                    recording = self._recording_path(preset)
                    if recording is None:
                        logger.info("Recording prompt cancelled")
                        return Outcome.ABORTED
                    command = command + recording_arguments(recording)
                step = Step.AWAIT_EXIT

            elif step is Step.AWAIT_EXIT:
                self.ui.notify(f"📱 Starting {preset.name}...")
                code = self.launcher(command, capture=self.settings.realtime)
                step = Step.POST_RUN

            elif step is Step.POST_RUN:
                self._after_exit(code, recording)
                choice = self.ui.post_run_menu(preset, code, recording)
                if choice == RELAUNCH:
                    step = Step.RELAUNCH
                elif choice == EXIT:
                    step = Step.EXIT_PROCESS
                else:
                    step = Step.RETURN_TO_MENU

            elif step is Step.RELAUNCH:
                logger.info("Relaunching %s", preset_name)
                step = Step.RESOLVE_DEVICE

            elif step is Step.RETURN_TO_MENU:
                return Outcome.RETURN

            elif step is Step.EXIT_PROCESS:
                return Outcome.EXIT

    def _recording_path(self, preset: Preset) -> Optional[str]:
        fmt = self.config.recording_format
        default = default_recording_name(preset.name, fmt, self.clock())
        filename = self.ui.prompt_filename(default)
        if filename is None:
            return None

        filename = filename.strip() or default
        if not os.path.splitext(filename)[1]:
            filename = f"{filename}.{fmt.extension}"

        directory = os.path.expanduser(self.config.recording_path)
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            logger.warning("Could not create %s: %s", directory, e)
        return os.path.join(directory, filename)

    def _after_exit(self, code: int, recording: Optional[str]) -> None:
        message = describe_exit(code)
        if code == 0:
            self.ui.notify(f"✅ scrcpy finished ({message})")
        elif code < 0:
            self.ui.notify("❌ scrcpy could not be started")
        else:
            self.ui.notify(f"⚠️  scrcpy exited with code {code} ({message})")

        if not recording:
            return
        if not os.path.exists(recording):
            logger.warning("Recording %s was not created", recording)
            return

        size = format_size(os.path.getsize(recording))
        self.ui.notify(f"🎬 Recording saved: {recording} ({size})")
        if self.config.recording_format is RecordingFormat.MKV_TO_MP4:
            self.remuxer(recording, self.settings.ffmpeg_path)
