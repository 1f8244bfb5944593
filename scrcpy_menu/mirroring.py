"""Building scrcpy command lines and running scrcpy."""

import logging
import os
import subprocess
import time
from datetime import datetime
from typing import Callable, List, Optional

from .config import EXIT_CODES, POLL_INTERVAL
from .models import Preset, RecordingFormat
from .utils import safe_filename, timestamp

logger = logging.getLogger(__name__)

LineCallback = Callable[[str, str], None]


def _positive(value: str) -> bool:
    try:
        return int(value.strip()) > 0
    except ValueError:
        return False


def build_arguments(preset: Preset, serial: str) -> List[str]:
    """Map a preset to scrcpy arguments. The device serial always comes first."""
    args = ["--serial", serial]

    flags = [
        ("--max-size", preset.resolution),
        ("--video-codec", preset.video_codec),
        ("--video-bit-rate", preset.video_bitrate),
    ]
    for flag, value in flags:
        if value.strip():
            args.extend([flag, value.strip()])

    if _positive(preset.video_buffer):
        args.extend(["--video-buffer", preset.video_buffer.strip()])

    for flag, value in (("--audio-codec", preset.audio_codec),
                        ("--audio-bit-rate", preset.audio_bitrate)):
        if value.strip():
            args.extend([flag, value.strip()])

    if _positive(preset.audio_buffer):
        args.extend(["--audio-buffer", preset.audio_buffer.strip()])

    args.extend(preset.other_options.split())
    return args


def recording_arguments(path: str) -> List[str]:
    return ["--record", path]


def default_recording_name(preset_name: str, fmt: RecordingFormat,
                           now: Optional[datetime] = None) -> str:
    """e.g. 'Gaming_20260101_120000.mkv'"""
    return f"{safe_filename(preset_name)}_{timestamp(now)}.{fmt.extension}"


def describe_exit(code: int) -> str:
    if code in EXIT_CODES:
        return EXIT_CODES[code]
    return f"unexpected exit code {code}"


class _PipeLines:
    """Collects complete lines from a non-blocking pipe."""

    def __init__(self, pipe):
        self.pipe = pipe
        self.pending = b""
        os.set_blocking(pipe.fileno(), False)

    def drain(self, final: bool = False) -> List[str]:
        while True:
            try:
                chunk = self.pipe.read(65536)
            except BlockingIOError:
                chunk = None
            except (OSError, ValueError):
                break
            if not chunk:
                break
            self.pending += chunk

        parts = self.pending.split(b"\n")
        self.pending = parts.pop()
        if final and self.pending:
            parts.append(self.pending)
            self.pending = b""
        return [p.decode('utf-8', errors='replace').rstrip("\r") for p in parts]


def _log_line(stream: str, line: str) -> None:
    if not line.strip():
        return
    print(f"   {line}")
    if stream == "stderr":
        logger.warning("[scrcpy] %s", line)
    else:
        logger.info("[scrcpy] %s", line)


def _run_captured(command: List[str], on_line: LineCallback,
                  poll_interval: float) -> int:
    process = subprocess.Popen(
        command,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        bufsize=0,
    )
    streams = {
        'stdout': _PipeLines(process.stdout),
        'stderr': _PipeLines(process.stderr),
    }

    try:
        while True:
            for name, stream in streams.items():
                for line in stream.drain():
                    on_line(name, line)
            if process.poll() is not None:
                break
            time.sleep(poll_interval)
    except KeyboardInterrupt:
        logger.info("Interrupted, waiting for scrcpy to exit")
        process.wait()

    # Children such as the adb server may keep the pipes open, so never block here
    for name, stream in streams.items():
        for line in stream.drain(final=True):
            on_line(name, line)
    process.stdout.close()
    process.stderr.close()
    return process.returncode


def _run_passthrough(command: List[str]) -> int:
    process = subprocess.Popen(command)
    while True:
        try:
            return process.wait()
        except KeyboardInterrupt:
            # Ctrl+C also reaches scrcpy, which shuts itself down
            logger.info("Interrupted, waiting for scrcpy to exit")


def launch(command: List[str], capture: bool = False,
           on_line: Optional[LineCallback] = None,
           poll_interval: float = POLL_INTERVAL) -> int:
    """Run scrcpy and wait for it to exit. Returns its exit code, -1 if it never started.

    In capture mode the output is read line by line while polling for exit;
    otherwise scrcpy inherits the terminal.
    """
    logger.info("Launching: %s", " ".join(command))
    try:
        if capture:
            code = _run_captured(command, on_line or _log_line, poll_interval)
        else:
            code = _run_passthrough(command)
    except FileNotFoundError:
        print(f"❌ {command[0]} not found")
        logger.error("Executable not found: %s", command[0])
        return -1
    except OSError as e:
        print(f"❌ Failed to start {command[0]}: {e}")
        logger.error("Failed to start %s: %s", command[0], e)
        return -1

    logger.info("scrcpy exited with %s (%s)", code, describe_exit(code))
    return code
