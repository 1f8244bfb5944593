"""Configuration constants and runtime settings."""

import os
from dataclasses import dataclass
from typing import Optional

# Paths
CONFIG_DIR = os.path.expanduser("~/.scrcpy_menu")
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.json")
LOG_FILE = os.path.join(CONFIG_DIR, "scrcpy_menu.log")
DEFAULT_RECORDING_PATH = os.path.expanduser("~/Videos/scrcpy")

# Logging
LOG_MAX_KB = 1024
LOG_TRIM_PERCENT = 50

# Menus
VIEWPORT_SIZE = 19
CATEGORY_MARKER = "="
COPY_SUFFIX = " (copy)"

# Device polling
DEVICE_READY_ATTEMPTS = 5
DEVICE_READY_DELAY = 1.0
DISPLAY_NAME_ATTEMPTS = 3
DISPLAY_NAME_DELAY = 0.5
INVALID_DEVICE_PAUSE = 2.0
ADB_TIMEOUT = 10
WIRELESS_SCAN_TIMEOUT = 3.0

# Mirroring
EXIT_CODES = {
    0: "clean exit",
    1: "failed to start",
    2: "device disconnected",
}
POLL_INTERVAL = 0.1

# App info
APP_NAME = "scrcpy menu"
APP_VERSION = "0.3.0"

# Seed preset written to a fresh configuration file
DEFAULT_PRESET = {
    'name': "Default",
    'description': "Balanced quality for most devices",
    'tags': "default, h264",
    'favorite': False,
    'resolution': "1920",
    'videoCodec': "h264",
    'videoBitrate': "8M",
    'videoBuffer': "",
    'audioCodec': "opus",
    'audioBitrate': "128K",
    'audioBuffer': "",
    'otherOptions': "--stay-awake",
}


@dataclass
class Settings:
    """Runtime settings assembled from the command line."""
    config_path: str = CONFIG_FILE
    log_path: str = LOG_FILE
    logging_enabled: bool = False
    log_max_kb: int = LOG_MAX_KB
    log_trim_percent: int = LOG_TRIM_PERCENT
    clear_screen: bool = True
    realtime: bool = False
    scrcpy_path: str = "scrcpy"
    adb_path: str = "adb"
    ffmpeg_path: Optional[str] = None
