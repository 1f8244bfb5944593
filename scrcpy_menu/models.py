"""Typed records for presets, configuration and devices."""

import copy
import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import CATEGORY_MARKER, DEFAULT_RECORDING_PATH

# Attribute name -> key in the persisted document
PRESET_FIELDS = {
    'name': 'name',
    'description': 'description',
    'tags': 'tags',
    'favorite': 'favorite',
    'resolution': 'resolution',
    'video_codec': 'videoCodec',
    'video_bitrate': 'videoBitrate',
    'video_buffer': 'videoBuffer',
    'audio_codec': 'audioCodec',
    'audio_bitrate': 'audioBitrate',
    'audio_buffer': 'audioBuffer',
    'other_options': 'otherOptions',
}


def is_category_name(name: str) -> bool:
    """Check if a preset name is a category marker like '=== Games ==='."""
    stripped = name.strip()
    if len(stripped) < 3:
        return False
    if not (stripped.startswith(CATEGORY_MARKER) and stripped.endswith(CATEGORY_MARKER)):
        return False
    return bool(stripped.strip(CATEGORY_MARKER).strip())


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class Preset:
    """A named bundle of scrcpy options, or a category marker."""
    name: str
    description: str = ""
    tags: str = ""
    favorite: bool = False
    resolution: str = ""
    video_codec: str = ""
    video_bitrate: str = ""
    video_buffer: str = ""
    audio_codec: str = ""
    audio_bitrate: str = ""
    audio_buffer: str = ""
    other_options: str = ""
    is_category: bool = field(init=False, default=False)

    def __post_init__(self):
        self.is_category = is_category_name(self.name)

    @classmethod
    def category(cls, title: str) -> "Preset":
        """Build a category marker with the given title."""
        marker = CATEGORY_MARKER * 3
        return cls(name=f"{marker} {title.strip()} {marker}")

    @property
    def category_title(self) -> str:
        return self.name.strip().strip(CATEGORY_MARKER).strip()

    def rename(self, name: str) -> None:
        """Change the name and recompute the category flag."""
        self.name = name
        self.is_category = is_category_name(name)

    def copy(self) -> "Preset":
        return copy.deepcopy(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preset":
        """Build a preset from a document entry, defaulting missing keys."""
        values = {}
        for attr, key in PRESET_FIELDS.items():
            if key not in data:
                continue
            if attr == 'favorite':
                values[attr] = _flag(data[key])
            else:
                values[attr] = _text(data[key])
        values.setdefault('name', "")
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in PRESET_FIELDS.items()}


class RecordingFormat(enum.Enum):
    MP4 = "mp4"
    MKV_TO_MP4 = "mkv_to_mp4"

    @classmethod
    def parse(cls, value: Any) -> "RecordingFormat":
        for fmt in cls:
            if fmt.value == value:
                return fmt
        return cls.MP4

    @property
    def extension(self) -> str:
        return "mkv" if self is RecordingFormat.MKV_TO_MP4 else "mp4"

    @property
    def label(self) -> str:
        if self is RecordingFormat.MKV_TO_MP4:
            return "MKV, remux to MP4 when finished"
        return "MP4"


def _optional(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value)
    return value if value.strip() else None


@dataclass
class Config:
    """The persisted configuration document."""
    recording_path: str = DEFAULT_RECORDING_PATH
    recording_format: RecordingFormat = RecordingFormat.MP4
    last_used_preset: Optional[str] = None
    quick_launch_preset: Optional[str] = None
    selected_device: Optional[str] = None
    presets: List[Preset] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        if not isinstance(data, dict):
            raise ValueError("configuration root must be an object")
        presets = data.get('presets') or []
        if not isinstance(presets, list):
            raise ValueError("'presets' must be a list")
        return cls(
            recording_path=_text(data.get('recordingPath')) or DEFAULT_RECORDING_PATH,
            recording_format=RecordingFormat.parse(data.get('recordingFormat')),
            last_used_preset=_optional(data.get('lastUsedPreset')),
            quick_launch_preset=_optional(data.get('quickLaunchPreset')),
            selected_device=_optional(data.get('selectedDevice')),
            presets=[Preset.from_dict(p) for p in presets if isinstance(p, dict)],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'recordingPath': self.recording_path,
            'recordingFormat': self.recording_format.value,
            'lastUsedPreset': self.last_used_preset,
            'quickLaunchPreset': self.quick_launch_preset,
            'selectedDevice': self.selected_device,
            'presets': [p.to_dict() for p in self.presets],
        }

    def copy(self) -> "Config":
        return copy.deepcopy(self)


class DeviceState(enum.Enum):
    READY = "device"
    OFFLINE = "offline"
    UNAUTHORIZED = "unauthorized"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, token: str) -> "DeviceState":
        for state in (cls.READY, cls.OFFLINE, cls.UNAUTHORIZED):
            if state.value == token:
                return state
        return cls.UNKNOWN


@dataclass
class DeviceRecord:
    serial: str
    state: DeviceState
    model: Optional[str] = None
    raw_state: str = ""

    @property
    def is_ready(self) -> bool:
        return self.state is DeviceState.READY

    @property
    def display_name(self) -> str:
        if self.model:
            return f"{self.model} ({self.serial})"
        return self.serial

    @property
    def state_label(self) -> str:
        if self.state is DeviceState.UNKNOWN:
            return self.raw_state or "unknown"
        if self.state is DeviceState.READY:
            return "ready"
        return self.state.value
