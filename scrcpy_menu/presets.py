"""Preset storage: loading, saving and editing the configuration document."""

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime
from typing import List, Optional

from .config import COPY_SUFFIX, DEFAULT_PRESET
from .models import PRESET_FIELDS, Config, Preset

logger = logging.getLogger(__name__)

SCALAR_FIELDS = (
    'recording_path',
    'recording_format',
    'last_used_preset',
    'quick_launch_preset',
    'selected_device',
)


class PresetError(ValueError):
    """Raised when a preset operation is not allowed."""


class DuplicatePresetError(PresetError):
    """Raised when a preset name is already taken."""


def default_config() -> Config:
    """A fresh document containing the single seed preset."""
    return Config(presets=[Preset.from_dict(DEFAULT_PRESET)])


def diff_configs(old: Optional[Config], new: Config) -> List[str]:
    """List the fields that differ between two documents."""
    if old is None:
        return ["<new file>"]

    changes = []
    for name in SCALAR_FIELDS:
        if getattr(old, name) != getattr(new, name):
            changes.append(name)

    if len(old.presets) != len(new.presets):
        changes.append(f"presets ({len(old.presets)} -> {len(new.presets)})")

    for i, (before, after) in enumerate(zip(old.presets, new.presets)):
        for attr in PRESET_FIELDS:
            if getattr(before, attr) != getattr(after, attr):
                changes.append(f"presets[{i}].{attr}")
    return changes


class PresetStore:
    """Holds the configuration document and persists it to disk."""

    def __init__(self, path: str):
        self.path = path
        self.config = default_config()
        self._saved: Optional[Config] = None

    @property
    def presets(self) -> List[Preset]:
        return self.config.presets

    # Persistence

    def _read(self) -> Config:
        with open(self.path, encoding='utf-8') as f:
            data = json.load(f)
        return Config.from_dict(data)

    def _write(self, config: Config) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(prefix=".config-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(config.to_dict(), f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def backup_corrupt_file(self) -> Optional[str]:
        """Move an unreadable config aside, returning the backup path."""
        if not os.path.exists(self.path):
            return None
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        base, ext = os.path.splitext(self.path)
        backup = f"{base}.corrupt-{stamp}{ext or '.json'}"
        shutil.copy2(self.path, backup)
        return backup

    def load(self) -> Config:
        """Load the document, regenerating a default one if it is unreadable."""
        if not os.path.exists(self.path):
            logger.info("No config at %s, creating default", self.path)
            self._write(default_config())

        try:
            config = self._read()
        except (OSError, ValueError, TypeError) as e:
            logger.error("Config %s is unreadable: %s", self.path, e)
            backup = self.backup_corrupt_file()
            if backup:
                print(f"⚠️  Config file was corrupt, backed up to {backup}")
                logger.warning("Backed up corrupt config to %s", backup)
            try:
                self._write(default_config())
                config = self._read()
            except (OSError, ValueError, TypeError) as e:
                logger.error("Could not regenerate config: %s", e)
                config = default_config()

        self._warn_duplicates(config)
        self.config = config
        self._saved = config.copy()
        return config

    def save(self) -> bool:
        """Write the document if anything changed since the last save."""
        changes = diff_configs(self._saved, self.config)
        if not changes:
            logger.debug("Config unchanged, skipping write")
            return False

        logger.debug("Saving config, changed: %s", ", ".join(changes))
        self._write(self.config)
        self._saved = self.config.copy()
        return True

    def _warn_duplicates(self, config: Config) -> None:
        seen = set()
        for preset in config.presets:
            if preset.is_category:
                continue
            if preset.name in seen:
                logger.warning("Duplicate preset name in config: %s", preset.name)
            seen.add(preset.name)

    # Lookups

    def find(self, name: Optional[str]) -> Optional[Preset]:
        if not name:
            return None
        for preset in self.presets:
            if preset.name == name and not preset.is_category:
                return preset
        return None

    def index_of(self, name: str) -> int:
        for i, preset in enumerate(self.presets):
            if preset.name == name:
                return i
        return -1

    def resolve_quick_launch(self) -> Optional[Preset]:
        return self.find(self.config.quick_launch_preset)

    def resolve_last_used(self) -> Optional[Preset]:
        return self.find(self.config.last_used_preset)

    def _check_name(self, name: str, ignore: Optional[str] = None) -> None:
        if not name.strip():
            raise PresetError("Preset name cannot be empty")
        for preset in self.presets:
            if preset.is_category or preset.name == ignore:
                continue
            if preset.name == name:
                raise DuplicatePresetError(f"A preset named '{name}' already exists")

    def _check_index(self, index: int) -> Preset:
        if not 0 <= index < len(self.presets):
            raise PresetError(f"No preset at position {index}")
        return self.presets[index]

    # Editing

    def add(self, preset: Preset, index: Optional[int] = None) -> int:
        """Insert a preset (at the end by default) and return its index."""
        if not preset.is_category:
            self._check_name(preset.name)
        if index is None or index > len(self.presets):
            index = len(self.presets)
        self.presets.insert(index, preset)
        return index

    def add_category(self, title: str, index: Optional[int] = None) -> int:
        if not title.strip():
            raise PresetError("Category title cannot be empty")
        return self.add(Preset.category(title), index)

    def update(self, index: int, preset: Preset) -> int:
        """Replace the preset at index, carrying references over on rename."""
        original_name = self._check_index(index).name
        if not preset.is_category:
            self._check_name(preset.name, ignore=original_name)

        self.presets[index] = preset
        if preset.name != original_name:
            if self.config.last_used_preset == original_name:
                self.config.last_used_preset = preset.name
            if self.config.quick_launch_preset == original_name:
                self.config.quick_launch_preset = preset.name
        return index

    def delete(self, index: int) -> Preset:
        preset = self._check_index(index)
        del self.presets[index]
        if self.config.last_used_preset == preset.name:
            self.config.last_used_preset = None
        if self.config.quick_launch_preset == preset.name:
            self.config.quick_launch_preset = None
        return preset

    def duplicate(self, index: int) -> int:
        """Copy a preset, insert it after the source and return the new index."""
        source = self._check_index(index)
        if source.is_category:
            raise PresetError("Categories cannot be duplicated")

        clone = source.copy()
        name = source.name + COPY_SUFFIX
        while self.find(name):
            name += COPY_SUFFIX
        clone.rename(name)
        self.presets.insert(index + 1, clone)
        return index + 1

    def move(self, index: int, delta: int) -> int:
        """Swap a preset with its neighbour; returns the preset's new index."""
        self._check_index(index)
        target = index + (1 if delta > 0 else -1)
        if not 0 <= target < len(self.presets):
            return index
        presets = self.presets
        presets[index], presets[target] = presets[target], presets[index]
        return target

    def toggle_favorite(self, index: int) -> bool:
        preset = self._check_index(index)
        if preset.is_category:
            raise PresetError("Categories cannot be favorited")
        preset.favorite = not preset.favorite
        return preset.favorite

    def toggle_quick_launch(self, index: int) -> bool:
        """Make a preset the quick-launch preset, or clear it if it already is."""
        preset = self._check_index(index)
        if preset.is_category:
            raise PresetError("Categories cannot be used for quick launch")
        if self.config.quick_launch_preset == preset.name:
            self.config.quick_launch_preset = None
            return False
        self.config.quick_launch_preset = preset.name
        return True
