"""Interactive screens: main menu, preset manager, devices and settings."""

import logging
import sys
import time
from typing import Dict, List, Optional, Sequence, TextIO, Tuple

from .config import APP_NAME, APP_VERSION, VIEWPORT_SIZE, Settings
from .devices import DeviceDirectory, WirelessService, discover_wireless
from .editor import CANCEL, COMMIT, LineBuffer, confirm, prompt_line
from .keys import Key, KeyReader, read_key
from .menu import MenuResult, move_selection, page_selection, render_menu, show_menu
from .mirroring import describe_exit
from .models import DeviceRecord, Preset, RecordingFormat
from .presets import PresetError, PresetStore
from .search import search_presets
from .session import EXIT, RELAUNCH, RETURN
from .utils import DIM, REVERSE, clear_screen, style

logger = logging.getLogger(__name__)

# (attribute, label) pairs shown in the preset editor
EDIT_FIELDS = [
    ('name', "Name"),
    ('description', "Description"),
    ('tags', "Tags"),
    ('favorite', "Favorite"),
    ('resolution', "Max size"),
    ('video_codec', "Video codec"),
    ('video_bitrate', "Video bitrate"),
    ('video_buffer', "Video buffer"),
    ('audio_codec', "Audio codec"),
    ('audio_bitrate', "Audio bitrate"),
    ('audio_buffer', "Audio buffer"),
    ('other_options', "Other options"),
]

MANAGER_KEYS = ("n", "c", "d", "u", "j", "p", "f", "l", "/")
MANAGER_FOOTER = [
    style("   Enter edit · n new · c category · d delete · p duplicate", DIM),
    style("   u/j move up/down · f favorite · l quick launch · / search · Esc back", DIM),
]


def preset_label(preset: Preset, quick_launch: Optional[str] = None) -> str:
    """One menu line for a preset."""
    if preset.is_category:
        return f"── {preset.category_title} ──"

    star = "★" if preset.favorite else " "
    label = f"{star} {preset.name}"
    if quick_launch and preset.name == quick_launch:
        label += "  ⚡"
    if preset.description:
        label += style(f"  {preset.description}", DIM)
    return label


def preset_rows(presets: Sequence[Preset],
                quick_launch: Optional[str] = None) -> Tuple[List[str], set, Dict[int, str]]:
    """Labels, category indices and highlight styles for a preset list."""
    labels = []
    categories = set()
    highlights = {}
    for i, preset in enumerate(presets):
        labels.append(preset_label(preset, quick_launch))
        if preset.is_category:
            categories.add(i)
        elif quick_launch and preset.name == quick_launch:
            highlights[i] = 'quick'
        elif preset.favorite:
            highlights[i] = 'favorite'
    return labels, categories, highlights


def device_label(device: DeviceRecord, selected: Optional[str] = None) -> str:
    marker = "●" if device.serial == selected else " "
    return f"{marker} {device.display_name}  [{device.state_label}]"


class TerminalUI:
    """Keyboard-driven screens drawn on the terminal."""

    def __init__(self, settings: Settings, reader: KeyReader = read_key,
                 out: TextIO = sys.stdout):
        self.settings = settings
        self.reader = reader
        self.out = out
        self._messages: List[str] = []

    # Primitives

    def menu(self, title: str, options: Sequence[str], header: Sequence[str] = (),
             **kwargs) -> MenuResult:
        """Show a menu; pending notifications are shown in its header."""
        header = list(header)
        if self._messages:
            header.extend(f"   {m}" for m in self._messages)
            self._messages = []
        return show_menu(title, options, header=header,
                         clear=self.settings.clear_screen,
                         reader=self.reader, out=self.out, **kwargs)

    def prompt(self, label: str, default: str = "") -> Optional[str]:
        return prompt_line(label, default, reader=self.reader, out=self.out)

    def confirm(self, question: str, default: bool = False) -> bool:
        return confirm(question, default, reader=self.reader, out=self.out)

    def notify(self, message: str) -> None:
        self.out.write(message + "\n")
        self.out.flush()
        self._messages.append(message)

    def _progress(self, message: str) -> None:
        self.out.write(f"   {message}\n")
        self.out.flush()

    def pause(self, seconds: float) -> None:
        time.sleep(seconds)

    # Session screens

    def select_device(self, directory: DeviceDirectory) -> Optional[str]:
        """Pick a ready device. Returns its serial, or None if cancelled."""
        while True:
            devices = directory.list()
            options = [device_label(d) for d in devices]
            actions = ["🔄 Refresh", "🔌 Connect wireless device..."]
            header = [] if devices else ["   ⚠️  No devices found. Connect one over USB or Wi-Fi."]

            result = self.menu("📱 Select Device", options + actions, header=header,
                               cap=max(len(options) + len(actions), 1),
                               extra_keys=("r",))
            if result.cancelled:
                return None
            if result.key == "r":
                continue

            if result.index < len(devices):
                device = devices[result.index]
                if device.is_ready:
                    return device.serial
                self._messages.append(f"⚠️  {device.serial} is {device.state_label}")
                continue

            action = result.index - len(devices)
            if action == 1:
                self.connect_device(directory)

    def select_preset(self, store: PresetStore) -> Optional[Preset]:
        """Pick a preset to launch, with search as the first entry."""
        selected = 1
        last_used = store.config.last_used_preset
        if last_used and store.index_of(last_used) >= 0:
            selected = store.index_of(last_used) + 1

        while True:
            presets = store.presets
            labels, categories, highlights = preset_rows(
                presets, store.config.quick_launch_preset)
            options = ["🔍 Search presets"] + labels
            categories = {i + 1 for i in categories}
            highlights = {i + 1: s for i, s in highlights.items()}

            result = self.menu("🚀 Launch Preset", options, selected=selected,
                               categories=categories, highlights=highlights,
                               skip_categories=False, extra_keys=("/",),
                               footer=[style("   Enter launch · / search · Esc back", DIM)])
            if result.cancelled:
                return None
            selected = max(result.index, 0)

            if result.key == "/" or result.index == 0:
                preset = self.search_screen(store)
                if preset:
                    return preset
                continue

            preset = presets[result.index - 1]
            if preset.is_category:
                self._messages.append("⚠️  Categories can't be launched, pick a preset")
                continue
            return preset

    def search_screen(self, store: PresetStore) -> Optional[Preset]:
        """Live preset search: results are re-ranked on every keystroke."""
        buffer = LineBuffer()
        selected = 0
        footer = [style("   Type to filter · ↑/↓ choose · Enter select · Esc back", DIM)]

        while True:
            results = search_presets(buffer.text, store.presets)
            labels, _, highlights = preset_rows(results, store.config.quick_launch_preset)
            selected = max(0, min(selected, len(results) - 1))

            before, after = buffer.text[:buffer.cursor], buffer.text[buffer.cursor:]
            header = [f"   Search: {before}{style(after[:1] or ' ', REVERSE)}{after[1:]}"]
            if not results:
                header.append(style(f"   No presets match '{buffer.text}'", DIM))
            if self._messages:
                header.extend(f"   {m}" for m in self._messages)
                self._messages = []

            self._draw(render_menu("🔍 Search Presets", labels, selected,
                                   highlights=highlights, footer=footer, header=header))

            event = self.reader()
            if event.kind is Key.UP:
                selected = move_selection(selected, -1, len(results))
                continue
            if event.kind is Key.DOWN:
                selected = move_selection(selected, 1, len(results))
                continue
            if event.kind in (Key.PAGE_UP, Key.PAGE_DOWN):
                delta = VIEWPORT_SIZE if event.kind is Key.PAGE_DOWN else -VIEWPORT_SIZE
                selected = page_selection(selected, delta, len(results))
                continue

            text = buffer.text
            outcome = buffer.apply(event)
            if outcome == CANCEL:
                return None
            if outcome == COMMIT:
                if results:
                    return results[selected]
                continue
            if buffer.text != text:
                selected = 0

    def _draw(self, frame: Sequence[str]) -> None:
        if self.settings.clear_screen:
            clear_screen(self.out)
        else:
            self.out.write("\n")
        self.out.write("\n".join(frame) + "\n")
        self.out.flush()

    def prompt_filename(self, default: str) -> Optional[str]:
        self.out.write("\n")
        return self.prompt("⏺️  Recording file name", default)

    def post_run_menu(self, preset: Preset, code: int, recording: Optional[str]) -> str:
        header = [f"   Exit code {code}: {describe_exit(code)}"]
        if recording:
            header.append(f"   Recording: {recording}")
        result = self.menu(f"scrcpy finished · {preset.name}",
                           ["↩️  Back to main menu", "🔁 Relaunch"],
                           header=header, cap=2, extra_keys=("r",),
                           footer=[style("   Enter back · r relaunch · Esc/q quit", DIM)])
        if result.cancelled:
            return EXIT
        if result.key == "r" or result.index == 1:
            return RELAUNCH
        return RETURN

    # Main menu

    def main_menu(self, store: PresetStore, directory: DeviceDirectory) -> str:
        """Show the main menu and return the chosen action."""
        config = store.config
        if config.selected_device:
            device_text = directory.display_name(config.selected_device)
        else:
            device_text = "none selected"

        header = [f"   📱 Device: {device_text}"]
        entries = []

        quick = store.resolve_quick_launch()
        if quick:
            entries.append(('quick', f"⚡ Quick launch: {quick.name}"))
        last = store.resolve_last_used()
        if last and last is not quick:
            entries.append(('last', f"🔁 Launch last used: {last.name}"))
        entries.extend([
            ('launch', "🚀 Launch preset"),
            ('record', "⏺️  Launch and record"),
            ('presets', "🗂️  Manage presets"),
            ('devices', "📱 Devices"),
            ('settings', "⚙️  Settings"),
            ('quit', "👋 Quit"),
        ])

        result = self.menu(f"{APP_NAME} {APP_VERSION}", [label for _, label in entries],
                           header=header, cap=len(entries))
        if result.cancelled:
            return 'quit'
        return entries[result.index][0]

    # Preset manager

    def manage_presets(self, store: PresetStore) -> None:
        selected = 0
        while True:
            presets = store.presets
            labels, categories, highlights = preset_rows(
                presets, store.config.quick_launch_preset)
            header = [] if presets else ["   No presets yet, press n to create one."]

            result = self.menu("🗂️  Presets", labels, selected=selected,
                               categories=categories, highlights=highlights,
                               skip_categories=False, header=header,
                               extra_keys=MANAGER_KEYS, footer=MANAGER_FOOTER)
            if result.cancelled:
                return
            selected = max(result.index, 0)

            try:
                selected = self._manager_action(store, result.key, selected)
            except PresetError as e:
                self._messages.append(f"❌ {e}")
                continue
            store.save()

    def _manager_action(self, store: PresetStore, key: str, index: int) -> int:
        """Run one preset manager action; returns the index to select next."""
        presets = store.presets
        has_item = 0 <= index < len(presets)

        if key == "n":
            new_index = self.edit_preset(store, None, insert_at=index + 1 if has_item else None)
            return index if new_index is None else new_index
        if key == "c":
            title = self.prompt("Category title")
            if not title:
                return index
            return store.add_category(title, index + 1 if has_item else None)
        if key == "/":
            preset = self.search_screen(store)
            if preset is None:
                return index
            found = next(i for i, p in enumerate(store.presets) if p is preset)
            self.edit_preset(store, found)
            return found

        if not has_item:
            return index

        if key == "enter":
            self.edit_preset(store, index)
            return index
        if key == "d":
            name = presets[index].name
            if self.confirm(f"Delete '{name}'?"):
                store.delete(index)
                self._messages.append(f"🗑️  Deleted {name}")
            return min(index, len(store.presets) - 1)
        if key == "u":
            return store.move(index, -1)
        if key == "j":
            return store.move(index, 1)
        if key == "p":
            return store.duplicate(index)
        if key == "f":
            store.toggle_favorite(index)
            return index
        if key == "l":
            enabled = store.toggle_quick_launch(index)
            name = presets[index].name
            self._messages.append(f"⚡ Quick launch: {name}" if enabled else "⚡ Quick launch cleared")
            return index
        return index

    def edit_preset(self, store: PresetStore, index: Optional[int],
                    insert_at: Optional[int] = None) -> Optional[int]:
        """Edit (or create) a preset. Returns its index if saved, None if discarded."""
        if index is None:
            working = Preset(name="")
            title = "✏️  New Preset"
        else:
            working = store.presets[index].copy()
            title = f"✏️  Edit {working.name}"

        fields = EDIT_FIELDS[:1] if working.is_category else EDIT_FIELDS
        selected = 0

        while True:
            options = [f"{label:<14} {self._field_text(working, attr)}"
                       for attr, label in fields]
            options.append("💾 Save")

            result = self.menu(title, options, selected=selected, cap=len(options),
                               extra_keys=("s",),
                               footer=[style("   Enter edit · s save · Esc discard", DIM)])
            if result.cancelled:
                return None
            selected = result.index

            if result.key == "s" or result.index == len(fields):
                try:
                    if index is None:
                        saved = store.add(working, insert_at)
                    else:
                        saved = store.update(index, working)
                except PresetError as e:
                    self._messages.append(f"❌ {e}")
                    continue
                return saved

            attr, label = fields[result.index]
            if attr == 'favorite':
                working.favorite = not working.favorite
                continue

            value = self.prompt(label, getattr(working, attr))
            if value is None:
                continue
            if attr == 'name':
                working.rename(value.strip())
            else:
                setattr(working, attr, value.strip())

    @staticmethod
    def _field_text(preset: Preset, attr: str) -> str:
        value = getattr(preset, attr)
        if attr == 'favorite':
            return "yes" if value else "no"
        return value or style("(not set)", DIM)

    # Devices

    def device_menu(self, store: PresetStore, directory: DeviceDirectory) -> None:
        actions = [
            ('refresh', "🔄 Refresh"),
            ('connect', "🔌 Connect (IP:port)"),
            ('pair', "🔐 Pair (IP:port + code)"),
            ('disconnect', "⏏️  Disconnect (IP:port)"),
            ('discover', "🛰️  Discover wireless devices"),
            ('tcpip', "📡 Enable wireless on selected device"),
            ('kill', "💀 Restart adb server"),
            ('forget', "❌ Forget selected device"),
        ]

        while True:
            selected = store.config.selected_device
            devices = directory.list()
            options = [device_label(d, selected) for d in devices]
            highlights = {i: 'active' for i, d in enumerate(devices) if d.serial == selected}
            header = [f"   Selected: {selected or 'none'}"]

            result = self.menu("📱 Devices", options + [label for _, label in actions],
                               header=header, highlights=highlights,
                               cap=len(options) + len(actions),
                               footer=[style("   Enter select · Esc back", DIM)])
            if result.cancelled:
                return

            if result.index < len(devices):
                device = devices[result.index]
                if not device.is_ready:
                    self._messages.append(f"⚠️  {device.serial} is {device.state_label}")
                    continue
                store.config.selected_device = device.serial
                store.save()
                self._messages.append(f"✅ Selected: {device.display_name}")
                continue

            action = actions[result.index - len(devices)][0]
            if action == 'connect':
                self.connect_device(directory)
            elif action == 'pair':
                self.pair_device(directory)
            elif action == 'disconnect':
                default = selected if selected and ":" in selected else ""
                self.out.write("\n")
                address = self.prompt("Address (IP:port)", default)
                if address and address.strip():
                    self._messages.append(directory.disconnect(address.strip()))
            elif action == 'discover':
                self.discover_devices(directory)
            elif action == 'tcpip':
                if selected:
                    self._messages.append(directory.tcpip(selected))
                else:
                    self._messages.append("⚠️  No device selected")
            elif action == 'kill':
                self._messages.append(directory.kill_server() or "adb server stopped")
            elif action == 'forget':
                store.config.selected_device = None
                store.save()
                self._messages.append("🔌 Device forgotten")

    def connect_device(self, directory: DeviceDirectory, address: str = "") -> None:
        self.out.write("\n")
        address = self.prompt("Address (IP:port)", address)
        if address and address.strip():
            self._progress(f"🔌 Connecting to {address.strip()}...")
            self._messages.append(directory.connect(address.strip()))

    def pair_device(self, directory: DeviceDirectory, address: str = "") -> None:
        self.out.write("\n")
        address = self.prompt("Pairing address (IP:port)", address)
        if not address or not address.strip():
            return
        code = self.prompt("Pairing code")
        if not code or not code.strip():
            return
        self._progress(f"🔐 Pairing with {address.strip()}...")
        self._messages.append(directory.pair(address.strip(), code.strip()))

    def discover_devices(self, directory: DeviceDirectory) -> None:
        self._progress("🛰️  Looking for wireless debugging devices...")
        services: List[WirelessService] = discover_wireless()
        if not services:
            self._messages.append("No wireless debugging devices found")
            return

        labels = [f"{'🔐' if s.kind == 'pairing' else '🔌'} {s.name}  {s.endpoint}  [{s.kind}]"
                  for s in services]
        result = self.menu("🛰️  Wireless Devices", labels, cap=len(labels),
                           footer=[style("   Enter connect/pair · Esc back", DIM)])
        if result.cancelled:
            return

        service = services[result.index]
        if service.kind == 'pairing':
            self.pair_device(directory, service.endpoint)
        else:
            self.connect_device(directory, service.endpoint)

    # Settings

    def settings_menu(self, store: PresetStore) -> None:
        selected = 0
        while True:
            config = store.config
            options = [
                f"{'Recording folder':<18} {config.recording_path}",
                f"{'Recording format':<18} {config.recording_format.label}",
            ]
            result = self.menu("⚙️  Settings", options, selected=selected, cap=len(options),
                               footer=[style("   Enter change · Esc back", DIM)])
            if result.cancelled:
                return
            selected = result.index

            if result.index == 0:
                path = self.prompt("Recording folder", config.recording_path)
                if path and path.strip():
                    config.recording_path = path.strip()
            else:
                formats = list(RecordingFormat)
                current = formats.index(config.recording_format)
                config.recording_format = formats[(current + 1) % len(formats)]
            store.save()
