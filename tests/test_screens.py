from conftest import FakeDirectory
from scrcpy_menu.models import DeviceRecord, DeviceState, Preset, RecordingFormat
from scrcpy_menu.presets import PresetStore
from scrcpy_menu.screens import TerminalUI, preset_label, preset_rows
from scrcpy_menu.session import EXIT, RELAUNCH, RETURN
from scrcpy_menu.utils import strip_ansi


def _ui(settings, reader, out):
    return TerminalUI(settings, reader=reader, out=out)


def test_preset_rows(sample_presets):
    sample_presets[2].favorite = True
    labels, categories, highlights = preset_rows(sample_presets, quick_launch="Gaming")

    assert categories == {0, 3}
    assert highlights == {1: 'quick', 2: 'favorite'}
    assert labels[0] == "── Games ──"
    assert "⚡" in labels[1]
    assert strip_ansi(labels[2]).startswith("★ Movies")


def test_preset_label_plain():
    assert preset_label(Preset(name="Plain")) == "  Plain"


def test_main_menu_actions(store, settings, keys, out):
    directory = FakeDirectory()
    ui = _ui(settings, keys("down", "enter"), out)
    assert ui.main_menu(store, directory) == 'record'

    ui = _ui(settings, keys("esc"), out)
    assert ui.main_menu(store, directory) == 'quit'


def test_main_menu_offers_quick_launch(store, settings, keys, out):
    store.config.quick_launch_preset = "Default"
    ui = _ui(settings, keys("enter"), out)
    assert ui.main_menu(store, FakeDirectory()) == 'quick'
    assert "Quick launch: Default" in out.getvalue()


def test_select_preset_rejects_categories(store, settings, keys, out):
    store.add_category("Games", 0)
    ui = _ui(settings, keys("enter", "down", "enter"), out)

    preset = ui.select_preset(store)

    assert preset.name == "Default"
    assert "Categories can't be launched" in out.getvalue()


def test_select_preset_via_search(store, settings, keys, out):
    store.add(Preset(name="Movies", tags="cinema"))
    ui = _ui(settings, keys("/", "cinema", "enter"), out)
    assert ui.select_preset(store).name == "Movies"


def test_search_narrows_on_each_keystroke(store, settings, keys, out):
    store.add(Preset(name="Quest", description="Headset casting"))
    ui = _ui(settings, keys("x", "backspace", "down", "enter"), out)

    assert ui.search_screen(store).name == "Quest"
    assert "No presets match 'x'" in out.getvalue()


def test_search_treats_q_as_text(store, settings, keys, out):
    store.add(Preset(name="Quest"))
    ui = _ui(settings, keys("q", "enter"), out)
    assert ui.search_screen(store).name == "Quest"


def test_search_enter_without_results_keeps_searching(store, settings, keys, out):
    reader = keys("zzz", "enter", "esc")
    ui = _ui(settings, reader, out)

    assert ui.search_screen(store) is None
    assert reader.remaining == []


def test_select_device_only_returns_ready_devices(settings, keys, out, ready_device):
    offline = DeviceRecord("OFF1", DeviceState.OFFLINE, raw_state="offline")
    ui = _ui(settings, keys("enter", "down", "enter"), out)

    assert ui.select_device(FakeDirectory([offline, ready_device])) == "ABC123"
    assert "OFF1 is offline" in out.getvalue()


def test_post_run_menu(settings, keys, out):
    preset = Preset(name="Gaming")
    assert _ui(settings, keys("enter"), out).post_run_menu(preset, 0, None) == RETURN
    assert _ui(settings, keys("r"), out).post_run_menu(preset, 2, None) == RELAUNCH
    assert _ui(settings, keys("q"), out).post_run_menu(preset, 0, None) == EXIT


def test_manager_creates_preset(store, settings, keys, out):
    ui = _ui(settings, keys("n", "enter", "Fast", "enter", "s", "esc"), out)
    ui.manage_presets(store)

    assert [p.name for p in store.presets] == ["Default", "Fast"]
    assert [p.name for p in PresetStore(store.path).load().presets] == ["Default", "Fast"]


def test_manager_reports_duplicate_name(store, settings, keys, out):
    ui = _ui(settings, keys("n", "enter", "Default", "enter", "s", "esc", "esc"), out)
    ui.manage_presets(store)

    assert [p.name for p in store.presets] == ["Default"]
    assert "already exists" in out.getvalue()


def test_manager_delete_and_duplicate(store, settings, keys, out):
    ui = _ui(settings, keys("p", "d", "y", "esc"), out)
    ui.manage_presets(store)
    assert [p.name for p in store.presets] == ["Default"]


def test_settings_menu_cycles_format(store, settings, keys, out):
    ui = _ui(settings, keys("down", "enter", "esc"), out)
    ui.settings_menu(store)
    assert store.config.recording_format is RecordingFormat.MKV_TO_MP4
