"""Command-line interface for scrcpy menu."""

import argparse
import logging
import shutil
from typing import List, Optional

from .config import CONFIG_FILE, LOG_FILE, LOG_MAX_KB, LOG_TRIM_PERCENT, Settings
from .devices import DeviceDirectory
from .keys import TerminalError, ensure_terminal
from .logging_setup import setup_logging
from .mirroring import launch
from .presets import PresetStore
from .screens import TerminalUI
from .search import best_match
from .session import Outcome, Session
from .utils import ToolNotFoundError, resolve_tool

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scrcpy-menu",
        description="Keyboard-driven launcher for scrcpy presets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m scrcpy_menu                      # Launch interactive menu
  python -m scrcpy_menu -p gaming            # Launch the best match for 'gaming'
  python -m scrcpy_menu -p gaming -r         # ...and record it
  python -m scrcpy_menu -s R58M12345 -p Default
  python -m scrcpy_menu --log --realtime     # Log scrcpy output to the log file
        """
    )

    # Launching
    parser.add_argument("-s", "--serial", metavar="SERIAL",
                        help="Device serial to use (stored for next time)")
    parser.add_argument("-p", "--preset", metavar="NAME",
                        help="Launch a preset directly (fuzzy matched)")
    parser.add_argument("-r", "--record", action="store_true",
                        help="Record the direct launch")

    # Behaviour
    parser.add_argument("--no-clear", action="store_true",
                        help="Don't clear the screen between menus")
    parser.add_argument("--realtime", action="store_true",
                        help="Capture scrcpy output line by line")

    # Paths
    parser.add_argument("--config", metavar="PATH", default=CONFIG_FILE,
                        help="Configuration file")
    parser.add_argument("--scrcpy", metavar="PATH", default="scrcpy",
                        help="scrcpy executable")
    parser.add_argument("--adb", metavar="PATH", default="adb",
                        help="adb executable")

    # Logging
    parser.add_argument("--log", action="store_true",
                        help="Write a log file")
    parser.add_argument("--log-file", metavar="PATH", default=LOG_FILE,
                        help="Log file location")
    parser.add_argument("--log-max-kb", metavar="KB", type=int, default=LOG_MAX_KB,
                        help="Trim the log at startup once it exceeds this size")
    parser.add_argument("--log-trim-percent", metavar="N", type=int, default=LOG_TRIM_PERCENT,
                        help="Percentage of the oldest log lines to drop when trimming")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings(
        config_path=args.config,
        log_path=args.log_file,
        logging_enabled=args.log,
        log_max_kb=args.log_max_kb,
        log_trim_percent=args.log_trim_percent,
        clear_screen=not args.no_clear,
        realtime=args.realtime,
        scrcpy_path=args.scrcpy,
        adb_path=args.adb,
    )


def resolve_preset_argument(query: str, store: PresetStore, ui) -> Optional[str]:
    """Turn the --preset value into a preset name, asking before using a fuzzy match."""
    query = query.strip()
    if query.startswith("-"):
        print(f"❌ '{query}' looks like an option, not a preset name")
        return None

    preset = store.find(query)
    if preset:
        return preset.name

    match = best_match(query, store.presets)
    if match is None:
        print(f"❌ No preset matches '{query}'")
        logger.warning("No preset matches %s", query)
        return None

    if not ui.confirm(f"Launch preset '{match.name}'?", default=True):
        logger.info("Declined fuzzy match %s for %s", match.name, query)
        return None
    return match.name


def direct_launch(query: str, store: PresetStore, directory: DeviceDirectory,
                  ui, settings: Settings, record: bool = False,
                  launcher=launch) -> Outcome:
    """Launch a preset named on the command line without the main menu."""
    name = resolve_preset_argument(query, store, ui)
    if name is None:
        return Outcome.ABORTED
    session = Session(store, directory, ui, settings, launcher=launcher)
    return session.run(name, record=record, forced=True)


def run_interactive(store: PresetStore, directory: DeviceDirectory,
                    ui: TerminalUI, settings: Settings) -> None:
    """Run the main menu loop until the user quits."""
    while True:
        action = ui.main_menu(store, directory)

        if action == 'quit':
            break
        elif action in ('launch', 'record', 'quick', 'last'):
            name = None
            if action == 'quick':
                name = store.config.quick_launch_preset
            elif action == 'last':
                name = store.config.last_used_preset
            session = Session(store, directory, ui, settings)
            outcome = session.run(name, record=(action == 'record'))
            if outcome is Outcome.EXIT:
                break
        elif action == 'presets':
            ui.manage_presets(store)
        elif action == 'devices':
            ui.device_menu(store, directory)
        elif action == 'settings':
            ui.settings_menu(store)


def run_cli(argv: Optional[List[str]] = None) -> int:
    """Run the command-line interface."""
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)

    setup_logging(settings.log_path, settings.logging_enabled,
                  settings.log_max_kb, settings.log_trim_percent)
    logger.info("Starting")

    try:
        settings.scrcpy_path = resolve_tool(settings.scrcpy_path)
        settings.adb_path = resolve_tool(settings.adb_path)
    except ToolNotFoundError as e:
        print(f"❌ {e}")
        print("   Install scrcpy (which ships adb) and make sure it is on your PATH.")
        logger.error("%s", e)
        return 1
    settings.ffmpeg_path = shutil.which("ffmpeg")

    try:
        ensure_terminal()
    except TerminalError as e:
        print(f"❌ {e}")
        logger.error("%s", e)
        return 1

    store = PresetStore(settings.config_path)
    store.load()
    if args.serial:
        store.config.selected_device = args.serial.strip()
        store.save()

    directory = DeviceDirectory(settings.adb_path)
    ui = TerminalUI(settings)

    if args.preset:
        direct_launch(args.preset, store, directory, ui, settings, record=args.record)
        return 0

    run_interactive(store, directory, ui, settings)
    return 0
