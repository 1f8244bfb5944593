"""Keystroke capture and decoding into semantic key events."""

import enum
import os
import sys
from dataclasses import dataclass
from typing import Callable


class TerminalError(RuntimeError):
    """Raised when the terminal cannot be read in raw mode."""


class Key(enum.Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ENTER = "enter"
    ESCAPE = "escape"
    BACKSPACE = "backspace"
    DELETE = "delete"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    HOME = "home"
    END = "end"
    CHARACTER = "character"
    LETTER = "letter"
    OTHER = "other"


@dataclass(frozen=True)
class KeyEvent:
    kind: Key
    char: str = ""

    def is_letter(self, letter: str) -> bool:
        return self.kind is Key.LETTER and self.char.lower() == letter.lower()

    @property
    def printable(self) -> bool:
        return self.kind in (Key.CHARACTER, Key.LETTER)


KeyReader = Callable[[], KeyEvent]

ESCAPE_SEQUENCES = {
    "[A": Key.UP,
    "[B": Key.DOWN,
    "[C": Key.RIGHT,
    "[D": Key.LEFT,
    "[H": Key.HOME,
    "[F": Key.END,
    "OA": Key.UP,
    "OB": Key.DOWN,
    "OC": Key.RIGHT,
    "OD": Key.LEFT,
    "OH": Key.HOME,
    "OF": Key.END,
    "[1~": Key.HOME,
    "[3~": Key.DELETE,
    "[4~": Key.END,
    "[5~": Key.PAGE_UP,
    "[6~": Key.PAGE_DOWN,
    "[7~": Key.HOME,
    "[8~": Key.END,
}

# Second byte after a '\x00' or '\xe0' prefix from msvcrt.getwch()
WINDOWS_SCAN_CODES = {
    "H": Key.UP,
    "P": Key.DOWN,
    "K": Key.LEFT,
    "M": Key.RIGHT,
    "G": Key.HOME,
    "O": Key.END,
    "I": Key.PAGE_UP,
    "Q": Key.PAGE_DOWN,
    "S": Key.DELETE,
}


def decode_key(sequence: str) -> KeyEvent:
    """Decode a raw key sequence into a KeyEvent."""
    if not sequence:
        return KeyEvent(Key.OTHER)

    if sequence == "\x03":
        raise KeyboardInterrupt

    if sequence[0] in ("\x00", "\xe0") and len(sequence) == 2:
        return KeyEvent(WINDOWS_SCAN_CODES.get(sequence[1], Key.OTHER))

    if sequence == "\x1b":
        return KeyEvent(Key.ESCAPE)

    if sequence.startswith("\x1b"):
        return KeyEvent(ESCAPE_SEQUENCES.get(sequence[1:], Key.OTHER))

    if sequence in ("\r", "\n", "\r\n"):
        return KeyEvent(Key.ENTER)

    if sequence in ("\x7f", "\b"):
        return KeyEvent(Key.BACKSPACE)

    if len(sequence) == 1 and sequence.isprintable():
        if sequence.isascii() and sequence.isalpha():
            return KeyEvent(Key.LETTER, sequence)
        return KeyEvent(Key.CHARACTER, sequence)

    return KeyEvent(Key.OTHER)


def _read_posix_sequence(fd: int) -> str:
    """Read one key (including a full escape sequence) from a raw-mode fd."""
    import select

    data = os.read(fd, 1)
    if data != b"\x1b":
        # Multi-byte UTF-8 characters arrive one byte at a time
        while True:
            try:
                return data.decode('utf-8')
            except UnicodeDecodeError:
                if len(data) >= 4:
                    return ""
                ready, _, _ = select.select([fd], [], [], 0.01)
                if not ready:
                    return ""
                data += os.read(fd, 1)

    sequence = "\x1b"
    while True:
        ready, _, _ = select.select([fd], [], [], 0.03)
        if not ready:
            break
        sequence += os.read(fd, 1).decode('utf-8', errors='ignore')
        last = sequence[-1:]
        if len(sequence) > 2 and (last.isalpha() or last == "~"):
            break
    return sequence


def _read_posix() -> KeyEvent:
    import termios
    import tty

    fd = sys.stdin.fileno()
    try:
        old_settings = termios.tcgetattr(fd)
    except termios.error as e:
        raise TerminalError(f"Terminal is not interactive: {e}") from e

    try:
        tty.setraw(fd)
        sequence = _read_posix_sequence(fd)
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
    return decode_key(sequence)


def _read_windows() -> KeyEvent:
    import msvcrt

    ch = msvcrt.getwch()
    if ch in ("\x00", "\xe0"):
        ch += msvcrt.getwch()
    return decode_key(ch)


def read_key() -> KeyEvent:
    """Block until one key is pressed and return its event."""
    if os.name == "nt":
        return _read_windows()
    return _read_posix()


def ensure_terminal() -> None:
    """Fail early when stdin is not an interactive terminal."""
    if not sys.stdin.isatty():
        raise TerminalError("stdin is not a terminal")
    if os.name == "nt":
        return

    import termios

    try:
        termios.tcgetattr(sys.stdin.fileno())
    except termios.error as e:
        raise TerminalError(f"Terminal is not interactive: {e}") from e
