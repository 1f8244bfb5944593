"""Single-line text input with cursor movement."""

import sys
from typing import Optional, TextIO, Tuple

from .keys import Key, KeyEvent, KeyReader, read_key
from .utils import CLEAR_TO_END, DIM, display_width, style, terminal_width

COMMIT = "commit"
CANCEL = "cancel"


class LineBuffer:
    """Editable text with a cursor in [0, len(text)]."""

    def __init__(self, text: str = ""):
        self.text = text
        self.cursor = len(text)

    def insert(self, chars: str) -> None:
        self.text = self.text[:self.cursor] + chars + self.text[self.cursor:]
        self.cursor += len(chars)

    def backspace(self) -> None:
        if self.cursor > 0:
            self.text = self.text[:self.cursor - 1] + self.text[self.cursor:]
            self.cursor -= 1

    def delete(self) -> None:
        if self.cursor < len(self.text):
            self.text = self.text[:self.cursor] + self.text[self.cursor + 1:]

    def left(self) -> None:
        self.cursor = max(0, self.cursor - 1)

    def right(self) -> None:
        self.cursor = min(len(self.text), self.cursor + 1)

    def home(self) -> None:
        self.cursor = 0

    def end(self) -> None:
        self.cursor = len(self.text)

    def apply(self, event: KeyEvent) -> Optional[str]:
        """Apply a key event; returns COMMIT or CANCEL when editing ends."""
        kind = event.kind
        if kind is Key.ENTER:
            return COMMIT
        if kind is Key.ESCAPE:
            return CANCEL

        if event.printable:
            self.insert(event.char)
        elif kind is Key.BACKSPACE:
            self.backspace()
        elif kind is Key.DELETE:
            self.delete()
        elif kind is Key.LEFT:
            self.left()
        elif kind is Key.RIGHT:
            self.right()
        elif kind is Key.HOME:
            self.home()
        elif kind is Key.END:
            self.end()
        return None


def cursor_offset(prefix_cells: int, cursor_cells: int, width: int) -> Tuple[int, int]:
    """Row and column of the cursor relative to the start of a wrapped input line.

    Both offsets are in terminal cells, not characters.
    """
    width = max(1, width)
    return divmod(prefix_cells + cursor_cells, width)


class _LineView:
    """Redraws a prompt line in place, tracking which row the cursor is on."""

    def __init__(self, prefix: str, out: TextIO, width: int):
        self.prefix = prefix
        self.prefix_cells = display_width(prefix)
        self.out = out
        self.width = max(1, width)
        self.cursor_row = 0

    def draw(self, buffer: LineBuffer) -> None:
        out = self.out
        if self.cursor_row:
            out.write(f"\x1b[{self.cursor_row}A")
        out.write("\r" + CLEAR_TO_END)
        out.write(self.prefix + buffer.text)

        end_row, end_col = cursor_offset(self.prefix_cells, display_width(buffer.text), self.width)
        if end_col == 0 and end_row > 0:
            # Force the pending wrap so the cursor really is on the next row
            out.write(" \r")

        row, col = cursor_offset(self.prefix_cells,
                                 display_width(buffer.text[:buffer.cursor]), self.width)
        if end_row > row:
            out.write(f"\x1b[{end_row - row}A")
        out.write("\r")
        if col:
            out.write(f"\x1b[{col}C")
        out.flush()
        self.cursor_row = row

    def finish(self, buffer: LineBuffer) -> None:
        buffer.end()
        self.draw(buffer)
        self.out.write("\r\n")
        self.out.flush()


def prompt_line(label: str, default: str = "",
                reader: KeyReader = read_key,
                out: TextIO = sys.stdout,
                width: Optional[int] = None) -> Optional[str]:
    """Prompt for one line of text.

    Returns the committed text (possibly empty) or None if Escape was pressed.
    """
    buffer = LineBuffer(default)
    view = _LineView(f"   {label}: ", out, width or terminal_width())
    view.draw(buffer)

    while True:
        outcome = buffer.apply(reader())
        if outcome == COMMIT:
            view.finish(buffer)
            return buffer.text
        if outcome == CANCEL:
            view.finish(buffer)
            return None
        view.draw(buffer)


def confirm(question: str, default: bool = False,
            reader: KeyReader = read_key,
            out: TextIO = sys.stdout) -> bool:
    """Ask a yes/no question, answered with a single key."""
    hint = "[Y/n]" if default else "[y/N]"
    out.write(f"   {question} {style(hint, DIM)} ")
    out.flush()

    while True:
        event = reader()
        if event.is_letter("y"):
            answer = True
        elif event.is_letter("n") or event.kind is Key.ESCAPE:
            answer = False
        elif event.kind is Key.ENTER:
            answer = default
        else:
            continue
        out.write(("yes" if answer else "no") + "\r\n")
        out.flush()
        return answer
