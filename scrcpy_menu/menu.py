"""Scrollable keyboard-driven menus."""

import sys
from dataclasses import dataclass
from typing import Collection, Dict, List, Optional, Sequence, TextIO, Tuple

from .config import VIEWPORT_SIZE
from .keys import Key, KeyEvent, KeyReader, read_key
from .utils import BOLD, CYAN, DIM, GREEN, REVERSE, YELLOW, clear_screen, style

EXIT_LETTER = "q"

HIGHLIGHT_STYLES = {
    'favorite': (YELLOW,),
    'quick': (CYAN,),
    'active': (GREEN,),
}


@dataclass(frozen=True)
class MenuResult:
    """What ended a menu: the selected index and the key that ended it."""
    index: int
    key: str

    @property
    def cancelled(self) -> bool:
        return self.key in ("escape", "exit")


def viewport(total: int, selected: int, cap: int = VIEWPORT_SIZE) -> Tuple[int, int]:
    """Return the [start, end) window of items to show, centred on selected."""
    if total <= cap:
        return 0, total
    start = selected - cap // 2
    start = max(0, min(start, total - cap))
    return start, start + cap


def move_selection(selected: int, delta: int, total: int,
                   categories: Collection[int] = (),
                   skip_categories: bool = True) -> int:
    """Move the selection by one step in the direction of delta."""
    if total <= 0:
        return selected
    step = 1 if delta > 0 else -1
    index = selected + step

    if not skip_categories:
        return max(0, min(index, total - 1))

    while 0 <= index < total:
        if index not in categories:
            return index
        index += step
    return selected


def page_selection(selected: int, delta: int, total: int,
                   categories: Collection[int] = (),
                   skip_categories: bool = True) -> int:
    """Jump by delta items, landing on the nearest navigable index."""
    if total <= 0:
        return selected
    target = max(0, min(selected + delta, total - 1))
    if not skip_categories or target not in categories:
        return target

    # Prefer the direction of travel, then fall back towards the start point
    step = 1 if delta > 0 else -1
    index = target
    while 0 <= index < total:
        if index not in categories:
            return index
        index += step
    index = target
    while index != selected:
        if index not in categories:
            return index
        index -= step
    return selected


def first_selectable(total: int, categories: Collection[int] = (), start: int = 0) -> int:
    """Return start if navigable, otherwise the next navigable index."""
    if total <= 0:
        return 0
    start = max(0, min(start, total - 1))
    for index in list(range(start, total)) + list(range(start - 1, -1, -1)):
        if index not in categories:
            return index
    return start


def _event_name(event: KeyEvent) -> str:
    if event.printable:
        return event.char
    return event.kind.value


def handle_key(selected: int, event: KeyEvent, total: int,
               categories: Collection[int] = (),
               skip_categories: bool = True,
               extra_keys: Collection[str] = (),
               cap: int = VIEWPORT_SIZE) -> Tuple[int, Optional[MenuResult]]:
    """Apply one key event; return the new selection and a result if the menu ends."""
    kind = event.kind

    if kind is Key.UP:
        return move_selection(selected, -1, total, categories, skip_categories), None
    if kind is Key.DOWN:
        return move_selection(selected, 1, total, categories, skip_categories), None
    if kind is Key.PAGE_UP:
        return page_selection(selected, -cap, total, categories, skip_categories), None
    if kind is Key.PAGE_DOWN:
        return page_selection(selected, cap, total, categories, skip_categories), None
    if kind is Key.HOME:
        return first_selectable(total, categories if skip_categories else ()), None
    if kind is Key.END:
        last = page_selection(selected, total, total, categories, skip_categories)
        return last, None

    if kind is Key.ENTER:
        if total == 0:
            return selected, None
        return selected, MenuResult(selected, "enter")
    if kind is Key.ESCAPE:
        return selected, MenuResult(-1, "escape")

    name = _event_name(event)
    if name in extra_keys:
        return selected, MenuResult(selected, name)
    if event.printable and name.lower() in extra_keys:
        return selected, MenuResult(selected, name.lower())
    if event.is_letter(EXIT_LETTER):
        return selected, MenuResult(-1, "exit")

    return selected, None


def _item_line(label: str, index: int, selected: int,
               categories: Collection[int],
               highlights: Dict[int, str]) -> str:
    if index in categories:
        return "   " + style(label, BOLD, CYAN)

    codes = HIGHLIGHT_STYLES.get(highlights.get(index, ""), ())
    if index == selected:
        return style(" ▶ " + label, REVERSE, *codes)
    return "   " + style(label, *codes)


def render_menu(title: str, options: Sequence[str], selected: int = 0,
                categories: Collection[int] = (),
                highlights: Optional[Dict[int, str]] = None,
                footer: Sequence[str] = (),
                header: Sequence[str] = (),
                cap: int = VIEWPORT_SIZE) -> List[str]:
    """Build the lines of one menu frame.

    The frame always has the same height for a given header, footer and cap:
    long lists show a window of `cap` items between two indicator lines, short
    lists are padded with blank lines.
    """
    highlights = highlights or {}
    total = len(options)

    lines = ["=" * 60, f"  {title}", "=" * 60]
    lines.extend(header)

    start, end = viewport(total, selected, cap)
    if start > 0:
        lines.append(style(f"   ↑ {start} more above", DIM))
    else:
        lines.append("")

    for index in range(start, end):
        lines.append(_item_line(options[index], index, selected, categories, highlights))

    if total <= cap:
        lines.extend([""] * (cap - total))

    if end < total:
        lines.append(style(f"   ↓ {total - end} more below", DIM))
    else:
        lines.append("")

    lines.extend(footer)
    return lines


def show_menu(title: str, options: Sequence[str], selected: int = 0,
              categories: Collection[int] = (),
              highlights: Optional[Dict[int, str]] = None,
              footer: Sequence[str] = (),
              header: Sequence[str] = (),
              extra_keys: Collection[str] = (),
              cap: int = VIEWPORT_SIZE,
              skip_categories: bool = True,
              clear: bool = True,
              reader: KeyReader = read_key,
              out: TextIO = sys.stdout) -> MenuResult:
    """Show a menu and block until Enter, Escape, q or an extra key is pressed."""
    categories = frozenset(categories)
    total = len(options)
    if skip_categories:
        selected = first_selectable(total, categories, selected)
    else:
        selected = max(0, min(selected, total - 1)) if total else 0

    while True:
        frame = render_menu(title, options, selected, categories, highlights,
                            footer, header, cap)
        if clear:
            clear_screen(out)
        else:
            out.write("\n")
        out.write("\n".join(frame) + "\n")
        out.flush()

        event = reader()
        selected, result = handle_key(selected, event, total, categories,
                                      skip_categories, extra_keys, cap)
        if result is not None:
            return result
