from scrcpy_menu.keys import Key, KeyEvent, decode_key
from scrcpy_menu.menu import (
    MenuResult, first_selectable, handle_key, move_selection, page_selection,
    render_menu, show_menu, viewport,
)
from scrcpy_menu.utils import strip_ansi


def test_viewport_always_contains_selection():
    cap = 19
    for total in (20, 25, 40, 100):
        for selected in range(total):
            start, end = viewport(total, selected, cap)
            assert 0 <= start <= total - cap
            assert end - start == cap
            assert start <= selected < end


def test_viewport_centres_selection():
    assert viewport(100, 50, 19) == (41, 60)
    assert viewport(100, 0, 19) == (0, 19)
    assert viewport(100, 99, 19) == (81, 100)


def test_viewport_short_list_shows_everything():
    assert viewport(5, 3, 19) == (0, 5)
    assert viewport(0, 0, 19) == (0, 0)


def test_move_selection_clamps_at_bounds():
    assert move_selection(0, -1, 5) == 0
    assert move_selection(4, 1, 5) == 4
    assert move_selection(2, 1, 5) == 3


def test_move_selection_skips_categories():
    categories = {1, 2, 5}
    assert move_selection(0, 1, 7, categories) == 3
    assert move_selection(3, -1, 7, categories) == 0
    assert move_selection(4, 1, 7, categories) == 6


def test_move_selection_never_lands_on_category():
    categories = {0, 3, 4, 7}
    total = 9
    for start in range(total):
        if start in categories:
            continue
        index = start
        for _ in range(total):
            index = move_selection(index, 1, total, categories)
            assert index not in categories


def test_move_selection_stays_when_only_categories_remain():
    assert move_selection(2, 1, 5, {3, 4}) == 2
    assert move_selection(1, -1, 5, {0}) == 1


def test_move_selection_without_skip_lands_on_categories():
    assert move_selection(0, 1, 3, {1}, skip_categories=False) == 1


def test_page_selection():
    assert page_selection(0, 19, 50) == 19
    assert page_selection(40, 19, 50) == 49
    assert page_selection(10, -19, 50) == 0
    assert page_selection(0, 19, 50, {19, 20}) == 21
    assert page_selection(30, 19, 50, {49}) == 48


def test_first_selectable():
    assert first_selectable(5, {0, 1}) == 2
    assert first_selectable(5, {0}, start=3) == 3
    assert first_selectable(3, {2}, start=2) == 1
    assert first_selectable(0) == 0


def test_handle_key_terminal_events():
    enter = KeyEvent(Key.ENTER)
    assert handle_key(2, enter, 5) == (2, MenuResult(2, "enter"))
    assert handle_key(2, KeyEvent(Key.ESCAPE), 5) == (2, MenuResult(-1, "escape"))
    assert handle_key(2, decode_key("q"), 5) == (2, MenuResult(-1, "exit"))
    assert handle_key(2, decode_key("x"), 5) == (2, None)


def test_handle_key_passes_extra_keys_through():
    selected, result = handle_key(3, decode_key("d"), 5, extra_keys=("d", "/"))
    assert selected == 3
    assert result == MenuResult(3, "d")

    _, result = handle_key(1, decode_key("/"), 5, extra_keys=("d", "/"))
    assert result == MenuResult(1, "/")

    _, result = handle_key(1, decode_key("D"), 5, extra_keys=("d",))
    assert result == MenuResult(1, "d")


def test_handle_key_extra_key_can_override_exit_letter():
    _, result = handle_key(1, decode_key("q"), 5, extra_keys=("q",))
    assert result == MenuResult(1, "q")


def test_enter_on_empty_list_does_nothing():
    assert handle_key(0, KeyEvent(Key.ENTER), 0) == (0, None)


def test_menu_result_cancelled():
    assert MenuResult(-1, "escape").cancelled
    assert MenuResult(-1, "exit").cancelled
    assert not MenuResult(0, "enter").cancelled


def _frame(total, selected, cap=5, **kwargs):
    options = [f"item {i}" for i in range(total)]
    return [strip_ansi(line) for line in render_menu("Title", options, selected, cap=cap, **kwargs)]


def test_render_height_is_constant():
    heights = set()
    for total in (0, 1, 3, 5, 6, 12):
        for selected in range(max(total, 1)):
            heights.add(len(_frame(total, selected, footer=["footer"])))
    assert len(heights) == 1


def test_render_scroll_indicators():
    lines = _frame(12, 0)
    assert "item 0" in lines[4]
    assert any("7 more below" in line for line in lines)
    assert not any("more above" in line for line in lines)

    lines = _frame(12, 11)
    assert any("7 more above" in line for line in lines)
    assert not any("more below" in line for line in lines)

    lines = _frame(12, 6)
    assert any("4 more above" in line for line in lines)
    assert any("3 more below" in line for line in lines)


def test_render_marks_selected_item():
    lines = _frame(3, 1)
    assert "▶ item 1" in "\n".join(lines)
    assert "▶ item 0" not in "\n".join(lines)


def test_render_empty_list():
    lines = _frame(0, 0, footer=["press n"])
    assert "Title" in lines[1]
    assert lines[-1] == "press n"
    assert not any("item" in line for line in lines)


def test_show_menu_navigates_and_selects(keys, out):
    reader = keys("down", "down", "up", "enter")
    result = show_menu("Pick", ["a", "b", "c"], reader=reader, out=out, clear=False)
    assert result == MenuResult(1, "enter")


def test_show_menu_skips_categories(keys, out):
    reader = keys("down", "enter")
    result = show_menu("Pick", ["head", "a", "head", "b"], categories={0, 2},
                       reader=reader, out=out, clear=False)
    assert result == MenuResult(3, "enter")


def test_show_menu_escape(keys, out):
    result = show_menu("Pick", ["a"], reader=keys("esc"), out=out, clear=False)
    assert result.cancelled
    assert result.index == -1


def test_show_menu_empty_list_renders(keys, out):
    result = show_menu("Nothing", [], footer=["hint"], reader=keys("enter", "q"),
                       out=out, clear=False)
    assert result == MenuResult(-1, "exit")
    assert "Nothing" in out.getvalue()
