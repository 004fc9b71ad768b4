from __future__ import annotations

from termweb.commands import build_commands
from termweb.display import Screen
from termweb.input import KeyPress
from termweb.widgets import (
    CommandPalette,
    ModalController,
    NavigateTo,
    RunCommand,
    TextInput,
    UIMode,
    UrlDialog,
)

from conftest import FakeTerm


def _type(widget, text):
    for char in text:
        widget.handle_key(KeyPress(name=char, sequence=char))


def test_text_input_inserts_at_cursor():
    field = TextInput("ac")
    field.handle_key(KeyPress(name="left"))
    field.handle_key(KeyPress(name="b", sequence="b"))
    assert field.value == "abc"
    assert field.cursor == 2


def test_text_input_backspace_and_delete():
    field = TextInput("abcd")
    field.handle_key(KeyPress(name="backspace"))
    assert field.value == "abc"
    field.handle_key(KeyPress(name="home"))
    field.handle_key(KeyPress(name="delete"))
    assert field.value == "bc"
    assert field.handle_key(KeyPress(name="backspace")) is False


def test_text_input_cursor_stays_in_bounds():
    field = TextInput("ab")
    field.handle_key(KeyPress(name="right"))
    assert field.cursor == 2
    for _ in range(5):
        field.handle_key(KeyPress(name="left"))
    assert field.cursor == 0


def test_text_input_ctrl_u_clears_before_cursor():
    field = TextInput("https://start.test/")
    assert field.handle_key(KeyPress(name="u", sequence="\x15", ctrl=True))
    assert field.value == ""


def test_text_input_ignores_ctrl_letters():
    field = TextInput("x")
    assert field.handle_key(KeyPress(name="b", sequence="b", ctrl=True)) is False
    assert field.value == "x"


def test_url_dialog_enter_navigates_to_trimmed_text():
    dialog = UrlDialog("")
    _type(dialog, "  example.com ")
    assert dialog.handle_key(KeyPress(name="return")) == NavigateTo("example.com")


def test_url_dialog_enter_on_empty_text_does_nothing():
    dialog = UrlDialog("")
    _type(dialog, "   ")
    assert dialog.handle_key(KeyPress(name="return")) is None


def test_palette_filters_on_name_and_description():
    palette = CommandPalette(build_commands())
    _type(palette, "zoom")
    assert [c.name for c in palette.filtered] == ["Zoom In", "Zoom Out", "Reset Zoom"]

    palette = CommandPalette(build_commands())
    _type(palette, "COOKIES")
    assert [c.name for c in palette.filtered] == ["Clear Cookies"]


def test_palette_filter_resets_selection():
    palette = CommandPalette(build_commands())
    palette.move_down()
    palette.move_down()
    _type(palette, "z")
    assert palette.selected == 0


def test_palette_selection_wraps():
    palette = CommandPalette(build_commands())
    palette.move_up()
    assert palette.selected_command.name == "Quit"
    palette.move_down()
    assert palette.selected_command.name == "Go Back"


def test_palette_tab_and_shift_tab():
    palette = CommandPalette(build_commands())
    palette.handle_key(KeyPress(name="tab"))
    assert palette.selected == 1
    palette.handle_key(KeyPress(name="tab", shift=True))
    assert palette.selected == 0


def test_palette_enter_with_no_matches():
    palette = CommandPalette(build_commands())
    _type(palette, "nothing matches this")
    assert palette.filtered == []
    assert palette.handle_key(KeyPress(name="return")) is None


def test_palette_label_includes_shortcut():
    commands = {c.name: c for c in build_commands()}
    assert CommandPalette.label(commands["Quit"]) == "Quit  (Ctrl+Q)"
    assert CommandPalette.label(commands["Screenshot"]) == "Screenshot"


def test_controller_holds_one_modal():
    modals = ModalController()
    assert modals.mode is UIMode.NORMAL

    modals.open_url_input("https://a.test/")
    modals.open_command_palette(build_commands())
    assert modals.mode is UIMode.URL_INPUT


def test_controller_escape_closes():
    modals = ModalController()
    modals.open_command_palette(build_commands())
    assert modals.handle_key(KeyPress(name="escape")) is None
    assert not modals.is_open


def test_controller_closes_before_returning_outcome():
    modals = ModalController()
    modals.open_command_palette(build_commands())
    modals.handle_key(KeyPress(name="down"))

    outcome = modals.handle_key(KeyPress(name="return"))

    assert isinstance(outcome, RunCommand)
    assert outcome.command.name == "Go Forward"
    assert modals.mode is UIMode.NORMAL


def test_url_dialog_draws_prefilled_box():
    screen = Screen(FakeTerm(80, 24))
    dialog = UrlDialog("https://a.test/")
    dialog.draw(screen)

    # 60 wide, 3 high, centred
    assert screen.cell(10, 10).glyph == "╭"
    assert screen.cell(69, 12).glyph == "╯"
    text = "".join(screen.cell(x, 11).glyph for x in range(12, 12 + len("https://a.test/")))
    assert text == "https://a.test/"


def test_palette_draw_on_tiny_screen_is_skipped():
    screen = Screen(FakeTerm(8, 4))
    CommandPalette(build_commands()).draw(screen)
    assert all(screen.cell(x, y).glyph == " " for x in range(8) for y in range(4))
