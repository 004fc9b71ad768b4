"""
Modal dialogs drawn over the page: URL input and command palette.

At most one modal exists at a time; ModalController owns it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Union

from .converter import RGB
from .input import KeyPress


def hex_color(value: str) -> RGB:
    value = value.lstrip("#")
    return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


class Colors:
    PANEL = hex_color("#1a1a2e")
    BORDER = hex_color("#4a9eff")
    TEXT = hex_color("#ffffff")
    PLACEHOLDER = hex_color("#666666")
    INPUT = hex_color("#252545")
    OPTION = hex_color("#cccccc")
    SELECTED = hex_color("#4a9eff")
    DESCRIPTION = hex_color("#888888")
    SELECTED_DESCRIPTION = hex_color("#dddddd")


class BoxChars:
    """Rounded box-drawing characters."""
    H = "─"
    V = "│"
    TL = "╭"
    TR = "╮"
    BL = "╰"
    BR = "╯"


class UIMode(Enum):
    NORMAL = "normal"
    URL_INPUT = "url_input"
    COMMAND_PALETTE = "command_palette"


@dataclass(frozen=True)
class NavigateTo:
    """Outcome of the URL dialog: load this text as a URL."""
    text: str


@dataclass(frozen=True)
class RunCommand:
    """Outcome of the command palette: run this command."""
    command: object


ModalOutcome = Union[NavigateTo, RunCommand]


def draw_box(screen, x: int, y: int, width: int, height: int, title: str = ""):
    """Rounded box with a centred title, interior filled with the panel colour."""
    screen.fill(x, y, width, height, Colors.PANEL)
    inner = width - 2

    top = BoxChars.H * inner
    if title and len(title) <= inner:
        start = (inner - len(title)) // 2
        top = top[:start] + title + top[start + len(title):]

    screen.draw_text(x, y, BoxChars.TL + top + BoxChars.TR, Colors.BORDER, Colors.PANEL)
    for row in range(y + 1, y + height - 1):
        screen.set_cell(x, row, BoxChars.V, Colors.BORDER, Colors.PANEL)
        screen.set_cell(x + width - 1, row, BoxChars.V, Colors.BORDER, Colors.PANEL)
    screen.draw_text(
        x, y + height - 1,
        BoxChars.BL + BoxChars.H * inner + BoxChars.BR,
        Colors.BORDER, Colors.PANEL
    )


class TextInput:
    """Single-line editable text with a cursor."""

    def __init__(self, value: str = "", placeholder: str = ""):
        self.value = value
        self.placeholder = placeholder
        self.cursor = len(value)

    def insert(self, text: str):
        self.value = self.value[:self.cursor] + text + self.value[self.cursor:]
        self.cursor += len(text)

    def handle_key(self, event: KeyPress) -> bool:
        """Apply an editing key. Returns True when the value changed."""
        if event.name == "backspace":
            if self.cursor == 0:
                return False
            self.value = self.value[:self.cursor - 1] + self.value[self.cursor:]
            self.cursor -= 1
            return True
        if event.name == "delete":
            if self.cursor >= len(self.value):
                return False
            self.value = self.value[:self.cursor] + self.value[self.cursor + 1:]
            return True
        if event.name == "left":
            self.cursor = max(0, self.cursor - 1)
        elif event.name == "right":
            self.cursor = min(len(self.value), self.cursor + 1)
        elif event.name == "home" or (event.ctrl and event.name == "a"):
            self.cursor = 0
        elif event.name == "end" or (event.ctrl and event.name == "e"):
            self.cursor = len(self.value)
        elif event.ctrl and event.name == "u":
            self.value = self.value[self.cursor:]
            self.cursor = 0
            return True
        elif not (event.ctrl or event.meta) and len(event.sequence) == 1 and event.sequence.isprintable():
            self.insert(event.sequence)
            return True
        return False

    def draw(self, screen, x: int, y: int, width: int, fg: RGB, bg: RGB):
        if width <= 0:
            return
        if not self.value:
            screen.draw_text(x, y, self.placeholder, Colors.PLACEHOLDER, bg, width)
            screen.set_cell(x, y, (self.placeholder or " ")[0], bg, fg)
            return

        # Scroll horizontally so the cursor stays visible
        offset = max(0, self.cursor - width + 1)
        visible = self.value[offset:offset + width]
        screen.draw_text(x, y, visible, fg, bg, width)

        column = self.cursor - offset
        char = self.value[self.cursor] if self.cursor < len(self.value) else " "
        screen.set_cell(x + column, y, char, bg, fg)


class UrlDialog:
    """Go-to-URL prompt, prefilled with the current address."""

    mode = UIMode.URL_INPUT
    TITLE = " Go to URL "

    def __init__(self, current_url: str = ""):
        self.input = TextInput(current_url, placeholder="Enter URL...")

    def handle_key(self, event: KeyPress) -> Optional[NavigateTo]:
        if event.name in ("return", "enter"):
            text = self.input.value.strip()
            return NavigateTo(text) if text else None
        self.input.handle_key(event)
        return None

    def draw(self, screen):
        width = min(60, screen.width - 4)
        height = 3
        if width < 6 or screen.height < height:
            return
        x = (screen.width - width) // 2
        y = (screen.height - height) // 2
        draw_box(screen, x, y, width, height, self.TITLE)
        self.input.draw(screen, x + 2, y + 1, width - 4, Colors.TEXT, Colors.PANEL)


class CommandPalette:
    """Filterable list of commands."""

    mode = UIMode.COMMAND_PALETTE
    TITLE = " Command Palette "

    def __init__(self, commands: Sequence):
        self.commands = list(commands)
        self.input = TextInput(placeholder="Type to search commands...")
        self.filtered: List = list(self.commands)
        self.selected = 0
        self._scroll = 0

    def filter(self, term: str):
        term = term.lower()
        self.filtered = [
            command for command in self.commands
            if term in command.name.lower() or term in command.description.lower()
        ]
        self.selected = 0
        self._scroll = 0

    def move_up(self):
        if self.filtered:
            self.selected = (self.selected - 1) % len(self.filtered)

    def move_down(self):
        if self.filtered:
            self.selected = (self.selected + 1) % len(self.filtered)

    @property
    def selected_command(self):
        if not self.filtered:
            return None
        return self.filtered[self.selected]

    def handle_key(self, event: KeyPress) -> Optional[RunCommand]:
        if event.name in ("return", "enter"):
            command = self.selected_command
            return RunCommand(command) if command is not None else None
        if event.name == "up":
            self.move_up()
        elif event.name == "down":
            self.move_down()
        elif event.name == "tab":
            if event.shift:
                self.move_up()
            else:
                self.move_down()
        elif self.input.handle_key(event):
            self.filter(self.input.value)
        return None

    @staticmethod
    def label(command) -> str:
        if command.shortcut:
            return f"{command.name}  ({command.shortcut})"
        return command.name

    def draw(self, screen):
        width = min(50, screen.width - 4)
        height = min(16, screen.height - 4)
        if width < 6 or height < 4:
            return
        x = (screen.width - width) // 2
        y = (screen.height - height) // 2
        draw_box(screen, x, y, width, height, self.TITLE)

        inner_x = x + 2
        inner_width = width - 4
        screen.fill(inner_x, y + 1, inner_width, 1, Colors.INPUT)
        self.input.draw(screen, inner_x, y + 1, inner_width, Colors.TEXT, Colors.INPUT)

        # Two rows per option: label, description
        list_top = y + 3
        visible = max(0, (height - 4) // 2)
        if visible == 0:
            return
        if self.selected < self._scroll:
            self._scroll = self.selected
        elif self.selected >= self._scroll + visible:
            self._scroll = self.selected - visible + 1

        for row, command in enumerate(self.filtered[self._scroll:self._scroll + visible]):
            index = self._scroll + row
            chosen = index == self.selected
            bg = Colors.SELECTED if chosen else Colors.PANEL
            name_fg = Colors.TEXT if chosen else Colors.OPTION
            desc_fg = Colors.SELECTED_DESCRIPTION if chosen else Colors.DESCRIPTION
            top = list_top + row * 2
            screen.draw_text(inner_x, top, self.label(command), name_fg, bg, inner_width)
            screen.draw_text(inner_x, top + 1, "  " + command.description, desc_fg, bg, inner_width)


Modal = Union[UrlDialog, CommandPalette]


class ModalController:
    """
    Tracks the one open modal, if any.

    Escape closes the modal; Enter outcomes close it before they are
    returned to the caller.
    """

    def __init__(self):
        self.modal: Optional[Modal] = None

    @property
    def mode(self) -> UIMode:
        return self.modal.mode if self.modal is not None else UIMode.NORMAL

    @property
    def is_open(self) -> bool:
        return self.modal is not None

    def open_url_input(self, current_url: str = ""):
        if self.modal is None:
            self.modal = UrlDialog(current_url)

    def open_command_palette(self, commands: Sequence):
        if self.modal is None:
            self.modal = CommandPalette(commands)

    def close(self):
        self.modal = None

    def handle_key(self, event: KeyPress) -> Optional[ModalOutcome]:
        if self.modal is None:
            return None
        if event.name == "escape":
            self.close()
            return None
        outcome = self.modal.handle_key(event)
        if outcome is not None:
            self.close()
        return outcome

    def draw(self, screen):
        if self.modal is not None:
            self.modal.draw(screen)
