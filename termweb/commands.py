"""
Command palette actions.

Each command is a (name, description, shortcut, handler) row. Handlers
get an explicit CommandContext instead of closing over app state, and
may be plain functions or coroutines.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Union

from .browser import BrowserSession, screenshot_filename
from .config import Settings


logger = logging.getLogger(__name__)


@dataclass
class BrowserState:
    """Mutable page state shared by commands and the app."""
    current_url: str = ""


@dataclass
class CommandContext:
    session: BrowserSession
    state: BrowserState
    settings: Settings
    open_url_input: Callable[[], None]
    request_quit: Callable[[], None]
    notify: Callable[[str], None]


Handler = Callable[[CommandContext], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class Command:
    name: str
    description: str
    handler: Handler
    shortcut: Optional[str] = None

    async def run(self, ctx: CommandContext):
        logger.info("running command %s", self.name)
        result = self.handler(ctx)
        if inspect.isawaitable(result):
            await result


async def go_back(ctx: CommandContext):
    ctx.state.current_url = await ctx.session.go_back()


async def go_forward(ctx: CommandContext):
    ctx.state.current_url = await ctx.session.go_forward()


async def refresh_page(ctx: CommandContext):
    await ctx.session.reload()


def go_to_url(ctx: CommandContext):
    ctx.open_url_input()


async def scroll_to_top(ctx: CommandContext):
    await ctx.session.scroll_to_top()


async def scroll_to_bottom(ctx: CommandContext):
    await ctx.session.scroll_to_bottom()


async def page_up(ctx: CommandContext):
    await ctx.session.scroll_pages(-1)


async def page_down(ctx: CommandContext):
    await ctx.session.scroll_pages(1)


async def zoom_in(ctx: CommandContext):
    await ctx.session.zoom_by(0.1)


async def zoom_out(ctx: CommandContext):
    await ctx.session.zoom_by(-0.1)


async def reset_zoom(ctx: CommandContext):
    await ctx.session.reset_zoom()


def copy_current_url(ctx: CommandContext):
    # No clipboard access from the terminal; show the address instead
    ctx.state.current_url = ctx.session.url
    ctx.notify(ctx.state.current_url)


async def take_screenshot(ctx: CommandContext):
    path = await ctx.session.save_full_page(screenshot_filename())
    ctx.notify(f"Saved {path}")


async def toggle_javascript(ctx: CommandContext):
    blocked = await ctx.session.toggle_scripts()
    ctx.notify("JavaScript blocked" if blocked else "JavaScript enabled")


async def clear_cookies(ctx: CommandContext):
    await ctx.session.clear_cookies()
    ctx.notify("Cookies cleared")


def quit_app(ctx: CommandContext):
    ctx.request_quit()


def build_commands() -> List[Command]:
    """All commands in palette order."""
    return [
        Command("Go Back", "Navigate to previous page", go_back, "Alt+←"),
        Command("Go Forward", "Navigate to next page", go_forward, "Alt+→"),
        Command("Refresh Page", "Reload the current page", refresh_page, "Ctrl+R"),
        Command("Go to URL", "Navigate to a new URL", go_to_url, "Ctrl+L"),
        Command("Scroll to Top", "Scroll to the top of the page", scroll_to_top, "Home"),
        Command("Scroll to Bottom", "Scroll to the bottom of the page", scroll_to_bottom, "End"),
        Command("Page Up", "Scroll up one page", page_up, "PgUp"),
        Command("Page Down", "Scroll down one page", page_down, "PgDn"),
        Command("Zoom In", "Increase page zoom", zoom_in, "Ctrl++"),
        Command("Zoom Out", "Decrease page zoom", zoom_out, "Ctrl+-"),
        Command("Reset Zoom", "Reset page zoom to 100%", reset_zoom, "Ctrl+0"),
        Command("Copy Current URL", "Copy the current page URL", copy_current_url, "Ctrl+Shift+C"),
        Command("Screenshot", "Take a full-page screenshot", take_screenshot),
        Command("Toggle JavaScript", "Block or allow JavaScript on this page", toggle_javascript),
        Command("Clear Cookies", "Clear all cookies for this site", clear_cookies),
        Command("Quit", "Exit the browser", quit_app, "Ctrl+Q"),
    ]
