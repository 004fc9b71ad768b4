"""
Terminal browser application.

Wires the render loop, input translation, modal dialogs and commands
around one browser session.
"""

import asyncio
import logging
import signal
import time
from typing import Callable, Optional, Tuple

from .browser import BrowserSession, normalize_url
from .commands import BrowserState, Command, CommandContext, build_commands
from .config import Settings
from .converter import GlyphGrid
from .display import Screen, terminal_mode
from .input import InputEvent, InputTranslator, KeyPress, MouseMove, TerminalInput
from .render_loop import RenderLoop
from .viewport import ViewportMapping
from .widgets import Colors, ModalController, NavigateTo, RunCommand, UIMode


logger = logging.getLogger(__name__)

# Shell convention: 128 + signal number
QUIT_SIGNALS = {
    signal.SIGTERM: 128 + signal.SIGTERM,
    signal.SIGHUP: 128 + signal.SIGHUP,
}


class _PendingMove:
    """Queue slot for a run of pointer moves; only the newest is sent."""

    def __init__(self, event: MouseMove):
        self.event = event


class BrowserApp:
    """
    Main application class for the terminal browser.

    UI routing (modals, shortcuts) happens synchronously as events
    arrive. Anything that talks to the page is queued and performed in
    order by a single worker, so the terminal never waits on the browser.
    """

    def __init__(
        self,
        url: str,
        session: BrowserSession,
        screen: Screen,
        settings: Optional[Settings] = None,
        size_provider: Optional[Callable[[], Tuple[int, int]]] = None
    ):
        self.settings = settings or Settings()
        self.session = session
        self.screen = screen
        self.size_provider = size_provider or screen.size
        self.state = BrowserState(current_url=normalize_url(url, self.settings.default_scheme))

        self.modals = ModalController()
        self.commands = build_commands()
        self.translator = InputTranslator(
            session,
            self.size_provider,
            scale_factor=self.settings.scale_factor,
            pixels_per_tick=self.settings.scroll_step,
        )
        self.render_loop = RenderLoop(
            session,
            self.paint,
            self.size_provider,
            interval=self.settings.render_interval,
            scale_factor=self.settings.scale_factor,
        )
        self.context = CommandContext(
            session=session,
            state=self.state,
            settings=self.settings,
            open_url_input=self.open_url_input,
            request_quit=self.request_quit,
            notify=self.notify,
        )

        self.exit_code: Optional[int] = None
        self._actions: asyncio.Queue = asyncio.Queue()
        self._quit = asyncio.Event()
        self._worker: Optional[asyncio.Task] = None
        self._grid: Optional[GlyphGrid] = None
        self._notice: Optional[Tuple[str, float]] = None
        self._open_move: Optional[_PendingMove] = None

    @property
    def mode(self) -> UIMode:
        return self.modals.mode

    # Lifecycle

    async def start(self):
        """Launch the browser at the terminal-derived viewport and load the first page."""
        columns, rows = self.size_provider()
        mapping = ViewportMapping(columns, rows, self.settings.scale_factor)
        print(f"Terminal size: {columns}x{rows}")
        print(f"Launching browser at {mapping.source_width}x{mapping.source_height}...")
        await self.session.launch(*mapping.source_size)

        print(f"Loading {self.state.current_url}...")
        self.state.current_url = await self.session.navigate(self.state.current_url)

    async def run(self, term) -> int:
        """Take over the terminal and browse until quit."""
        loop = asyncio.get_running_loop()
        terminal_input = TerminalInput(term, self.handle_event)

        with terminal_mode(term):
            self.screen.resize()
            terminal_input.attach(loop)
            self.install_signal_handlers(loop)
            try:
                return await self.serve()
            finally:
                self.remove_signal_handlers(loop)
                terminal_input.detach()

    def install_signal_handlers(self, loop):
        """Resize on SIGWINCH; quit cleanly on SIGTERM and SIGHUP."""
        loop.add_signal_handler(signal.SIGWINCH, self.on_resize)
        for signum, code in QUIT_SIGNALS.items():
            loop.add_signal_handler(signum, self.request_quit, code)

    def remove_signal_handlers(self, loop):
        loop.remove_signal_handler(signal.SIGWINCH)
        for signum in QUIT_SIGNALS:
            loop.remove_signal_handler(signum)

    async def serve(self) -> int:
        """Render and process actions until a quit is requested, then shut down."""
        self.render_loop.start()
        self._worker = asyncio.ensure_future(self._process_actions())
        await self._quit.wait()
        await self.shutdown()
        return self.exit_code or 0

    async def shutdown(self):
        """Stop rendering before the browser goes away, then close it."""
        await self.render_loop.stop()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._discard_actions()
        await self.session.close()

    def request_quit(self, code: int = 0):
        if self.exit_code is None:
            self.exit_code = code
        self._quit.set()

    # Events

    def on_resize(self):
        self.screen.resize()
        self.redraw()
        self.render_loop.request_refresh()

    def handle_event(self, event: InputEvent):
        if self.modals.is_open:
            if isinstance(event, KeyPress):
                self._handle_modal_key(event)
            return

        if isinstance(event, KeyPress) and self._handle_shortcut(event):
            return

        self._enqueue(event)

    def _handle_modal_key(self, event: KeyPress):
        outcome = self.modals.handle_key(event)
        if isinstance(outcome, NavigateTo):
            self._enqueue(outcome)
        elif isinstance(outcome, RunCommand):
            self._enqueue(outcome.command)
        self.redraw()

    def _handle_shortcut(self, event: KeyPress) -> bool:
        if (event.ctrl or event.meta) and event.name == "k":
            self.open_command_palette()
        elif event.ctrl and event.name == "l":
            self.open_url_input()
        elif event.ctrl and event.name == "r":
            self._enqueue(self.command("Refresh Page"))
        elif event.ctrl and event.name in ("q", "c"):
            self.request_quit()
        elif event.name == "escape":
            self.request_quit()
        else:
            return False
        return True

    def command(self, name: str) -> Command:
        for command in self.commands:
            if command.name == name:
                return command
        raise KeyError(name)

    # Modals

    def open_url_input(self):
        self.modals.open_url_input(self.state.current_url)
        self.redraw()

    def open_command_palette(self):
        self.modals.open_command_palette(self.commands)
        self.redraw()

    def notify(self, message: str):
        self._notice = (message, time.monotonic() + self.settings.notice_seconds)
        self.redraw()

    # Actions

    async def _process_actions(self):
        while True:
            action = await self._actions.get()
            await self.perform(action)

    async def drain_actions(self):
        """Perform everything queued so far."""
        while not self._actions.empty():
            await self.perform(self._actions.get_nowait())

    def _enqueue(self, action):
        """Queue page work; consecutive pointer moves share one slot."""
        if isinstance(action, MouseMove):
            if self._open_move is not None:
                self._open_move.event = action
                return
            self._open_move = action = _PendingMove(action)
        else:
            self._open_move = None
        self._actions.put_nowait(action)

    async def perform(self, action):
        if isinstance(action, _PendingMove):
            if action is self._open_move:
                self._open_move = None
            action = action.event
        try:
            if isinstance(action, NavigateTo):
                url = normalize_url(action.text, self.settings.default_scheme)
                self.state.current_url = await self.session.navigate(url)
            elif isinstance(action, Command):
                await action.run(self.context)
            else:
                await self.translator.handle(action)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("action failed: %r", action)
            self.notify(f"Error: {e}")

    def _discard_actions(self):
        self._open_move = None
        while not self._actions.empty():
            self._actions.get_nowait()

    # Drawing

    def paint(self, grid: GlyphGrid, columns: int, rows: int):
        """Show a freshly encoded frame."""
        self._grid = grid
        self.redraw()

    def redraw(self):
        if self._grid is not None:
            self.screen.draw_grid(self._grid)
        self._draw_notice()
        self.modals.draw(self.screen)
        self.screen.flush()

    def _draw_notice(self):
        if self._notice is None:
            return
        message, expires = self._notice
        if time.monotonic() >= expires:
            self._notice = None
            return
        width = min(len(message) + 2, self.screen.width)
        x = max(0, self.screen.width - width)
        y = self.screen.height - 1
        self.screen.draw_text(x, y, f" {message} ", Colors.TEXT, Colors.PANEL, width)
