"""Runtime settings for the terminal browser."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .viewport import DEFAULT_SCALE_FACTOR


BROWSER_TYPES = ("chromium", "firefox", "webkit")
WAIT_POLICIES = ("load", "domcontentloaded", "networkidle", "commit")


def default_log_file() -> Path:
    """Log file location under the user cache directory."""
    base = os.environ.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    return Path(base) / "termweb" / "termweb.log"


@dataclass
class Settings:
    """
    Tunables for rendering and input.

    Attributes:
        scale_factor: Browser pixels per terminal cell along each axis
        fps: Target screenshot refreshes per second
        scroll_step: Pixels scrolled per mouse wheel tick
        browser_type: Playwright browser to launch
        wait_until: Navigation wait policy
        default_scheme: Scheme added to URLs typed without one
        headless: Run the browser without a window
        notice_seconds: How long command feedback stays on screen
        log_file: Where logs are written
        log_level: Logging level name
    """
    scale_factor: int = DEFAULT_SCALE_FACTOR
    fps: float = 30.0
    scroll_step: int = 50
    browser_type: str = "chromium"
    wait_until: str = "domcontentloaded"
    default_scheme: str = "https"
    headless: bool = True
    notice_seconds: float = 2.0
    log_file: Path = field(default_factory=default_log_file)
    log_level: str = "INFO"

    def __post_init__(self):
        if self.scale_factor < 1:
            raise ValueError(f"scale_factor must be at least 1, got {self.scale_factor}")
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")
        if self.browser_type not in BROWSER_TYPES:
            raise ValueError(f"Unknown browser type: {self.browser_type}")
        if self.wait_until not in WAIT_POLICIES:
            raise ValueError(f"Unknown wait policy: {self.wait_until}")

    @property
    def render_interval(self) -> float:
        """Seconds between render ticks."""
        return 1.0 / self.fps

    @classmethod
    def from_args(cls, args) -> "Settings":
        """Build settings from parsed command-line arguments."""
        log_file: Optional[str] = getattr(args, "log_file", None)
        return cls(
            scale_factor=args.scale,
            fps=args.fps,
            scroll_step=args.scroll_step,
            browser_type=args.browser,
            wait_until=args.wait_until,
            log_file=Path(log_file) if log_file else default_log_file(),
            log_level=args.log_level,
        )
