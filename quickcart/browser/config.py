"""Browser launch configuration and executable discovery."""
from __future__ import annotations

import os
import platform as _platform
import shutil
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_USER_DATA_DIR = "./user-data"
DEFAULT_DEBUG_PORT = 9222

# Well-known install locations, checked before PATH lookups
_MACOS_CANDIDATES = (
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
    "/Applications/Google Chrome Canary.app/Contents/MacOS/Google Chrome Canary",
)
_WINDOWS_CANDIDATES = (
    r"%ProgramFiles%\Google\Chrome\Application\chrome.exe",
    r"%ProgramFiles(x86)%\Google\Chrome\Application\chrome.exe",
    r"%LocalAppData%\Google\Chrome\Application\chrome.exe",
)
_LINUX_COMMANDS = (
    "google-chrome",
    "google-chrome-stable",
    "chromium",
    "chromium-browser",
)


@dataclass(frozen=True)
class ChromeArgs:
    """Immutable container for Chrome launch arguments."""

    BASE_ARGS: tuple[str, ...] = (
        "--no-first-run",
        "--no-default-browser-check",
        "--disable-blink-features=AutomationControlled",
    )

    def build_args(self, *, debug_port: int, extra_args: Optional[List[str]] = None) -> List[str]:
        """Build the argument list; the debugging port is always exposed."""
        args = list(self.BASE_ARGS)
        args.append(f"--remote-debugging-port={debug_port}")
        if extra_args:
            args.extend(extra_args)
        return args


_chrome_args = ChromeArgs()


def get_chrome_args(*, debug_port: int = DEFAULT_DEBUG_PORT, extra_args: Optional[List[str]] = None) -> List[str]:
    """Get Chrome launch arguments for the shared persistent context."""
    return _chrome_args.build_args(debug_port=debug_port, extra_args=extra_args)


def find_browser_executable(system: Optional[str] = None) -> Optional[str]:
    """Find a Chrome/Chromium executable on this machine.

    Returns ``None`` when nothing is installed in the usual places.
    """
    system = system or _platform.system()

    if system == "Darwin":
        for path in _MACOS_CANDIDATES:
            if os.path.exists(path):
                return path
    elif system == "Windows":
        for raw in _WINDOWS_CANDIDATES:
            path = os.path.expandvars(raw)
            if os.path.exists(path):
                return path

    for cmd in _LINUX_COMMANDS:
        found = shutil.which(cmd)
        if found:
            return found
    return None


@dataclass
class BrowserConfig:
    """Configuration for the single persistent browser context."""

    user_data_dir: str = DEFAULT_USER_DATA_DIR
    debug_port: int = DEFAULT_DEBUG_PORT
    headless: bool = False
    executable_path: Optional[str] = None  # Skip discovery when set
    extra_args: List[str] = field(default_factory=list)
    timeout: int = 30000  # Default Playwright timeout in milliseconds

    @property
    def version_url(self) -> str:
        return f"http://localhost:{self.debug_port}/json/version"

    def launch_args(self) -> List[str]:
        return get_chrome_args(debug_port=self.debug_port, extra_args=self.extra_args)


__all__ = [
    "BrowserConfig",
    "ChromeArgs",
    "DEFAULT_DEBUG_PORT",
    "DEFAULT_USER_DATA_DIR",
    "find_browser_executable",
    "get_chrome_args",
]
