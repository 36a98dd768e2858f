"""Active window probe and session gate for the Hyprland compositor."""

from __future__ import annotations

import json
import logging
import os
import subprocess
import threading
import time
from pathlib import Path
from typing import Mapping, Optional

import psutil

from .errors import ActiveWindowError
from .models import WindowObservation

logger = logging.getLogger(__name__)


class HyprlandActiveWindowProbe:
    """Reads the focused window through ``hyprctl -j activewindow``."""

    def __init__(self, *, timeout: float = 2.0, hyprctl: str = "hyprctl") -> None:
        self.timeout = timeout
        self.hyprctl = hyprctl

    def get_active_window(self) -> Optional[WindowObservation]:
        """Return the focused window, ``None`` if nothing has focus.

        Raises ``ActiveWindowError`` when the compositor cannot be queried.
        """
        try:
            result = subprocess.run(
                [self.hyprctl, "-j", "activewindow"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ActiveWindowError(f"{self.hyprctl} not found; is Hyprland running?") from exc
        except subprocess.TimeoutExpired as exc:
            raise ActiveWindowError(f"{self.hyprctl} timed out after {self.timeout}s") from exc

        if result.returncode != 0:
            raise ActiveWindowError(
                f"{self.hyprctl} exited with {result.returncode}: {result.stderr.strip()}"
            )
        return parse_active_window(result.stdout)


def parse_active_window(payload: str) -> Optional[WindowObservation]:
    payload = payload.strip()
    if not payload:
        return None
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ActiveWindowError(f"Unexpected hyprctl output: {payload[:80]!r}") from exc
    if not isinstance(data, dict) or not data:
        return None

    title = str(data.get("title") or "")
    window_class = str(data.get("class") or data.get("initialClass") or "")
    pid = data.get("pid")
    pid = pid if isinstance(pid, int) and pid > 0 else None
    if not window_class and pid is not None:
        window_class = _process_name(pid) or ""
    if not title and not window_class:
        return None
    return WindowObservation(title=title, window_class=window_class, pid=pid)


def _process_name(pid: int) -> Optional[str]:
    try:
        return psutil.Process(pid).name()
    except (psutil.Error, ProcessLookupError):
        return None


def socket_path(env: Mapping[str, str]) -> Optional[Path]:
    runtime_dir = env.get("XDG_RUNTIME_DIR")
    signature = env.get("HYPRLAND_INSTANCE_SIGNATURE")
    if not runtime_dir or not signature:
        return None
    return Path(runtime_dir) / "hypr" / signature / ".socket.sock"


def wait_for_session(
    timeout: float = 30.0,
    poll_interval: float = 2.0,
    *,
    env: Optional[Mapping[str, str]] = None,
    stop_event: Optional[threading.Event] = None,
) -> bool:
    """Wait until the Hyprland IPC socket exists.

    Returns ``False`` if the socket did not appear within ``timeout`` seconds
    or ``stop_event`` was set while waiting.
    """
    env = os.environ if env is None else env
    stop_event = stop_event or threading.Event()
    deadline = time.monotonic() + timeout
    logger.info("Waiting for Hyprland socket based on XDG_RUNTIME_DIR...")

    while True:
        path = socket_path(env)
        if path is None:
            logger.debug(
                "XDG_RUNTIME_DIR or HYPRLAND_INSTANCE_SIGNATURE not set, checking again..."
            )
        elif path.exists():
            logger.info("Hyprland socket found at %s", path)
            return True
        else:
            logger.debug("Socket not found at %s, checking again...", path)

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.warning("Timed out after %.0fs waiting for Hyprland socket", timeout)
            return False
        if stop_event.wait(min(poll_interval, remaining)):
            return False
