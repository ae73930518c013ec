from __future__ import annotations

import subprocess
import sys
from pathlib import Path

from captionsmith.utils.logging import get_logger

log = get_logger(__name__)


def _launch(cmd: list[str]) -> bool:
    try:
        proc = subprocess.run(cmd, check=False, capture_output=True, text=True)
    except FileNotFoundError:
        log.warning("Launcher not found: %s", cmd[0])
        return False
    if proc.returncode != 0:
        log.warning("Launcher %s exited with %s: %s", cmd[0], proc.returncode, proc.stderr.strip())
    return proc.returncode == 0


def open_path(path: Path) -> bool:
    """Open `path` with the OS default application."""
    if sys.platform.startswith("darwin"):
        cmd = ["open", str(path)]
    elif sys.platform.startswith("win"):
        cmd = ["cmd", "/c", "start", "", str(path)]
    else:
        cmd = ["xdg-open", str(path)]
    return _launch(cmd)


def reveal_path(path: Path) -> bool:
    """Show `path` selected in the file manager (its folder where selection is unsupported)."""
    if sys.platform.startswith("darwin"):
        cmd = ["open", "-R", str(path)]
    elif sys.platform.startswith("win"):
        cmd = ["explorer", f"/select,{path}"]
    else:
        cmd = ["xdg-open", str(path.parent)]
    return _launch(cmd)
