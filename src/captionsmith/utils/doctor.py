from __future__ import annotations

import sys
import tempfile
from pathlib import Path

from captionsmith.config.settings import Settings
from captionsmith.services.models import list_models
from captionsmith.utils.checks import find_binary


def _check_writable(path: Path) -> bool:
    try:
        path.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=path, delete=True):
            return True
    except OSError:
        return False


def _get_version() -> str:
    try:
        import importlib.metadata

        return importlib.metadata.version("captionsmith")
    except Exception:
        from captionsmith import __version__

        return __version__


def _status_line(ok: bool, label: str, detail: str = "") -> str:
    icon = "✅" if ok else "❌"
    return f"{icon} {label}{detail}"


def _warn_line(label: str, detail: str = "") -> str:
    return f"⚠️ {label}{detail}"


def collect_doctor_lines(settings: Settings) -> tuple[bool, list[str]]:
    required_ok = True
    lines: list[str] = ["captionsmith doctor", ""]

    python_version = sys.version.split()[0]
    lines.append(_status_line(True, "Python", f": {python_version}"))
    lines.append(_status_line(True, "captionsmith version", f": {_get_version()}"))

    engine = find_binary(settings.engine_binary)
    if engine is None:
        required_ok = False
        lines.append(_status_line(False, "whisper engine", f" ({settings.engine_binary} not found)"))
    else:
        lines.append(_status_line(True, "whisper engine", f": {engine}"))

    models_dir = Path(settings.models_dir).expanduser().resolve()
    installed = [m.id for m in list_models(settings) if m.installed]
    if not models_dir.is_dir():
        lines.append(_warn_line("Models dir", f": {models_dir} (missing)"))
    elif not installed:
        lines.append(_warn_line("Models", f": none installed in {models_dir}"))
    else:
        lines.append(_status_line(True, "Models", f": {', '.join(installed)}"))
    if settings.default_model not in installed:
        lines.append(_warn_line("Default model", f": {settings.default_model} (not installed)"))

    data_dir = settings.resolved_data_dir()
    writable = _check_writable(data_dir)
    if not writable:
        required_ok = False
    lines.append(_status_line(writable, "Data dir writable", f": {data_dir}"))

    return required_ok, lines


def run_doctor(settings: Settings) -> int:
    required_ok, lines = collect_doctor_lines(settings)
    print("\n".join(lines))
    return 0 if required_ok else 1
