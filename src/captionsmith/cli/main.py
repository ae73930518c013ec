from __future__ import annotations

import json
import sys
from typing import NoReturn, TypeVar

import typer
from pydantic import ValidationError as SettingsValidationError

from captionsmith.api import CaptionsmithApi
from captionsmith.config.settings import Settings
from captionsmith.domain.contracts import Failure, Result
from captionsmith.domain.events import ArtifactChangedEvent, DoneEvent, ErrorEvent, Event, ProgressEvent
from captionsmith.exceptions import CaptionsmithError, ConfigurationError, error_from_info
from captionsmith.utils.checks import require_binary
from captionsmith.utils.doctor import run_doctor
from captionsmith.utils.logging import configure_logging, get_logger
from captionsmith.utils.stats import density_alerts, preview_stats

app = typer.Typer(add_completion=False)
log = get_logger(__name__)

T = TypeVar("T")

PREVIEW_CUES = 5


def _build_api(settings: Settings, *, verbose: bool = False) -> CaptionsmithApi:
    return CaptionsmithApi(settings=settings, observer=_print_event if verbose else _quiet_event)


def _load_settings() -> Settings:
    try:
        return Settings()
    except SettingsValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        field_name = ".".join(str(p) for p in first.get("loc", ())) or "settings"
        _fail(ConfigurationError(f"Invalid value for {field_name}: {first.get('msg', exc)}"))


def _fail(err: CaptionsmithError) -> NoReturn:
    typer.echo(f"{err.label()}: {err.message}", err=True)
    if err.detail:
        typer.echo(err.detail, err=True)
    raise typer.Exit(code=err.exit_code or 1)


def _unwrap(result: Result[T]) -> T:
    if isinstance(result, Failure):
        _fail(error_from_info(result.error))
    return result.value


def _quiet_event(_event: Event) -> None:
    return None


def _print_event(event: Event) -> None:
    if isinstance(event, ProgressEvent):
        if event.percent is None:
            typer.echo(f"⏳ {event.phase.value}: {event.message}")
        else:
            typer.echo(f"⏳ {event.phase.value}: {event.percent}%")
    elif isinstance(event, DoneEvent):
        typer.echo(f"✅ Done. artifact_id={event.artifact.id}")
        typer.echo(f"📦 Output: {event.artifact.path}")
    elif isinstance(event, ErrorEvent):
        log.debug("Job %s failed with %s", event.job_id, event.error.kind)
    elif isinstance(event, ArtifactChangedEvent):
        log.debug("Artifacts changed (%s)", event.reason.value)


def _format_ms(ms: int) -> str:
    seconds, millis = divmod(ms, 1000)
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes:02d}:{seconds:02d}.{millis:03d}"


@app.command()
def transcribe(
    audio: str = typer.Argument(..., help="Audio file to transcribe."),
    output: str = typer.Option(None, "--output", "-o", help="Where to save the subtitles."),
    language: str = typer.Option(None, help="Language code (overrides config)."),
    model: str = typer.Option(None, help="Model id: tiny, base, small, medium (overrides config)."),
    format: str = typer.Option(None, "--format", help="Subtitle format: srt or ass (overrides config)."),
    density: str = typer.Option(None, help="Density preset: LOW, MEDIUM, HIGH, ULTRA (overrides config)."),
    log_level: str = typer.Option(None, help="Log level (overrides config)."),
    preview: int = typer.Option(PREVIEW_CUES, help="Number of preview cues to print."),
    json_output: bool = typer.Option(False, "--json", help="Print the result as JSON instead of progress lines."),
) -> None:
    """Transcribe an audio file to SRT or ASS subtitles."""
    settings = _load_settings()
    configure_logging(log_level or settings.log_level)
    try:
        require_binary(settings.engine_binary)
    except CaptionsmithError as err:
        _fail(err)

    api = _build_api(settings, verbose=not json_output)
    try:
        outcome = _unwrap(
            api.start_job(
                audio,
                output,
                language=language,
                model_id=model,
                format=format,
                density=density,
            )
        )
    finally:
        api.close()

    stats = preview_stats(outcome.preview)
    alerts = density_alerts(stats)

    if json_output:
        payload = {
            "job_id": outcome.job_id,
            "artifact": outcome.artifact.to_dict(),
            "preview": [cue.to_dict() for cue in outcome.preview],
            "stats": stats.to_dict() if stats else None,
            "alerts": [{"level": a.level, "text": a.text} for a in alerts],
        }
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    for cue in outcome.preview[: max(0, preview)]:
        text = cue.text.replace("\n", " / ")
        typer.echo(f"  {_format_ms(cue.start_ms)} → {_format_ms(cue.end_ms)}  {text}")

    if stats is not None:
        typer.echo(
            f"📊 {stats.cues} cues | {stats.duration_s:.1f}s | "
            f"CPS {stats.cps:.1f} | avg {stats.avg_chars_per_cue:.0f} chars/cue"
        )
    for alert in alerts:
        icon = "❌" if alert.level == "danger" else "⚠️"
        typer.echo(f"{icon} {alert.text}")


@app.command()
def artifacts(
    json_output: bool = typer.Option(False, "--json", help="Output artifacts as JSON."),
) -> None:
    """List generated subtitle files."""
    api = _build_api(_load_settings())
    views = _unwrap(api.list_artifacts())

    if json_output:
        typer.echo(json.dumps([view.to_dict() for view in views], indent=2, ensure_ascii=False))
        return

    typer.echo("id\tformat\tlanguage\tmodel\tcreated_at\texists\tpath")
    for view in views:
        r = view.record
        exists = "true" if view.exists else "false"
        typer.echo(f"{r.id}\t{r.format}\t{r.language}\t{r.model_id}\t{r.created_at}\t{exists}\t{r.path}")


@app.command()
def rename(
    artifact_id: str = typer.Argument(..., help="Artifact id (see `captionsmith artifacts`)."),
    new_name: str = typer.Argument(..., help="New base name, without extension."),
) -> None:
    """Rename a generated file, keeping its extension."""
    api = _build_api(_load_settings())
    view = _unwrap(api.rename_artifact(artifact_id, new_name))
    typer.echo(f"✅ Renamed: {view.record.path}")


@app.command()
def delete(
    artifact_id: str = typer.Argument(..., help="Artifact id (see `captionsmith artifacts`)."),
) -> None:
    """Delete a generated file and forget it."""
    api = _build_api(_load_settings())
    _unwrap(api.delete_artifact(artifact_id))
    typer.echo(f"🗑️ Deleted: {artifact_id}")


@app.command("open")
def open_cmd(
    artifact_id: str = typer.Argument(..., help="Artifact id (see `captionsmith artifacts`)."),
) -> None:
    """Open a generated file with the default application."""
    api = _build_api(_load_settings())
    if not _unwrap(api.open_artifact(artifact_id)):
        typer.echo("Could not open the file on this system.", err=True)
        raise typer.Exit(code=1)


@app.command()
def reveal(
    artifact_id: str = typer.Argument(..., help="Artifact id (see `captionsmith artifacts`)."),
) -> None:
    """Show a generated file in the file manager."""
    api = _build_api(_load_settings())
    if not _unwrap(api.reveal_artifact(artifact_id)):
        typer.echo("Could not reveal the file on this system.", err=True)
        raise typer.Exit(code=1)


@app.command()
def models(
    json_output: bool = typer.Option(False, "--json", help="Output models as JSON."),
) -> None:
    """List known whisper.cpp models and whether they are installed."""
    api = _build_api(_load_settings())
    infos = _unwrap(api.list_models())

    if json_output:
        typer.echo(json.dumps([info.to_dict() for info in infos], indent=2))
        return

    typer.echo("id\tsize_mb\tinstalled\tname")
    for info in infos:
        installed = "true" if info.installed else "false"
        typer.echo(f"{info.id}\t{info.size_mb}\t{installed}\t{info.display_name}")


@app.command()
def config() -> None:
    """Print resolved config."""
    s = _load_settings()
    typer.echo(json.dumps(s.to_public_dict(), indent=2))


@app.command()
def doctor() -> None:
    """Run environment diagnostics."""
    settings = _load_settings()
    try:
        code = run_doctor(settings)
    except CaptionsmithError as err:
        _fail(err)
    raise typer.Exit(code=code)


def _main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    _main()
