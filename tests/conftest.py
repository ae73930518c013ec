from __future__ import annotations

import inspect
import threading
from pathlib import Path

import pytest
import typer.testing

from captionsmith.config.settings import Settings
from captionsmith.exceptions import CancelledError


def _patch_clirunner() -> None:
    if "mix_stderr" in inspect.signature(typer.testing.CliRunner).parameters:
        return

    class PatchedCliRunner(typer.testing.CliRunner):
        def __init__(self, *args, **kwargs):  # noqa: ANN002, ANN003
            kwargs.pop("mix_stderr", None)
            super().__init__(*args, **kwargs)

    typer.testing.CliRunner = PatchedCliRunner


_patch_clirunner()


TWO_CUE_SRT = "1\n00:00:00,000 --> 00:00:01,500\nHello\n\n2\n00:00:01,500 --> 00:00:03,200\nWorld\n"


class FakeRunner:
    """In-memory stand-in for WhisperCppRunner."""

    def __init__(
        self,
        workdir: Path,
        *,
        srt_text: str = TWO_CUE_SRT,
        lines: tuple[str, ...] = (),
        error: Exception | None = None,
        block: bool = False,
    ) -> None:
        self.workdir = workdir
        self.srt_text = srt_text
        self.lines = lines
        self.error = error
        self.block = block
        self.started = threading.Event()
        self._release = threading.Event()
        self.calls = []
        self.cancel_calls = 0
        self.cancelled = False
        self.cleaned = False
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def run(self, params, on_output_line=None) -> Path:  # noqa: ANN001
        self.calls.append(params)
        self._active = True
        self.started.set()
        try:
            for line in self.lines:
                if on_output_line is not None:
                    on_output_line(line)
            if self.block:
                self._release.wait(timeout=10)
            if self.cancelled:
                raise CancelledError()
            if self.error is not None:
                raise self.error
            self.workdir.mkdir(parents=True, exist_ok=True)
            out = self.workdir / "transcript.srt"
            out.write_text(self.srt_text, encoding="utf-8")
            return out
        finally:
            self._active = False

    def cancel(self) -> None:
        self.cancel_calls += 1
        self.cancelled = True
        self._release.set()

    def cleanup(self) -> None:
        self.cleaned = True


class FakeRunnerFactory:
    def __init__(self, root: Path, **options) -> None:  # noqa: ANN003
        self.root = root
        self.options = options
        self.runners: list[FakeRunner] = []

    def __call__(self, job_id: str) -> FakeRunner:
        runner = FakeRunner(self.root / job_id, **self.options)
        self.runners.append(runner)
        return runner


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=str(tmp_path / "data"),
        models_dir=str(tmp_path / "models"),
        temp_dir=str(tmp_path / "tmp"),
    )


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    path = tmp_path / "clip.wav"
    path.write_bytes(b"RIFF0000WAVE")
    return path


@pytest.fixture
def make_runner_factory(tmp_path: Path):
    def make(**options) -> FakeRunnerFactory:  # noqa: ANN003
        return FakeRunnerFactory(tmp_path / "work", **options)

    return make
