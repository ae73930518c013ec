from __future__ import annotations

from pathlib import Path

from platformdirs import user_data_dir
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "captionsmith"


class Settings(BaseSettings):
    """
    Runtime configuration for captionsmith.

    All settings are loaded from environment variables with the
    `CAPTIONSMITH_` prefix and optional `.env` support.

    This class is intentionally flat and explicit to keep runtime
    behavior predictable and debuggable.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAPTIONSMITH_",
        env_file=".env",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Engine (whisper.cpp)
    # ------------------------------------------------------------------
    engine_binary: str = Field(
        default="whisper-cli",
        description="whisper.cpp executable name or absolute path.",
    )
    models_dir: str = Field(
        default="models",
        description="Directory holding ggml-<model>.bin files.",
    )
    threads: int = Field(
        default=4,
        description="Threads passed to the engine (-t).",
    )
    print_progress: bool = Field(
        default=True,
        description="Ask the engine to print 'progress = NN%' lines.",
    )

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    data_dir: str | None = Field(
        default=None,
        description="Directory for the generated-files catalog. Defaults to the per-user data dir.",
    )
    temp_dir: str | None = Field(
        default=None,
        description="Root for job-private working directories. Defaults to the system temp dir.",
    )
    keep_workdirs: bool = Field(
        default=False,
        description="Keep job working directories after the job finishes (debugging).",
    )

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------
    max_workers: int = Field(
        default=2,
        description="Maximum number of jobs transcribing concurrently.",
    )
    default_language: str = Field(
        default="pt",
        description="Language code used when a request does not specify one.",
    )
    default_model: str = Field(
        default="small",
        description="Model id used when a request does not specify one.",
    )
    default_format: str = Field(
        default="srt",
        description="Subtitle format used when a request does not specify one (srt or ass).",
    )
    default_density: str = Field(
        default="MEDIUM",
        description="Density preset used when a request does not specify one.",
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )

    def resolved_data_dir(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir).expanduser().resolve()
        return Path(user_data_dir(APP_NAME, appauthor=False))

    def resolved_temp_dir(self) -> Path | None:
        if not self.temp_dir:
            return None
        path = Path(self.temp_dir).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def model_path(self, model_id: str) -> Path:
        return Path(self.models_dir).expanduser().resolve() / f"ggml-{model_id}.bin"

    # ------------------------------------------------------------------
    # Public / safe export
    # ------------------------------------------------------------------
    def to_public_dict(self) -> dict:
        """
        Return a dictionary of settings suitable
        for logging or CLI display.
        """
        return {
            "engine_binary": self.engine_binary,
            "models_dir": self.models_dir,
            "threads": self.threads,
            "print_progress": self.print_progress,
            "data_dir": str(self.resolved_data_dir()),
            "temp_dir": self.temp_dir,
            "keep_workdirs": self.keep_workdirs,
            "max_workers": self.max_workers,
            "default_language": self.default_language,
            "default_model": self.default_model,
            "default_format": self.default_format,
            "default_density": self.default_density,
            "log_level": self.log_level,
        }
