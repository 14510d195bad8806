"""
Application configuration, read from PDFSLIDES_* environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import os

from .models import DEFAULT_PDF_DPI

ENV_PREFIX = "PDFSLIDES_"
DATABASE_FILENAME = "pdfslides.db"


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Configuration shared by the media library, the rasterizer and the web app."""

    uploads_dir: Path = field(default_factory=lambda: Path("uploads"))
    uploads_url: str = "/uploads"
    database_url: str | None = None
    pdf_dpi: int = DEFAULT_PDF_DPI
    cleanup_partial_images: bool = True
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.uploads_dir = Path(self.uploads_dir).resolve()
        self.uploads_url = self.uploads_url.rstrip("/")
        if self.database_url is None:
            self.database_url = f"sqlite:///{self.uploads_dir / DATABASE_FILENAME}"

    def ensure_dirs(self) -> None:
        self.uploads_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Build settings from the environment, falling back to defaults."""
        environ = os.environ if environ is None else environ
        kwargs = {}

        if environ.get(ENV_PREFIX + "UPLOADS_DIR"):
            kwargs["uploads_dir"] = Path(environ[ENV_PREFIX + "UPLOADS_DIR"])
        if environ.get(ENV_PREFIX + "UPLOADS_URL"):
            kwargs["uploads_url"] = environ[ENV_PREFIX + "UPLOADS_URL"]
        if environ.get(ENV_PREFIX + "DATABASE_URL"):
            kwargs["database_url"] = environ[ENV_PREFIX + "DATABASE_URL"]
        if environ.get(ENV_PREFIX + "PDF_DPI"):
            kwargs["pdf_dpi"] = int(environ[ENV_PREFIX + "PDF_DPI"])
        if environ.get(ENV_PREFIX + "CLEANUP_PARTIAL_IMAGES"):
            kwargs["cleanup_partial_images"] = _env_bool(environ[ENV_PREFIX + "CLEANUP_PARTIAL_IMAGES"])
        if environ.get(ENV_PREFIX + "LOG_LEVEL"):
            kwargs["log_level"] = environ[ENV_PREFIX + "LOG_LEVEL"].upper()

        return cls(**kwargs)
