"""
Shared fixtures: generated PDF files and an isolated media library.
"""

from pathlib import Path

import fitz  # PyMuPDF
import pytest

from pdfslides.config import Settings
from pdfslides.database import MediaLibrary

PAGE_WIDTH_PTS = 200
PAGE_HEIGHT_PTS = 100


def make_pdf(path: Path, pages: int = 3) -> Path:
    """Write a PDF with the given number of small text pages."""
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page(width=PAGE_WIDTH_PTS, height=PAGE_HEIGHT_PTS)
        page.insert_text((20, 50), f"Page {i + 1}")
    doc.save(str(path))
    doc.close()
    return path


def png_files(directory: Path) -> list:
    return sorted(p.name for p in Path(directory).iterdir() if p.suffix == ".png")


@pytest.fixture
def pdf_factory(tmp_path):
    def _make(name: str = "brochure.pdf", pages: int = 3) -> Path:
        return make_pdf(tmp_path / name, pages)
    return _make


@pytest.fixture
def pdf_bytes(tmp_path) -> bytes:
    return make_pdf(tmp_path / "source.pdf", pages=3).read_bytes()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(uploads_dir=tmp_path / "uploads", pdf_dpi=72)


@pytest.fixture
def library(settings):
    library = MediaLibrary(settings)
    library.init_db()
    yield library
    library.engine.dispose()


@pytest.fixture
def pdf_attachment(library, pdf_bytes):
    return library.add_attachment("brochure.pdf", pdf_bytes, "application/pdf")
