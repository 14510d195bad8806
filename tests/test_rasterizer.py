"""
Unit tests for the PDF page rasterizer.
"""

import os

import pytest
from PIL import Image

from pdfslides.editor import ImageEditor, PdfImageEditor
from pdfslides.errors import (
    NotAPdfError, PageCountUnavailableError, PageDecodeError, PageSaveError,
    RenderHandleUnavailableError
)
from pdfslides.rasterizer import generate_images_for_pdf_pages

from conftest import PAGE_HEIGHT_PTS, PAGE_WIDTH_PTS, png_files


class TestNoOpAndInvalidInput:
    """Test inputs that generate nothing."""

    def test_empty_path_is_not_an_error(self, tmp_path):
        """Test that an empty path returns None without raising."""
        assert generate_images_for_pdf_pages("") is None
        assert generate_images_for_pdf_pages(None) is None
        assert png_files(tmp_path) == []

    @pytest.mark.parametrize("name", ["notes.txt", "picture.png", "brochure", "brochure.pdf.zip"])
    def test_non_pdf_extension(self, tmp_path, name):
        """Test that other extensions raise NotAPdfError and write nothing."""
        source = tmp_path / name
        source.write_bytes(b"not a pdf")
        before = sorted(p.name for p in tmp_path.iterdir())

        with pytest.raises(NotAPdfError) as exc_info:
            generate_images_for_pdf_pages(str(source))

        assert exc_info.value.code == "invalid_image"
        assert exc_info.value.path == str(source)
        assert sorted(p.name for p in tmp_path.iterdir()) == before

    def test_uppercase_extension_is_accepted(self, pdf_factory, tmp_path):
        """Test that the extension check is case-insensitive."""
        source = pdf_factory("SCAN.PDF", pages=1)
        result = generate_images_for_pdf_pages(str(source))
        assert [os.path.basename(p) for p in result] == ["SCAN-p1-pdf.png"]

    def test_unreadable_pdf(self, tmp_path):
        """Test that a broken PDF fails on counting pages."""
        source = tmp_path / "broken.pdf"
        source.write_bytes(b"This is not a real PDF")

        with pytest.raises(PageCountUnavailableError):
            generate_images_for_pdf_pages(str(source))
        assert png_files(tmp_path) == []

    def test_no_editor_available(self, pdf_factory, tmp_path, monkeypatch):
        """Test that a missing render capability propagates."""
        source = pdf_factory()
        monkeypatch.setattr(PdfImageEditor, "test", classmethod(lambda cls: False))

        with pytest.raises(RenderHandleUnavailableError):
            generate_images_for_pdf_pages(str(source))
        assert png_files(tmp_path) == []


class TestPageImages:
    """Test generating one image per page."""

    def test_one_image_per_page_in_order(self, pdf_factory, tmp_path):
        """Test that a 3 page PDF yields 3 ordered PNG files."""
        source = pdf_factory("brochure.pdf", pages=3)

        result = generate_images_for_pdf_pages(str(source))

        assert [os.path.basename(p) for p in result] == [
            "brochure-p1-pdf.png",
            "brochure-p2-pdf.png",
            "brochure-p3-pdf.png",
        ]
        assert all(os.path.dirname(p) == str(tmp_path) for p in result)
        assert png_files(tmp_path) == sorted(os.path.basename(p) for p in result)

    def test_images_are_png(self, pdf_factory):
        """Test that the written files are PNG images."""
        result = generate_images_for_pdf_pages(str(pdf_factory(pages=1)))
        with Image.open(result[0]) as image:
            assert image.format == "PNG"

    def test_existing_images_are_not_overwritten(self, pdf_factory, tmp_path):
        """Test that a second run picks new file names."""
        source = pdf_factory("brochure.pdf", pages=3)

        first = generate_images_for_pdf_pages(str(source))
        first_sizes = {p: os.path.getsize(p) for p in first}
        second = generate_images_for_pdf_pages(str(source))

        assert set(first).isdisjoint(second)
        assert [os.path.basename(p) for p in second] == [
            "brochure-p1-pdf-1.png",
            "brochure-p2-pdf-1.png",
            "brochure-p3-pdf-1.png",
        ]
        assert {p: os.path.getsize(p) for p in first} == first_sizes
        assert len(png_files(tmp_path)) == 6

    @pytest.mark.parametrize("dpi, scale", [(72, 1), (144, 2)])
    def test_render_resolution(self, pdf_factory, dpi, scale):
        """Test that pages are rendered at the requested resolution."""
        result = generate_images_for_pdf_pages(str(pdf_factory(pages=1)), dpi=dpi)
        with Image.open(result[0]) as image:
            assert image.size == (PAGE_WIDTH_PTS * scale, PAGE_HEIGHT_PTS * scale)


class TestPdfSetup:
    """Test the one-time PDF setup."""

    def _record_calls(self, monkeypatch):
        calls = []
        original_setup = PdfImageEditor.pdf_setup
        original_load = PdfImageEditor.load

        def pdf_setup(self):
            calls.append("setup")
            original_setup(self)

        def load(self):
            calls.append("load")
            original_load(self)

        monkeypatch.setattr(PdfImageEditor, "pdf_setup", pdf_setup)
        monkeypatch.setattr(PdfImageEditor, "load", load)
        return calls

    def test_setup_done_by_editor(self, pdf_factory, monkeypatch):
        """Test that the editor sets itself up when it supports it natively."""
        calls = self._record_calls(monkeypatch)

        generate_images_for_pdf_pages(str(pdf_factory(pages=2)))

        assert calls == ["load", "setup", "load"]

    def test_setup_called_once_without_native_support(self, pdf_factory, monkeypatch):
        """Test that setup is called explicitly before the first page otherwise."""
        monkeypatch.delattr(ImageEditor, "pdf_setup")
        calls = self._record_calls(monkeypatch)

        result = generate_images_for_pdf_pages(str(pdf_factory(pages=2)))

        assert calls == ["setup", "load", "load"]
        assert len(result) == 2


class TestPartialFailure:
    """Test failures after some pages were already written."""

    def _fail_on_page(self, monkeypatch, failing_page):
        original_load = PdfImageEditor.load

        def load(self):
            if self.page == failing_page:
                raise PageDecodeError(self.page, "boom")
            original_load(self)

        monkeypatch.setattr(PdfImageEditor, "load", load)

    def test_decode_failure_removes_written_pages(self, pdf_factory, tmp_path, monkeypatch):
        """Test that images of earlier pages are cleaned up by default."""
        source = pdf_factory(pages=3)
        self._fail_on_page(monkeypatch, 2)

        with pytest.raises(PageDecodeError) as exc_info:
            generate_images_for_pdf_pages(str(source))

        assert exc_info.value.page_index == 2
        assert png_files(tmp_path) == []

    def test_decode_failure_without_cleanup(self, pdf_factory, tmp_path, monkeypatch):
        """Test that earlier pages stay on disk when cleanup is disabled."""
        source = pdf_factory(pages=3)
        self._fail_on_page(monkeypatch, 2)

        with pytest.raises(PageDecodeError):
            generate_images_for_pdf_pages(str(source), cleanup_on_failure=False)

        assert png_files(tmp_path) == ["brochure-p1-pdf.png", "brochure-p2-pdf.png"]

    def test_save_failure(self, pdf_factory, tmp_path, monkeypatch):
        """Test that a failing save raises PageSaveError for that page."""
        source = pdf_factory(pages=2)

        def save(self, *args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(Image.Image, "save", save)

        with pytest.raises(PageSaveError) as exc_info:
            generate_images_for_pdf_pages(str(source))

        assert exc_info.value.page_index == 0
        assert "disk full" in exc_info.value.message
        assert png_files(tmp_path) == []
