"""
Image editors: the render capability used to turn PDF pages into PNG images.

Editors are registered in a list and chosen per file at call time, by
mime type and by the methods a caller needs.

The standard ImageEditor ships pdf_setup, so has_editor_pdf_support() is
true for this package as installed and PdfImageEditor sets itself up on its
first load. The explicit setup call in the rasterizer and the related
warnings only apply when pdf_setup is removed from ImageEditor, for example
by a replacement editor class patched in at runtime.
"""

import fitz  # PyMuPDF
from PIL import Image
from typing import Dict, Iterable, List, Optional, Type
import logging
import mimetypes
import os
import re

from .errors import (
    ImageEditorError,
    PageCountUnavailableError,
    PageDecodeError,
    PageSaveError,
    RenderHandleUnavailableError,
)
from .models import DEFAULT_PDF_DPI, MINIMUM_PYMUPDF_VERSION, PDF_MIME_TYPE, PDF_POINTS_PER_INCH, PNG_MIME_TYPE

logger = logging.getLogger(__name__)

PIL_FORMATS = {
    'image/png': 'PNG',
    'image/jpeg': 'JPEG',
    'image/gif': 'GIF',
    'image/webp': 'WEBP',
}


class ImageEditor:
    """Standard image editor for raster images, backed by Pillow."""

    mime_types = tuple(PIL_FORMATS)

    def __init__(self, file: str):
        self.file = str(file)
        self.image: Optional[Image.Image] = None
        self.dpi = DEFAULT_PDF_DPI
        self.resolution: Optional[int] = None

    @classmethod
    def test(cls) -> bool:
        """Whether this editor can run on this server."""
        return True

    def pdf_setup(self) -> None:
        """Set the resolution PDF input is read at."""
        self.resolution = self.dpi

    @classmethod
    def supports_mime_type(cls, mime_type: Optional[str]) -> bool:
        return mime_type in cls.mime_types

    def load(self) -> None:
        """
        Load the file into memory.

        Raises:
            ImageEditorError: If the file is not a readable image
        """
        try:
            with Image.open(self.file) as image:
                image.load()
                self.image = image.copy()
        except (OSError, ValueError) as e:
            raise ImageEditorError(f"File is not an image: {str(e)}", data=self.file) from e

    def save(self, filename: str, mime_type: str = PNG_MIME_TYPE) -> Dict[str, object]:
        """
        Save the loaded image.

        Args:
            filename: Destination path
            mime_type: Output mime type

        Returns:
            Dictionary with path, file, width, height and mime-type of the saved image
        """
        if self.image is None:
            raise self._save_error("No image loaded.")
        if mime_type not in PIL_FORMATS:
            raise self._save_error(f"Unsupported output type {mime_type}.")

        try:
            self.image.save(filename, format=PIL_FORMATS[mime_type])
        except (OSError, ValueError) as e:
            raise self._save_error(str(e)) from e

        return {
            'path': filename,
            'file': os.path.basename(filename),
            'width': self.image.width,
            'height': self.image.height,
            'mime-type': mime_type,
        }

    def close(self) -> None:
        if self.image is not None:
            self.image.close()
            self.image = None

    def _save_error(self, reason: str) -> ImageEditorError:
        return ImageEditorError(f"Image could not be saved. {reason}", data=self.file)


class PdfImageEditor(ImageEditor):
    """Editor that renders single PDF pages to raster images with PyMuPDF."""

    mime_types = (PDF_MIME_TYPE,)

    def __init__(self, file: str):
        super().__init__(file)
        self.page = 0
        self._document: Optional[fitz.Document] = None

    @classmethod
    def test(cls) -> bool:
        return has_pdf_render_support()

    def set_resolution(self, dpi: int) -> None:
        self.dpi = dpi
        if self.resolution is not None:
            self.resolution = dpi

    def pdf_setup(self) -> None:
        """Set the resolution PDF pages are rendered at."""
        self.resolution = self.dpi

    def pdf_get_number_of_pages(self) -> int:
        """
        Count the pages of the PDF.

        Raises:
            PageCountUnavailableError: If the document can't be opened
        """
        try:
            return self._open().page_count
        except (RuntimeError, ValueError, OSError) as e:
            raise PageCountUnavailableError(f"Could not read the PDF file: {str(e)}", data=self.file) from e

    def pdf_prepare_page_for_load(self, page: int) -> None:
        self.page = page

    def load(self) -> None:
        """
        Render the selected page.

        Raises:
            PageDecodeError: If the page can't be rendered
        """
        if self.resolution is None and has_editor_pdf_support():
            self.pdf_setup()

        zoom = (self.resolution or PDF_POINTS_PER_INCH) / PDF_POINTS_PER_INCH

        try:
            page = self._open().load_page(self.page)
            pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
            image = Image.frombytes('RGB', [pix.width, pix.height], pix.samples)
            pix = None  # Free memory
        except (RuntimeError, ValueError, IndexError, OSError) as e:
            raise PageDecodeError(self.page, str(e)) from e

        if self.image is not None:
            self.image.close()
        self.image = image

    def close(self) -> None:
        super().close()
        if self._document is not None:
            self._document.close()
            self._document = None

    def _open(self) -> fitz.Document:
        if self._document is None:
            self._document = fitz.open(self.file, filetype='pdf')
        return self._document

    def _save_error(self, reason: str) -> ImageEditorError:
        return PageSaveError(self.page, reason)


_image_editors: List[Type[ImageEditor]] = [ImageEditor]


def register_image_editor(editor: Type[ImageEditor]) -> None:
    """Add an editor class to the list editors are chosen from."""
    if editor not in _image_editors:
        _image_editors.append(editor)


def get_image_editors() -> List[Type[ImageEditor]]:
    return list(_image_editors)


def get_image_editor(path: str, mime_type: Optional[str] = None,
                     methods: Iterable[str] = ()) -> ImageEditor:
    """
    Choose and instantiate an image editor for a file.

    Args:
        path: File the editor will work on
        mime_type: Mime type of the file, guessed from the name if omitted
        methods: Methods the chosen editor must implement

    Returns:
        An editor instance for the file

    Raises:
        RenderHandleUnavailableError: If no registered editor qualifies
    """
    if mime_type is None:
        mime_type = mimetypes.guess_type(str(path))[0]
    methods = tuple(methods)

    for editor in _image_editors:
        if not editor.test():
            continue
        if not editor.supports_mime_type(mime_type):
            continue
        if not all(callable(getattr(editor, method, None)) for method in methods):
            continue

        logger.debug(f"Using {editor.__name__} for {path}")
        return editor(path)

    raise RenderHandleUnavailableError("No editor could be selected.", data=str(path))


def _version_tuple(version: str) -> tuple:
    parts = []
    for part in version.split('.')[:3]:
        match = re.match(r'\d+', part)
        parts.append(int(match.group()) if match else 0)
    return tuple(parts)


def has_pdf_render_support() -> bool:
    """
    Test if PyMuPDF can render PDF files on this server.

    Returns:
        True if the library, its classes, a recent enough version and the
        PDF format are available, False otherwise
    """
    if not hasattr(fitz, 'Document') or not hasattr(fitz, 'Pixmap'):
        return False

    version = getattr(fitz, 'VersionBind', None) or getattr(fitz, '__version__', '0')
    if _version_tuple(version) < MINIMUM_PYMUPDF_VERSION:
        return False

    try:
        doc = fitz.open()
        is_pdf = doc.is_pdf
        doc.close()
    except (RuntimeError, ValueError) as e:
        logger.error(f"PDF support test failed: {str(e)}")
        return False

    return bool(is_pdf)


def has_editor_pdf_support() -> bool:
    """
    Test if the standard image editor sets up PDF rendering by itself.

    Returns:
        True if ImageEditor exposes pdf_setup, False otherwise
    """
    return callable(getattr(ImageEditor, 'pdf_setup', None))


register_image_editor(PdfImageEditor)
