"""
Exceptions raised while generating and managing PDF page images.
"""

from typing import Optional


class PdfSlidesError(Exception):
    """Base class for all PDF slide errors."""

    code = "pdf_slides_error"

    def __init__(self, message: str, data: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class NotAPdfError(PdfSlidesError):
    """The source file does not have a .pdf extension."""

    code = "invalid_image"

    def __init__(self, path: str):
        super().__init__("Not a PDF file.", data=path)
        self.path = path


class ImageEditorError(PdfSlidesError):
    """An image editor failed to open, decode or save an image."""

    code = "image_editor_error"


class RenderHandleUnavailableError(ImageEditorError):
    """No registered image editor can handle the file."""

    code = "image_no_editor"


class PageCountUnavailableError(ImageEditorError):
    """The number of pages of a PDF could not be determined."""

    code = "pdf_page_count_failed"


class PageDecodeError(ImageEditorError):
    """A PDF page could not be rendered."""

    code = "invalid_image"

    def __init__(self, page_index: int, reason: str = ""):
        message = f"Could not load page {page_index + 1} of the PDF file."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)
        self.page_index = page_index


class PageSaveError(ImageEditorError):
    """A rendered PDF page could not be written to disk."""

    code = "image_save_error"

    def __init__(self, page_index: int, reason: str = ""):
        message = f"Could not save image for page {page_index + 1}."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)
        self.page_index = page_index
