"""
Data models and constants for PDF slides.
"""

import re
from typing import List, NamedTuple, Optional

# Core data types
PdfImages = List[str]
"""Ordered page image paths, relative to the uploads base directory"""

# Post types
ATTACHMENT_POST_TYPE = "attachment"
SLIDE_POST_TYPE = "slide"

# Meta keys
ATTACHED_FILE_META_KEY = "_attached_file"
MIME_TYPE_META_KEY = "_mime_type"
PDF_IMAGES_META_KEY = "_pdf_images"
SLIDE_FORMAT_META_KEY = "slide_format"
SLIDE_PDF_FILE_META_KEY = "slide_pdf_file"

# Slide formats
PDF_SLIDE_FORMAT = "pdf"
DEFAULT_SLIDE_FORMAT = PDF_SLIDE_FORMAT

# Constants
PDF_EXTENSION = "pdf"
PDF_MIME_TYPE = "application/pdf"
PNG_MIME_TYPE = "image/png"
PDF_POINTS_PER_INCH = 72.0
DEFAULT_PDF_DPI = 128
PDF_PAGE_IMAGE_SUFFIX = "-pdf.png"
MINIMUM_PYMUPDF_VERSION = (1, 18, 0)


class ImageSrc(NamedTuple):
    """Public URL and pixel size of an attachment image."""
    url: str
    width: int
    height: int


class Post:
    """Plain view of a stored post, detached from the database session."""

    def __init__(self, post_id: int, post_type: str, title: str = ""):
        self.id = post_id
        self.post_type = post_type
        self.title = title

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, type={self.post_type})>"


def page_image_filename(pdf_basename: str, page_number: int) -> str:
    """
    Build the PNG filename for one page of a PDF.

    Args:
        pdf_basename: PDF file name without directory and extension
        page_number: 1-based page number

    Returns:
        Filename like ``brochure-p1-pdf.png``
    """
    return f"{pdf_basename}-p{page_number}{PDF_PAGE_IMAGE_SUFFIX}"


def parse_attachment_id(value) -> Optional[int]:
    """
    Coerce a submitted attachment reference to an id.

    Leading digits count, like "12abc" or "3.0". Returns None for empty,
    unparsable or non-positive values.
    """
    if value is None or isinstance(value, bool):
        return None

    match = re.match(r"\s*([+-]?\d+)", str(value))
    if match is None:
        return None

    attachment_id = int(match.group(1))
    if attachment_id <= 0:
        return None
    return attachment_id
