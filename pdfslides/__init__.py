"""
PDF Slides Package

A web service that turns uploaded PDF files into slides, one PNG image per page.
"""

__version__ = "1.0.0"
__author__ = "PDF Slides"
__description__ = "Render each page of an uploaded PDF as a slide image"

from .rasterizer import generate_images_for_pdf_pages
from .attachments import add_pdf_images_to_attachment, delete_pdf_images_for_attachment
from .errors import PdfSlidesError, NotAPdfError

__all__ = [
    'generate_images_for_pdf_pages',
    'add_pdf_images_to_attachment',
    'delete_pdf_images_for_attachment',
    'PdfSlidesError',
    'NotAPdfError'
]
