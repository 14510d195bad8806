"""
PDF page rasterizer: renders each page of a PDF to its own PNG file.
"""

from typing import List, Optional
import logging
import os

from .editor import get_image_editor, has_editor_pdf_support
from .errors import ImageEditorError, NotAPdfError
from .models import PDF_EXTENSION, PDF_MIME_TYPE, PNG_MIME_TYPE, page_image_filename
from .utils import delete_file, get_file_extension, split_basename, unique_filename

logger = logging.getLogger(__name__)

# Only editors that can page through a PDF qualify
PDF_EDITOR_METHODS = ('pdf_get_number_of_pages', 'pdf_prepare_page_for_load', 'set_resolution')


def generate_images_for_pdf_pages(pdf_file: Optional[str],
                                  dpi: Optional[int] = None,
                                  cleanup_on_failure: bool = True) -> Optional[List[str]]:
    """
    Generate a PNG image for each page in a PDF file.

    Images are written next to the PDF, named ``<name>-p<page>-pdf.png``,
    without overwriting files that already exist.

    Args:
        pdf_file: Path of the PDF file to generate images for
        dpi: Render resolution, the editor default if omitted
        cleanup_on_failure: Delete images written by this run when a later page fails

    Returns:
        The paths of all generated images in page order, or None if no file was given

    Raises:
        NotAPdfError: If the file does not have a .pdf extension
        ImageEditorError: If no editor is available or a page can't be counted,
            rendered or saved
    """
    if not pdf_file:
        # Not an error, just don't generate anything
        return None

    pdf_file = str(pdf_file)
    if get_file_extension(pdf_file).lower() != PDF_EXTENSION:
        raise NotAPdfError(pdf_file)

    editor = get_image_editor(pdf_file, mime_type=PDF_MIME_TYPE, methods=PDF_EDITOR_METHODS)
    png_files: List[str] = []

    try:
        if dpi:
            editor.set_resolution(dpi)

        number_of_pages = editor.pdf_get_number_of_pages()
        logger.info(f"Generating images for {number_of_pages} pages of {pdf_file}")

        if not has_editor_pdf_support():
            # The standard editor does not set up PDF rendering, do it once here
            editor.pdf_setup()

        dirname = os.path.dirname(pdf_file)
        basename, _ = split_basename(pdf_file)

        for p in range(number_of_pages):
            editor.pdf_prepare_page_for_load(p)
            editor.load()

            png_file = os.path.join(dirname, unique_filename(dirname, page_image_filename(basename, p + 1)))
            saved = editor.save(png_file, PNG_MIME_TYPE)

            png_files.append(saved['path'])
            logger.debug(f"Page {p + 1}/{number_of_pages} saved to {saved['path']}")

    except ImageEditorError as e:
        logger.error(f"Generating images for {pdf_file} failed: {e.message}")
        if cleanup_on_failure:
            for png_file in png_files:
                delete_file(png_file)
        raise

    finally:
        editor.close()

    return png_files
