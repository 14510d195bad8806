"""
Page images for PDF attachments: generation, lookup and cleanup.
"""

from PIL import Image
from typing import List, Optional
import logging
import mimetypes

from .database import MediaLibrary
from .models import MIME_TYPE_META_KEY, PDF_IMAGES_META_KEY, ImageSrc, PdfImages
from .rasterizer import generate_images_for_pdf_pages
from .utils import delete_file, relative_to_base

logger = logging.getLogger(__name__)


def add_pdf_images_to_attachment(library: MediaLibrary, attachment_id: int,
                                 dpi: Optional[int] = None) -> Optional[PdfImages]:
    """
    Add PDF images to an attachment, one for each page in its PDF.

    Args:
        library: Media library holding the attachment
        attachment_id: The ID of the attachment to add PDF images to
        dpi: Render resolution, the configured resolution if omitted

    Returns:
        The stored image paths relative to the uploads base, or None if
        nothing was generated

    Raises:
        PdfSlidesError: If generating the images failed, nothing is stored then
    """
    current_pdf_images = library.get_post_meta(attachment_id, PDF_IMAGES_META_KEY)
    if current_pdf_images:
        logger.debug(f"Attachment {attachment_id} already has {len(current_pdf_images)} PDF images")
        return None

    pdf_file_path = library.get_attached_file(attachment_id)
    pdf_images = generate_images_for_pdf_pages(
        pdf_file_path,
        dpi=dpi or library.settings.pdf_dpi,
        cleanup_on_failure=library.settings.cleanup_partial_images
    )

    if not pdf_images:
        return None

    # Convert full paths to paths relative to uploads base, eg. 2017/03/upload_file-p1-pdf.png
    pdf_images = [get_file_path_relative_to_uploads_base(library, path) for path in pdf_images]

    library.update_post_meta(attachment_id, PDF_IMAGES_META_KEY, pdf_images)
    logger.info(f"Added {len(pdf_images)} PDF images to attachment {attachment_id}")
    return pdf_images


def delete_pdf_images_for_attachment(library: MediaLibrary, attachment_id: int) -> int:
    """
    Delete the generated PDF images of an attachment from disk.

    The meta entry itself is left in place.

    Returns:
        Number of image paths a delete was attempted for
    """
    slide_images = library.get_post_meta(attachment_id, PDF_IMAGES_META_KEY)
    if not slide_images:
        # No images were generated, bail
        return 0

    for slide_image in slide_images:
        delete_file(library.path_for(slide_image))

    logger.info(f"Deleted {len(slide_images)} PDF images of attachment {attachment_id}")
    return len(slide_images)


def delete_attachment(library: MediaLibrary, attachment_id: int) -> bool:
    """
    Delete an attachment with its file, its PDF images and all its meta.

    Returns:
        True if the attachment existed, False otherwise
    """
    if library.get_attachment(attachment_id) is None:
        return False

    delete_pdf_images_for_attachment(library, attachment_id)

    attached_file = library.get_attached_file(attachment_id)
    if attached_file:
        delete_file(attached_file)

    return library.delete_post(attachment_id)


def get_file_path_relative_to_uploads_base(library: MediaLibrary, file_path: str) -> str:
    """
    Get the file path relative to the uploads base.

    Eg. 2017/03/upload_file.pdf
    """
    return relative_to_base(file_path, library.upload_dir()['basedir'])


def get_pdf_images(library: MediaLibrary, attachment_id: int) -> PdfImages:
    return library.get_post_meta(attachment_id, PDF_IMAGES_META_KEY) or []


def get_pdf_image_urls(library: MediaLibrary, attachment_id: int) -> List[str]:
    """Public URLs of an attachment's PDF images, in page order."""
    return [library.url_for(path) for path in get_pdf_images(library, attachment_id)]


def get_attachment_image_src(library: MediaLibrary, attachment_id) -> Optional[ImageSrc]:
    """
    Get an image representing an attachment.

    PDF attachments are represented by the image of their first page, raster
    image attachments by themselves.

    Returns:
        ImageSrc with url, width and height, or None if there is no image
    """
    if not attachment_id or library.get_attachment(attachment_id) is None:
        return None

    pdf_images = get_pdf_images(library, attachment_id)
    if pdf_images:
        relative_path = pdf_images[0]
    else:
        attached_file = library.get_attached_file(attachment_id)
        mime_type = library.get_post_meta(attachment_id, MIME_TYPE_META_KEY) or mimetypes.guess_type(attached_file)[0]
        if not attached_file or not mime_type or not mime_type.startswith('image/'):
            return None
        relative_path = get_file_path_relative_to_uploads_base(library, attached_file)

    try:
        with Image.open(library.path_for(relative_path)) as image:
            width, height = image.size
    except OSError as e:
        logger.warning(f"Could not read image {relative_path}: {str(e)}")
        return None

    return ImageSrc(library.url_for(relative_path), width, height)
