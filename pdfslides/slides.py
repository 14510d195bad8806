"""
Slides of the PDF format: saving the selected PDF, the admin meta box and
the public slide template.
"""

from html import escape
from typing import Callable, Dict, Optional
import logging

from .attachments import add_pdf_images_to_attachment, get_attachment_image_src, get_pdf_image_urls
from .database import MediaLibrary
from .editor import has_editor_pdf_support, has_pdf_render_support
from .models import (
    DEFAULT_SLIDE_FORMAT, PDF_SLIDE_FORMAT, SLIDE_FORMAT_META_KEY, SLIDE_PDF_FILE_META_KEY,
    SLIDE_POST_TYPE, Post, parse_attachment_id
)

logger = logging.getLogger(__name__)


SLIDE_PDF_META_BOX_SCRIPT = """
        <script>
        document.querySelectorAll('.slide_image_field').forEach(field => {
            const fileInput = field.querySelector('.slide_image_file');
            const valueInput = field.querySelector('.slide_image_value');
            const preview = field.querySelector('.slide_image_preview');
            const status = field.querySelector('.slide_image_status');

            field.querySelector('.slide_image_upload_button').onclick = function() {
                fileInput.click();
            };

            field.querySelector('.slide_image_delete_button').onclick = function() {
                valueInput.value = 0;
                preview.removeAttribute('src');
                fileInput.value = '';
                status.textContent = '';
                field.classList.add('empty');
            };

            fileInput.onchange = async function() {
                if (!fileInput.files[0]) {
                    return;
                }

                const formData = new FormData();
                formData.append('file', fileInput.files[0]);

                status.textContent = 'Uploading PDF file...';

                try {
                    const response = await fetch('/attachments', {
                        method: 'POST',
                        body: formData
                    });

                    if (response.ok) {
                        const attachment = await response.json();
                        valueInput.value = attachment.id;
                        if (attachment.pdf_image_urls.length) {
                            preview.src = attachment.pdf_image_urls[0];
                        } else {
                            preview.removeAttribute('src');
                        }
                        field.classList.remove('empty');
                        status.textContent = `${fileInput.files[0].name} selected, save the slide to convert it.`;
                    } else {
                        const error = await response.text();
                        throw new Error(`Upload failed: ${error}`);
                    }
                } catch (error) {
                    status.textContent = `Error: ${error.message}`;
                }
            };
        });
        </script>"""


def create_slide(library: MediaLibrary, title: str = "", slide_format: str = DEFAULT_SLIDE_FORMAT) -> Post:
    slide = library.insert_post(SLIDE_POST_TYPE, title=title)
    library.update_post_meta(slide.id, SLIDE_FORMAT_META_KEY, slide_format)
    return slide


def get_slide_format(library: MediaLibrary, post_id: int) -> str:
    return library.get_post_meta(post_id, SLIDE_FORMAT_META_KEY) or DEFAULT_SLIDE_FORMAT


def get_slide_pdf_file(library: MediaLibrary, post_id: int) -> Optional[int]:
    return parse_attachment_id(library.get_post_meta(post_id, SLIDE_PDF_FILE_META_KEY))


def save_slide_pdf(library: MediaLibrary, post_id: int, slide_pdf_file) -> Optional[int]:
    """
    Save the PDF file selected for a slide.

    Converts a newly selected PDF file to images. An empty selection removes
    the PDF from the slide.

    Args:
        library: Media library holding the slide and the attachment
        post_id: The ID of the slide being saved
        slide_pdf_file: Submitted attachment ID of the PDF file

    Returns:
        The saved attachment ID, or None if the PDF was removed

    Raises:
        PdfSlidesError: If generating the images failed, the slide is left unchanged
    """
    attachment_id = parse_attachment_id(slide_pdf_file)

    if attachment_id is None:
        library.delete_post_meta(post_id, SLIDE_PDF_FILE_META_KEY)
        logger.info(f"Removed PDF file from slide {post_id}")
        return None

    add_pdf_images_to_attachment(library, attachment_id)

    library.update_post_meta(post_id, SLIDE_PDF_FILE_META_KEY, attachment_id)
    logger.info(f"Saved PDF file {attachment_id} for slide {post_id}")
    return attachment_id


def slide_pdf_meta_box(library: MediaLibrary, post_id: int) -> str:
    """
    Render the meta box for the PDF slide format.

    Shows a notification when PDF processing is not supported on this server.
    A selected PDF whose attachment was deleted is shown as no selection.

    Args:
        library: Media library holding the slide
        post_id: The ID of the current slide

    Returns:
        HTML of the meta box
    """
    slide_pdf_file = get_slide_pdf_file(library, post_id)
    if slide_pdf_file is not None and library.get_attachment(slide_pdf_file) is None:
        logger.debug(f"Slide {post_id} references missing attachment {slide_pdf_file}")
        slide_pdf_file = None

    slide_pdf_file_preview_url = ''
    slide_pdf_file_src = get_attachment_image_src(library, slide_pdf_file)
    if slide_pdf_file_src is not None:
        slide_pdf_file_preview_url = slide_pdf_file_src.url

    editor_support = has_editor_pdf_support()
    render_support = has_pdf_render_support()

    notification = ''
    if not editor_support or not render_support:
        lines = ['This may not work as intended.']
        if not editor_support:
            lines.append('PDF file preview requires an image editor with native PDF setup.')
        if not render_support:
            lines.append('PDF slides require PyMuPDF with PDF support, please check your installation.')
        notification = f"""
                            <p class="ui-text-notification" id="slide_pdf_pdf_support_notification">
                                {'<br />'.join(lines)}
                            </p>"""

    empty_class = ' empty' if not slide_pdf_file else ''

    return f"""<table class="form-table">
            <tbody>
                <tr>
                    <th scope="row">
                        <label for="slide_pdf_file">PDF file</label>
                    </th>
                    <td>
                        <div class="slide_image_field{empty_class}">
                            <div class="image-preview-wrapper">
                                <img class="slide_image_preview" src="{escape(slide_pdf_file_preview_url, quote=True)}" height="100">
                            </div>

                            <input type="button" class="button slide_image_upload_button" value="Upload PDF file" />
                            <input type="button" class="button slide_image_delete_button" value="Remove PDF file" />
                            <input type="file" class="slide_image_file" accept=".pdf,application/pdf" style="display: none;" />
                            <p class="slide_image_status"></p>
                            <input type="hidden" name="slide_pdf_file" class="slide_image_value" value="{slide_pdf_file or 0}">{notification}
                        </div>
                    </td>
                </tr>
            </tbody>
        </table>{SLIDE_PDF_META_BOX_SCRIPT}"""


def render_pdf_slide_format(library: MediaLibrary, post_id: int) -> str:
    """Render the PDF format: one image per page of the selected PDF."""
    slide_pdf_file = get_slide_pdf_file(library, post_id)
    if slide_pdf_file is None:
        return ''

    images = [
        f'<div class="slide-pdf-page"><img src="{escape(url, quote=True)}" alt="Page {page}" /></div>'
        for page, url in enumerate(get_pdf_image_urls(library, slide_pdf_file), start=1)
    ]
    return ''.join(images)


SLIDE_FORMAT_TEMPLATES: Dict[str, Callable[[MediaLibrary, int], str]] = {
    PDF_SLIDE_FORMAT: render_pdf_slide_format,
}


def render_slide(library: MediaLibrary, post_id: int) -> str:
    """
    Render the slide template for a slide.

    Args:
        library: Media library holding the slide
        post_id: The ID of the slide

    Returns:
        Full HTML page of the slide
    """
    slide = library.get_post(post_id, SLIDE_POST_TYPE)
    slide_format = get_slide_format(library, post_id)

    template = SLIDE_FORMAT_TEMPLATES.get(slide_format)
    body = template(library, post_id) if template else ''
    title = escape(slide.title) if slide is not None else ''

    return f"""<!DOCTYPE html>
<html>
    <head>
        <title>{title}</title>
    </head>
    <body class="single-slide">
        <div class="slide slide-{escape(slide_format, quote=True)}">{body}</div>
    </body>
</html>"""
