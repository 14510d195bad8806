"""
FastAPI web service for PDF slides.
"""

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from html import escape
import logging
from typing import Optional

from . import __version__
from .attachments import delete_attachment, get_pdf_image_urls, get_pdf_images
from .config import Settings
from .database import MediaLibrary
from .editor import has_editor_pdf_support, has_pdf_render_support
from .errors import NotAPdfError, PdfSlidesError
from .models import SLIDE_POST_TYPE, parse_attachment_id
from .slides import create_slide, get_slide_pdf_file, render_slide, save_slide_pdf, slide_pdf_meta_box

logger = logging.getLogger(__name__)

SERVICE_NAME = "PDF Slides"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the web service.

    Args:
        settings: Application settings, read from the environment if omitted

    Returns:
        The FastAPI application
    """
    settings = settings or Settings.from_env()
    _configure_logging(settings.log_level)

    library = MediaLibrary(settings)

    app = FastAPI(
        title=SERVICE_NAME,
        description="Upload PDF files and show each of their pages as a slide image",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.library = library

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.uploads_url.startswith("/"):
        app.mount(settings.uploads_url, StaticFiles(directory=str(settings.uploads_dir), check_dir=False),
                  name="uploads")

    def _get_slide_or_404(slide_id: int):
        slide = library.get_post(slide_id, SLIDE_POST_TYPE)
        if slide is None:
            raise HTTPException(status_code=404, detail="Slide not found")
        return slide

    def _get_attachment_or_404(attachment_id: int):
        attachment = library.get_attachment(attachment_id)
        if attachment is None:
            raise HTTPException(status_code=404, detail="Attachment not found")
        return attachment

    def _attachment_info(attachment_id: int) -> dict:
        attachment = library.get_attachment(attachment_id)
        pdf_images = get_pdf_images(library, attachment_id)
        return {
            "id": attachment.id,
            "title": attachment.title,
            "file": library.get_attached_file(attachment_id),
            "pdf_images": pdf_images,
            "pdf_image_urls": get_pdf_image_urls(library, attachment_id),
        }

    @app.on_event("startup")
    async def startup_event():
        """Initialize storage and check dependencies."""
        logger.info("Starting PDF Slides service")
        library.init_db()

        if not has_pdf_render_support():
            logger.warning("PyMuPDF PDF support is not available - PDF slides will not work")
        if not has_editor_pdf_support():
            logger.warning("Image editor has no native PDF setup - PDF setup is done per conversion")

    @app.get("/", response_class=HTMLResponse)
    async def root():
        """Return the list of slides."""
        items = "".join(
            f'<li><a href="/slides/{slide.id}">{escape(slide.title) or f"Slide {slide.id}"}</a> '
            f'(<a href="/slides/{slide.id}/edit">edit</a>)</li>'
            for slide in library.get_posts(SLIDE_POST_TYPE)
        )
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <title>{SERVICE_NAME}</title>
            <style>
                body {{ font-family: Arial, sans-serif; margin: 40px; background: #f5f5f5; }}
                h1 {{ color: #333; }}
            </style>
        </head>
        <body>
            <h1>{SERVICE_NAME}</h1>
            <ul>{items}</ul>
            <p><a href="/docs">View API Documentation</a> | <a href="/health">Check Health</a></p>
        </body>
        </html>
        """

    @app.post("/attachments")
    async def upload_attachment(file: UploadFile = File(...)):
        """
        Store an uploaded file as an attachment.

        Raises:
            HTTPException: If the upload is empty or can't be stored
        """
        if not file.filename:
            raise HTTPException(status_code=400, detail="Please upload a file")

        content = await file.read()
        if len(content) == 0:
            raise HTTPException(status_code=400, detail="Empty file uploaded")

        try:
            attachment = library.add_attachment(file.filename, content, file.content_type)
        except OSError as e:
            logger.error(f"Storing upload failed: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Upload failed: {str(e)}")

        return _attachment_info(attachment.id)

    @app.get("/attachments/{attachment_id}")
    async def get_attachment(attachment_id: int):
        _get_attachment_or_404(attachment_id)
        return _attachment_info(attachment_id)

    @app.delete("/attachments/{attachment_id}")
    async def remove_attachment(attachment_id: int):
        _get_attachment_or_404(attachment_id)
        delete_attachment(library, attachment_id)
        return {"id": attachment_id, "deleted": True}

    @app.post("/slides")
    async def add_slide(title: str = Form("")):
        slide = create_slide(library, title)
        return {"id": slide.id, "title": slide.title}

    @app.get("/slides/{slide_id}", response_class=HTMLResponse)
    async def show_slide(slide_id: int):
        _get_slide_or_404(slide_id)
        return render_slide(library, slide_id)

    @app.get("/slides/{slide_id}/edit", response_class=HTMLResponse)
    async def edit_slide(slide_id: int):
        slide = _get_slide_or_404(slide_id)
        return f"""
        <!DOCTYPE html>
        <html>
        <head><title>Edit {escape(slide.title)}</title></head>
        <body>
            <form method="post" action="/slides/{slide_id}">
                {slide_pdf_meta_box(library, slide_id)}
                <button type="submit" class="button button-primary">Save</button>
            </form>
        </body>
        </html>
        """

    @app.post("/slides/{slide_id}")
    async def save_slide(slide_id: int, slide_pdf_file: str = Form("")):
        """
        Save the PDF file selected for a slide, generating its page images.

        Raises:
            HTTPException: If the slide or attachment doesn't exist, the file
                is not a PDF, or the conversion fails
        """
        _get_slide_or_404(slide_id)

        attachment_id = parse_attachment_id(slide_pdf_file)
        if attachment_id is not None:
            _get_attachment_or_404(attachment_id)

        try:
            saved = save_slide_pdf(library, slide_id, slide_pdf_file)
        except NotAPdfError as e:
            raise HTTPException(status_code=400, detail=e.message)
        except PdfSlidesError as e:
            logger.error(f"PDF conversion for slide {slide_id} failed: {e.message}")
            raise HTTPException(
                status_code=500,
                detail=f"Conversion failed: {e.message}"
            )

        return {
            "id": slide_id,
            "slide_pdf_file": get_slide_pdf_file(library, slide_id),
            "pdf_image_urls": get_pdf_image_urls(library, saved) if saved else [],
        }

    @app.get("/health")
    async def health_check():
        """
        Check service health and dependencies.

        Returns:
            Dictionary with health status
        """
        health_status = {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": __version__,
            "dependencies": {
                "pdf_render_support": has_pdf_render_support(),
                "editor_pdf_support": has_editor_pdf_support(),
            }
        }

        warnings = []
        if not health_status["dependencies"]["pdf_render_support"]:
            warnings.append("PDF slides require PyMuPDF with PDF support")
        if not health_status["dependencies"]["editor_pdf_support"]:
            warnings.append("Image editor has no native PDF setup")

        if warnings:
            health_status["status"] = "degraded"
            health_status["warnings"] = warnings

        return health_status

    @app.exception_handler(404)
    async def not_found_handler(request, exc):
        """Handle 404 errors with custom message."""
        detail = getattr(exc, "detail", None)
        if detail and detail != "Not Found":
            return JSONResponse(status_code=404, content={"detail": detail})

        return HTMLResponse(
            content="""
            <html>
            <body style="font-family: Arial, sans-serif; text-align: center; padding: 50px;">
                <h1>404 - Page Not Found</h1>
                <p>The requested endpoint does not exist.</p>
                <p><a href="/">Return to Home</a> | <a href="/docs">View API Documentation</a></p>
            </body>
            </html>
            """,
            status_code=404
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
