"""
Media library: post and meta storage plus the uploads directory.

Attachments and slides are stored as posts; everything else about them
(attached file, generated page images, selected PDF) lives in post meta.
"""
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging
import os

from sqlalchemy import create_engine, select, and_
from sqlalchemy.orm import sessionmaker, Session

from .config import Settings
from .models import (
    ATTACHED_FILE_META_KEY, ATTACHMENT_POST_TYPE, MIME_TYPE_META_KEY, Post
)
from .schema import Base, PostRecord, PostMetaRecord
from .utils import sanitize_filename, trailingslashit, unique_filename

logger = logging.getLogger(__name__)


class MediaLibrary:
    """Manages posts, post meta and uploaded files."""

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize the media library.

        Args:
            settings: Application settings. Defaults to settings from the environment.
        """
        self.settings = settings or Settings.from_env()
        connect_args = {}
        if self.settings.database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False  # SQLite specific
        self.engine = create_engine(
            self.settings.database_url,
            echo=False,
            connect_args=connect_args
        )
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def init_db(self) -> None:
        """Create the uploads directory and all database tables."""
        self.settings.ensure_dirs()
        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    # Uploads

    def upload_dir(self) -> Dict[str, str]:
        """Base directory and base URL of uploaded files."""
        return {
            "basedir": str(self.settings.uploads_dir),
            "baseurl": self.settings.uploads_url,
        }

    def url_for(self, relative_path: str) -> str:
        """Public URL of a file given its path relative to the uploads base."""
        return f"{self.settings.uploads_url}/{relative_path.lstrip('/')}"

    def path_for(self, relative_path: str) -> str:
        """Absolute path of a file given its path relative to the uploads base."""
        return trailingslashit(str(self.settings.uploads_dir)) + relative_path

    # Posts

    def insert_post(self, post_type: str, title: str = "") -> Post:
        with self.get_session() as session:
            record = PostRecord(post_type=post_type, title=title)
            session.add(record)
            session.commit()
            return Post(record.id, record.post_type, record.title)

    def get_post(self, post_id: int, post_type: Optional[str] = None) -> Optional[Post]:
        """Get a post by ID, optionally only if it has the given type."""
        with self.get_session() as session:
            record = session.get(PostRecord, post_id)
            if record is None or (post_type and record.post_type != post_type):
                return None
            return Post(record.id, record.post_type, record.title)

    def get_posts(self, post_type: str) -> List[Post]:
        with self.get_session() as session:
            stmt = select(PostRecord).where(PostRecord.post_type == post_type).order_by(PostRecord.id)
            return [Post(r.id, r.post_type, r.title) for r in session.scalars(stmt).all()]

    def delete_post(self, post_id: int) -> bool:
        """Delete a post and all its meta."""
        with self.get_session() as session:
            record = session.get(PostRecord, post_id)
            if record is None:
                return False
            session.delete(record)
            session.commit()
            return True

    # Post meta

    def _get_meta_record(self, session: Session, post_id: int, meta_key: str) -> Optional[PostMetaRecord]:
        stmt = select(PostMetaRecord).where(
            and_(
                PostMetaRecord.post_id == post_id,
                PostMetaRecord.meta_key == meta_key
            )
        )
        return session.scalar(stmt)

    def get_post_meta(self, post_id: int, meta_key: str, default: Any = None) -> Any:
        with self.get_session() as session:
            record = self._get_meta_record(session, post_id, meta_key)
            if record is None or record.meta_value is None:
                return default
            return json.loads(record.meta_value)

    def update_post_meta(self, post_id: int, meta_key: str, meta_value: Any) -> None:
        """Create or replace a meta value."""
        with self.get_session() as session:
            record = self._get_meta_record(session, post_id, meta_key)
            if record is None:
                record = PostMetaRecord(post_id=post_id, meta_key=meta_key)
                session.add(record)
            record.meta_value = json.dumps(meta_value)
            session.commit()

    def delete_post_meta(self, post_id: int, meta_key: str) -> bool:
        with self.get_session() as session:
            record = self._get_meta_record(session, post_id, meta_key)
            if record is None:
                return False
            session.delete(record)
            session.commit()
            return True

    # Attachments

    def add_attachment(self, filename: str, data: bytes, mime_type: Optional[str] = None) -> Post:
        """
        Store an uploaded file and create its attachment post.

        Files go into a ``YYYY/MM`` subdirectory of the uploads base and never
        overwrite an existing file.

        Args:
            filename: Client supplied file name
            data: File content
            mime_type: Mime type reported by the client

        Returns:
            The attachment post
        """
        subdir = datetime.now().strftime("%Y/%m")
        target_dir = Path(self.settings.uploads_dir) / subdir
        target_dir.mkdir(parents=True, exist_ok=True)

        name = unique_filename(str(target_dir), sanitize_filename(filename))
        (target_dir / name).write_bytes(data)

        attachment = self.insert_post(ATTACHMENT_POST_TYPE, title=os.path.splitext(name)[0])
        self.update_post_meta(attachment.id, ATTACHED_FILE_META_KEY, f"{subdir}/{name}")
        if mime_type:
            self.update_post_meta(attachment.id, MIME_TYPE_META_KEY, mime_type)

        logger.info(f"Stored attachment {attachment.id}: {subdir}/{name} ({len(data)} bytes)")
        return attachment

    def get_attachment(self, attachment_id: int) -> Optional[Post]:
        return self.get_post(attachment_id, ATTACHMENT_POST_TYPE)

    def get_attached_file(self, attachment_id: int) -> str:
        """
        Get the full path of an attachment's file.

        Returns:
            The file path, or an empty string if the attachment has no file
        """
        relative_path = self.get_post_meta(attachment_id, ATTACHED_FILE_META_KEY)
        if not relative_path:
            return ""
        return self.path_for(relative_path)
