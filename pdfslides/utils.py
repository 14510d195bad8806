"""
Utility functions for file names and paths inside the uploads directory.
"""

import logging
import os
import re
from typing import Tuple

logger = logging.getLogger(__name__)


def get_file_extension(file_path: str) -> str:
    """
    Get the extension of a file path, without the leading dot.

    Args:
        file_path: File path or name

    Returns:
        Extension as written in the path, or an empty string
    """
    return os.path.splitext(file_path)[1].lstrip('.')


def split_basename(file_path: str) -> Tuple[str, str]:
    """
    Split a path into its base name without extension and its extension.

    Args:
        file_path: File path or name

    Returns:
        Tuple of (name, extension), extension including the leading dot
    """
    return os.path.splitext(os.path.basename(file_path))


def trailingslashit(path: str) -> str:
    """Return the path with exactly one trailing separator."""
    return path.rstrip('/\\') + '/'


def unique_filename(directory: str, filename: str) -> str:
    """
    Get a filename that does not exist yet in a directory.

    ``name.png`` becomes ``name-1.png``, ``name-2.png``, ... until a free
    name is found.

    Args:
        directory: Directory the file will be written to
        filename: Desired file name

    Returns:
        A file name (without directory) that is free in the directory
    """
    name, ext = os.path.splitext(filename)
    candidate = filename
    number = 1

    while os.path.exists(os.path.join(directory, candidate)):
        candidate = f"{name}-{number}{ext}"
        number += 1

    return candidate


def sanitize_filename(filename: str) -> str:
    """
    Make an uploaded file name safe to store.

    Drops any directory part, replaces whitespace with dashes and strips
    characters other than letters, digits, dots, dashes and underscores.

    Args:
        filename: Client supplied file name

    Returns:
        Sanitized file name, ``file`` if nothing usable remains
    """
    filename = os.path.basename(filename.replace('\\', '/'))
    filename = re.sub(r'\s+', '-', filename.strip())
    filename = re.sub(r'[^\w.\-]', '', filename)
    filename = filename.strip('.-')
    return filename or 'file'


def relative_to_base(file_path: str, base_dir: str) -> str:
    """
    Strip a base directory prefix from a path.

    Eg. ``/srv/uploads/2017/03/upload_file.pdf`` becomes ``2017/03/upload_file.pdf``.
    Paths outside the base directory are returned unchanged.

    Args:
        file_path: Full file path
        base_dir: Base directory

    Returns:
        The path relative to the base directory
    """
    return file_path.replace(trailingslashit(base_dir), '', 1)


def delete_file(file_path: str) -> bool:
    """
    Delete a file, ignoring files that are already gone.

    Args:
        file_path: Path of the file to delete

    Returns:
        True if a file was deleted, False otherwise
    """
    try:
        os.unlink(file_path)
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"Could not delete {file_path}: {str(e)}")
        return False
    return True
