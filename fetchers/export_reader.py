"""Reads a Medium export: a directory or the medium-export.zip archive."""

import logging
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import List, Optional

from document import DocumentParseError, SourceDocument
from .base_fetcher import FetcherError

POSTS_DIRECTORY = 'posts'
PROFILE_PATH = Path('profile') / 'profile.html'


class ExportReadError(FetcherError):
    """The export cannot be located or read; conversion cannot start."""
    pass


class ExportReader:
    """
    Locates post files and the profile page inside a Medium export.

    Zip archives are extracted into a temporary directory which is removed
    by cleanup(). Use as a context manager to guarantee the cleanup.
    """

    def __init__(self, export_path: str, logger: Optional[logging.Logger] = None):
        """
        Initialize the reader.

        Args:
            export_path: A directory containing posts/, a posts/ directory
                itself, or a Medium .zip export
            logger: Logger instance

        Raises:
            ExportReadError: If the path does not exist or holds no posts directory
        """
        self.logger = logger or logging.getLogger('medium_hugo_migrator.fetchers.export_reader')
        self.export_path = Path(export_path).resolve()
        self._temp_dir: Optional[Path] = None

        if not self.export_path.exists():
            raise ExportReadError(f"Couldn't find the Medium export: {self.export_path}")

        if self.export_path.is_file():
            self.root = self._extract_archive(self.export_path)
        else:
            self.root = self.export_path

        self.posts_path = self._locate_posts(self.root)
        self.logger.info(f"Reading posts from {self.posts_path}")

    def _extract_archive(self, archive: Path) -> Path:
        """Extract a zip export into a fresh temporary directory."""
        if not zipfile.is_zipfile(archive):
            raise ExportReadError(f"Not a zip archive: {archive}")

        self._temp_dir = Path(tempfile.mkdtemp(prefix='medium-to-hugo_'))
        destination = self._temp_dir.resolve()

        try:
            with zipfile.ZipFile(archive) as zf:
                for member in zf.infolist():
                    target = (destination / member.filename).resolve()
                    # zip-slip: every member must land inside the destination
                    if destination != target and destination not in target.parents:
                        raise ExportReadError(f"{member.filename}: illegal file path in archive")
                zf.extractall(destination)
        except (zipfile.BadZipFile, OSError) as e:
            self.cleanup()
            raise ExportReadError(f"Couldn't extract archive {archive}: {e}") from e
        except ExportReadError:
            self.cleanup()
            raise

        self.logger.debug(f"Extracted {archive} -> {destination}")
        return destination

    def _locate_posts(self, root: Path) -> Path:
        if root.name == POSTS_DIRECTORY and root.is_dir():
            return root

        posts = root / POSTS_DIRECTORY
        if posts.is_dir():
            return posts

        # Archives sometimes wrap everything in a single top-level folder
        nested = [child / POSTS_DIRECTORY for child in root.iterdir() if child.is_dir()]
        nested = [path for path in nested if path.is_dir()]
        if len(nested) == 1:
            return nested[0]

        self.cleanup()
        raise ExportReadError(f"Couldn't find posts content in the Medium export: {root}")

    def list_posts(self) -> List[Path]:
        """
        Return every entry of the posts directory, sorted by name.

        Non-HTML entries are included so the caller can report them as ignored.

        Raises:
            ExportReadError: If the directory cannot be listed
        """
        try:
            return sorted(self.posts_path.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise ExportReadError(f"Couldn't read posts directory {self.posts_path}: {e}") from e

    def read_username(self) -> str:
        """
        Read the Medium username from profile/profile.html.

        Returns:
            Username without the leading '@'

        Raises:
            ExportReadError: If the profile page is missing or has no username
        """
        candidates = [self.posts_path.parent / PROFILE_PATH, self.root / PROFILE_PATH]
        profile_file = next((path for path in candidates if path.is_file()), None)
        if profile_file is None:
            raise ExportReadError("profile/profile.html not found in export")

        try:
            profile = SourceDocument.parse(profile_file.read_bytes())
        except (OSError, DocumentParseError) as e:
            raise ExportReadError(f"Couldn't read profile page: {e}") from e

        url_element = profile.find_first('.u-url')
        if url_element is None:
            raise ExportReadError("couldn't find a username section")

        username = url_element.get_text(strip=True).lstrip('@')
        if not username:
            raise ExportReadError("username section is empty")

        return username

    def cleanup(self) -> None:
        """Remove the temporary extraction directory, if any."""
        if self._temp_dir is not None:
            shutil.rmtree(self._temp_dir, ignore_errors=True)
            self.logger.debug(f"Removed temporary directory {self._temp_dir}")
            self._temp_dir = None

    def __enter__(self) -> 'ExportReader':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()


__all__ = ['ExportReader', 'ExportReadError', 'POSTS_DIRECTORY']
