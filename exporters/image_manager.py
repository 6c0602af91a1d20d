"""Image manager for downloading post images and pointing img elements at the local copies."""

import logging
import posixpath
import re
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

from bs4 import Tag

from document import SourceDocument
from fetchers.base_fetcher import BaseFetcher, FetcherError
from models import Image, Post

DEFAULT_IMAGE_EXTENSION = '.jpg'
DEFAULT_IMAGE_STYLE = 'layoutTextWidth'
OUTSET_ROW_STYLE = 'layoutOutsetRow'
FEATURED_ATTRIBUTE = 'data-is-featured'

_IMAGE_LAYOUT = re.compile(r'graf--(layout\w+)')


def image_extension(src: str) -> str:
    """Extension of the URL path, '.jpg' when the path has none worth keeping."""
    ext = posixpath.splitext(urlsplit(src).path)[1]
    if len(ext) < 2:
        ext = DEFAULT_IMAGE_EXTENSION
    return ext


def image_style(img: Tag) -> str:
    """
    Medium layout of the figure holding img, e.g. 'layoutOutsetCenter'.

    Row layouts get the number of images in the row appended
    ('layoutOutsetRow3') so the site theme can size them.
    """
    figure = _enclosing_figure(img)
    if figure is None:
        return DEFAULT_IMAGE_STYLE

    match = _IMAGE_LAYOUT.search(SourceDocument.attr(figure, 'class') or '')
    style = match.group(1) if match else DEFAULT_IMAGE_STYLE

    if style.startswith(OUTSET_ROW_STYLE):  # also layoutOutsetRowContinue
        row = figure.parent
        if isinstance(row, Tag):
            style += SourceDocument.attr(row, 'data-paragraph-count') or ''

    return style


def _enclosing_figure(img: Tag) -> Optional[Tag]:
    for parent in img.parents:
        if parent.name == 'figure' and SourceDocument.has_class(parent, 'graf'):
            return parent
    return None


class ImageManager:
    """
    Downloads every image of a post and rewrites its src to the site path.

    Images are named after the post's markdown file so they sort next to it:
    2021-01-01_hello.md owns 2021-01-01_hello_0.png, 2021-01-01_hello_1.jpg...
    """

    def __init__(
        self,
        config: Dict[str, Any],
        output_dir: Path,
        fetcher: Optional[BaseFetcher] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the image manager.

        Args:
            config: Configuration dictionary
            output_dir: Root of the Hugo site being written
            fetcher: Fetcher used to download images
            logger: Logger instance
        """
        self.config = config
        self.fetcher = fetcher
        self.logger = logger or logging.getLogger('medium_hugo_migrator.exporters.image_manager')

        output_config = config.get('output', {})
        self.content_type = output_config.get('content_type', 'post')
        self.images_directory = output_config.get('images_directory', 'img')
        self.download_images = output_config.get('download_images', True)

        self.images_dir = Path(output_dir) / self.content_type / self.images_directory

    def process_images(self, post: Post) -> Dict[str, int]:
        """
        Process all img elements of a post.

        Args:
            post: Post with md_filename already set

        Returns:
            Statistics dictionary

        Raises:
            ValueError: If the post has no valid markdown filename
        """
        stats = {'images_found': 0, 'images_downloaded': 0, 'images_failed': 0}

        images = post.document.find('img')
        if not images:
            return stats

        prefix = post.filename_prefix()
        featured: Optional[Image] = None

        for index, img in enumerate(images):
            stats['images_found'] += 1

            src = SourceDocument.attr(img, 'src')
            if not src:
                self.logger.warning(f"img without src in {post.html_filename}, skipping")
                stats['images_failed'] += 1
                continue

            image = Image(source_url=src, filename=f"{prefix}_{index}{image_extension(src)}")
            post.add_image(image)

            if self.download_images:
                if not self._download_image(image):
                    stats['images_failed'] += 1
                    continue
                stats['images_downloaded'] += 1

            site_path = self._site_path(image)
            SourceDocument.set_attr(img, 'src', f"{site_path}#{image_style(img)}")

            if img.has_attr(FEATURED_ATTRIBUTE):
                featured = image

        if featured is None and post.images:
            featured = post.images[0]
        post.featured_image = featured

        self.logger.debug(
            f"Images for {post.html_filename}: {stats['images_found']} found, "
            f"{stats['images_downloaded']} downloaded, {stats['images_failed']} failed"
        )
        return stats

    def _site_path(self, image: Image) -> str:
        return image.site_path(self.content_type, self.images_directory)

    def _download_image(self, image: Image) -> bool:
        """Download one image into the images directory; False on failure."""
        if self.fetcher is None:
            self.logger.warning(f"No fetcher available, cannot download {image.source_url}")
            return False

        try:
            content = self.fetcher.get_bytes(image.source_url)
        except FetcherError as e:
            self.logger.warning(f"Failed to download image {image.source_url}: {e}")
            return False

        try:
            self.images_dir.mkdir(parents=True, exist_ok=True)
            with open(self.images_dir / image.filename, 'wb') as f:
                f.write(content)
        except OSError as e:
            self.logger.warning(f"Failed to save image {image.filename}: {e}")
            return False

        self.logger.debug(f"Saved image {image.source_url} as {image.filename}")
        return True


__all__ = ['ImageManager', 'image_extension', 'image_style']
