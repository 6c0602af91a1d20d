"""Markdown exporter: renders converted posts as Hugo content files."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from models import Post


class ExportError(Exception):
    """Raised when a rendered post cannot be written to disk."""
    pass


class MarkdownExporter:
    """
    Writes converted posts to <output>/<content_type>/<md_filename>.

    Each file is YAML front matter followed by the Markdown body.
    """

    def __init__(self, config: Dict[str, Any], logger: Optional[logging.Logger] = None, output_dir: Optional[str] = None):
        """
        Initialize the markdown exporter.

        Args:
            config: Configuration dictionary with output settings
            logger: Logger instance
            output_dir: Optional output directory override (takes precedence over config)
        """
        self.config = config
        self.logger = logger or logging.getLogger('medium_hugo_migrator.exporters.markdown_exporter')

        output_config = config.get('output', {})
        self.output_directory = Path(output_dir) if output_dir else Path(output_config.get('directory', './medium-to-hugo'))
        self.content_type = output_config.get('content_type', 'post')
        self.images_directory = output_config.get('images_directory', 'img')
        self.ignore_empty = output_config.get('ignore_empty', False)

        self.posts_path = self.output_directory / self.content_type

        self.stats = {
            'posts_written': 0,
            'posts_ignored': 0,
        }

    def render(self, post: Post) -> str:
        """Render front matter and body into the final file content."""
        return f"{self._generate_frontmatter(post)}\n\n{post.body}\n"

    def write(self, post: Post) -> bool:
        """
        Render and write a post.

        Args:
            post: Converted post with md_filename set

        Returns:
            False if the post was skipped because its body is empty, True if written

        Raises:
            ExportError: If the file cannot be written
        """
        if not post.body and self.ignore_empty:
            self.logger.debug(f"Ignoring {post.html_filename}: empty body")
            self.stats['posts_ignored'] += 1
            return False

        if not post.md_filename:
            raise ExportError(f"No markdown filename set for {post.html_filename}")

        output_file = self.posts_path / post.md_filename
        try:
            self.posts_path.mkdir(parents=True, exist_ok=True)
            with open(output_file, 'w', encoding='utf-8') as f:
                f.write(self.render(post))
        except OSError as e:
            raise ExportError(f"Failed to write {output_file}: {e}") from e

        self.stats['posts_written'] += 1
        self.logger.debug(f"Wrote {output_file}")
        return True

    def _site_path(self, image) -> str:
        return image.site_path(self.content_type, self.images_directory)

    def _generate_frontmatter(self, post: Post) -> str:
        """
        Generate YAML front matter for a post.

        Optional keys are only emitted when they carry a value: draft when
        true, tags, image and images when present, aliases when the post
        has a canonical slug.

        Returns:
            YAML front matter string
        """
        frontmatter = {}

        frontmatter['title'] = post.title
        frontmatter['author'] = post.author
        frontmatter['date'] = post.date
        frontmatter['lastmod'] = post.lastmod

        if post.draft:
            frontmatter['draft'] = True

        frontmatter['description'] = post.description
        frontmatter['subtitle'] = post.subtitle

        if post.tags:
            frontmatter['tags'] = list(post.tags)

        if post.featured_image is not None:
            frontmatter['image'] = self._site_path(post.featured_image)

        if post.images:
            frontmatter['images'] = [self._site_path(image) for image in post.images]

        # Keep the old Medium slug reachable on the new site
        if post.canonical:
            frontmatter['aliases'] = [f"/{post.canonical}"]

        # default_flow_style=False ensures lists are formatted in block style (with - prefixes)
        yaml_str = yaml.dump(
            frontmatter,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=1000  # Prevent line wrapping
        )

        return f"---\n{yaml_str}---"

    def log_export_summary(self) -> None:
        """Log final export statistics."""
        self.logger.info("=" * 60)
        self.logger.info("MARKDOWN EXPORT SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Posts written: {self.stats['posts_written']}")
        self.logger.info(f"Posts ignored (empty body): {self.stats['posts_ignored']}")
        self.logger.info(f"Output directory: {self.posts_path}")
        self.logger.info("=" * 60)


__all__ = ['ExportError', 'MarkdownExporter']
