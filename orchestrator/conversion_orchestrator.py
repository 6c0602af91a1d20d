"""
Conversion orchestrator for running the Medium export through the pipeline.

Every post goes through parse → prune → extract → images → links → tags →
convert → render → persist before the next one starts. A failing post is
recorded in the BatchResult and the batch moves on.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from tqdm import tqdm

from converters import HtmlCleaner, LinkProcessor, MarkdownConverter, MetadataExtractor, build_md_filename
from document import DocumentParseError
from exporters import ExportError, ImageManager, MarkdownExporter
from fetchers import BaseFetcher, ExportReader, ExportReadError, TagFetcher, TagFetchError
from logger import ProgressTracker, log_section
from models import BatchResult, DocumentResult, DocumentStatus, Post

HTML_EXTENSION = '.html'


class ConversionOrchestrator:
    """Sequences the per-post pipeline stages and the batch loop around them."""

    def __init__(
        self,
        config: Dict[str, Any],
        fetcher: Optional[BaseFetcher] = None,
        logger: Optional[logging.Logger] = None,
        output_dir: Optional[str] = None
    ):
        """
        Initialize conversion orchestrator.

        Args:
            config: Configuration dictionary
            fetcher: Fetcher for images, gists and tag pages; None keeps the run offline
            logger: Optional logger instance
            output_dir: Optional output directory override
        """
        self.config = config
        self.fetcher = fetcher
        self.logger = logger or logging.getLogger('medium_hugo_migrator.orchestrator.conversion_orchestrator')

        self.exporter = MarkdownExporter(config, logger=self.logger, output_dir=output_dir)
        self.output_directory = self.exporter.output_directory

        medium_config = config.get('medium', {})
        self.fallback_username = medium_config.get('username') or None

        self.cleaner = HtmlCleaner(logger=self.logger)
        self.metadata_extractor = MetadataExtractor(logger=self.logger)
        self.image_manager = ImageManager(config, self.output_directory, fetcher=fetcher, logger=self.logger)
        self.link_processor = LinkProcessor(medium_config.get('base_url', 'https://medium.com'), logger=self.logger)
        self.tag_fetcher = TagFetcher(fetcher, logger=self.logger) if fetcher is not None else None
        self.converter = MarkdownConverter(logger=self.logger)

        self.show_progress = config.get('output', {}).get('progress_bars', True)

    def run(self, reader: ExportReader) -> BatchResult:
        """
        Convert every entry of the export's posts directory.

        Returns:
            BatchResult with ignored and errored filenames and summed counters

        Raises:
            ExportReadError: If the posts directory cannot be listed
            ExportError: If the output directory cannot be created
        """
        self.prepare_output()

        batch = BatchResult(output_path=str(self.exporter.posts_path))
        batch.username = self.resolve_username(reader)

        entries = reader.list_posts()
        log_section("Converting Posts")
        self.logger.info(f"Converting {len(entries)} entries from {reader.posts_path}")

        show_progress = self._should_show_progress()
        progress = tqdm(entries, desc="Posts", unit="post", disable=not show_progress)

        with ProgressTracker(total_items=len(entries), item_type='posts') as tracker:
            for entry in progress:
                if show_progress:
                    progress.set_postfix_str(entry.name)

                result = self.process_document(entry, batch.username)
                batch.record(result)
                tracker.record(result.status.value, entry.name)

        progress.close()
        self.exporter.log_export_summary()

        self.logger.info(
            f"Conversion complete: {batch.success_count} converted, "
            f"{len(batch.ignored)} ignored, {len(batch.errored)} errored"
        )
        return batch

    def prepare_output(self) -> None:
        """Create the posts directory up front so an unwritable output aborts the run."""
        try:
            self.exporter.posts_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportError(f"Couldn't create output directory {self.exporter.posts_path}: {e}") from e

    def resolve_username(self, reader: ExportReader) -> Optional[str]:
        """Username from the export's profile page, else the configured one."""
        try:
            username = reader.read_username()
            self.logger.info(f"Medium username: {username}")
            return username
        except ExportReadError as e:
            if self.fallback_username:
                self.logger.warning(f"{e}; using configured username {self.fallback_username}")
                return self.fallback_username
            self.logger.warning(f"{e}; self links will not be rewritten")
            return None

    def process_document(self, path: Path, username: Optional[str] = None) -> DocumentResult:
        """
        Run one source file through the whole pipeline.

        Never raises for per-document problems: they are recorded in the
        returned DocumentResult.
        """
        path = Path(path)
        result = DocumentResult(html_filename=path.name)

        if path.is_dir() or path.suffix.lower() != HTML_EXTENSION:
            self.logger.debug(f"Ignoring {path.name}: not an HTML file")
            result.status = DocumentStatus.IGNORED
            result.reason = 'extension'
            return result

        try:
            post = Post.from_file(path)

            self.cleaner.clean(post.document)
            self.metadata_extractor.extract(post)
            post.md_filename = build_md_filename(post)
            result.md_filename = post.md_filename

            self._merge_stats(result, self.image_manager.process_images(post))
            result.count('self_links_rewritten', self.link_processor.fix_self_links(post, username))
            self._populate_tags(post, result)
            self._merge_stats(result, self.converter.convert_post(post, fetcher=self.fetcher))

            written = self.exporter.write(post)
        except (DocumentParseError, OSError, ExportError, ValueError) as e:
            self.logger.error(f"Failed to convert {path.name}: {str(e)}")
            result.status = DocumentStatus.ERRORED
            result.reason = str(e)
            return result
        except Exception as e:
            self.logger.error(f"Unexpected error converting {path.name}: {str(e)}", exc_info=True)
            result.status = DocumentStatus.ERRORED
            result.reason = f"{type(e).__name__}: {e}"
            return result

        if not written:
            result.status = DocumentStatus.IGNORED
            result.reason = 'empty body'
            return result

        self.logger.debug(f"Converted {path.name} -> {post.md_filename}")
        return result

    def _populate_tags(self, post: Post, result: DocumentResult) -> None:
        if self.tag_fetcher is None:
            return

        try:
            tags = self.tag_fetcher.populate_tags(post)
        except TagFetchError as e:
            self.logger.warning(f"Couldn't fetch tags for {post.html_filename}: {e}")
            result.count('tag_fetch_failed')
            post.tags = []
            return

        result.count('tags_found', len(tags))

    @staticmethod
    def _merge_stats(result: DocumentResult, stats: Dict[str, int]) -> None:
        for key, value in stats.items():
            result.count(key, value)

    def _should_show_progress(self) -> bool:
        return bool(self.show_progress) and sys.stdout.isatty()


__all__ = ['ConversionOrchestrator']
