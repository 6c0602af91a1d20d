"""Data models for the Medium to Hugo conversion pipeline."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from document import SourceDocument

logger = logging.getLogger('medium_hugo_migrator')

MARKDOWN_FILE_EXTENSION = '.md'
DRAFT_PREFIX = 'draft_'

# Per-document counters, summed into BatchResult by the control loop
STAT_KEYS = (
    'images_found',
    'images_downloaded',
    'images_failed',
    'gists_converted',
    'gist_failures',
    'self_links_rewritten',
    'tags_found',
    'tag_fetch_failed',
)


class DocumentStatus(Enum):
    """Outcome of processing a single source document."""
    CONVERTED = "converted"
    IGNORED = "ignored"
    ERRORED = "errored"


@dataclass(frozen=True)
class Image:
    """An img element discovered in a post, with its assigned local filename."""

    source_url: str
    filename: str

    def site_path(self, content_type: str = 'post', images_dir: str = 'img') -> str:
        """Path of the downloaded image relative to the Hugo site root."""
        return f"/{content_type}/{images_dir}/{self.filename}"


@dataclass
class Post:
    """Represents one Medium post while it moves through the pipeline."""

    document: SourceDocument
    html_filename: str
    title: str = ''
    author: str = ''
    body: str = ''
    date: str = ''
    lastmod: str = field(default_factory=lambda: datetime.now(timezone.utc).replace(microsecond=0).isoformat())
    subtitle: str = ''
    description: str = ''
    canonical: str = ''
    full_url: str = ''
    featured_image: Optional[Image] = None
    images: List[Image] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    draft: bool = False
    md_filename: str = ''

    def __post_init__(self) -> None:
        """Drafts are marked by their file name in the export."""
        if not self.draft:
            self.draft = self.html_filename.startswith(DRAFT_PREFIX)

    @classmethod
    def from_bytes(cls, data: bytes, html_filename: str) -> 'Post':
        """
        Parse raw HTML into a new Post.

        Raises:
            DocumentParseError: If the document cannot be parsed
        """
        return cls(document=SourceDocument.parse(data), html_filename=html_filename)

    @classmethod
    def from_file(cls, path: Path) -> 'Post':
        """Read and parse a source HTML file."""
        path = Path(path)
        with open(path, 'rb') as f:
            data = f.read()
        return cls.from_bytes(data, path.name)

    def filename_prefix(self) -> str:
        """
        Return the markdown filename without its extension.

        Image filenames are derived from this value.

        Raises:
            ValueError: If the markdown filename is not set or invalid
        """
        if not self.md_filename.strip():
            raise ValueError("empty filename")

        if Path(self.md_filename).suffix != MARKDOWN_FILE_EXTENSION:
            raise ValueError(f"invalid filename set: {self.md_filename}")

        return self.md_filename[:-len(MARKDOWN_FILE_EXTENSION)]

    def add_image(self, image: Image) -> None:
        """Add a discovered image, keeping discovery order."""
        self.images.append(image)


@dataclass
class DocumentResult:
    """Result of running the pipeline on one source document."""

    html_filename: str
    status: DocumentStatus = DocumentStatus.CONVERTED
    reason: Optional[str] = None
    md_filename: Optional[str] = None
    stats: Dict[str, int] = field(default_factory=lambda: {key: 0 for key in STAT_KEYS})

    def count(self, key: str, amount: int = 1) -> None:
        """Increment a per-document counter."""
        self.stats[key] = self.stats.get(key, 0) + amount

    def to_dict(self) -> Dict[str, Any]:
        """Serialize result to dictionary."""
        return {
            'html_filename': self.html_filename,
            'status': self.status.value,
            'reason': self.reason,
            'md_filename': self.md_filename,
            'stats': dict(self.stats),
        }


@dataclass
class BatchResult:
    """Aggregated results of a conversion run, written only by the batch loop."""

    ignored: List[str] = field(default_factory=list)
    errored: List[str] = field(default_factory=list)
    success_count: int = 0
    totals: Dict[str, int] = field(default_factory=lambda: {key: 0 for key in STAT_KEYS})
    results: List[DocumentResult] = field(default_factory=list)
    username: Optional[str] = None
    output_path: Optional[str] = None

    def record(self, result: DocumentResult) -> None:
        """Fold a document result into the batch totals."""
        self.results.append(result)

        if result.status is DocumentStatus.CONVERTED:
            self.success_count += 1
        elif result.status is DocumentStatus.IGNORED:
            self.ignored.append(result.html_filename)
        else:
            self.errored.append(result.html_filename)

        for key, value in result.stats.items():
            self.totals[key] = self.totals.get(key, 0) + value

    @property
    def total(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize batch result to dictionary."""
        return {
            'total': self.total,
            'success_count': self.success_count,
            'ignored': list(self.ignored),
            'errored': list(self.errored),
            'totals': dict(self.totals),
            'username': self.username,
            'output_path': self.output_path,
            'documents': [result.to_dict() for result in self.results],
        }


__all__ = [
    'BatchResult',
    'DocumentResult',
    'DocumentStatus',
    'DRAFT_PREFIX',
    'Image',
    'MARKDOWN_FILE_EXTENSION',
    'Post',
    'STAT_KEYS',
]
