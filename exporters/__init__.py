"""Export package: writes converted Medium posts and their images into a Hugo site tree.

Package Structure:
- markdown_exporter: Renders front matter and body, writes <content_type>/<md_filename>
- image_manager: Downloads post images to <content_type>/<images_directory> and rewrites img src
"""

from .image_manager import ImageManager
from .markdown_exporter import ExportError, MarkdownExporter

__all__ = ['ExportError', 'ImageManager', 'MarkdownExporter']
