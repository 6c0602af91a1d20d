"""Converters package: pruning, metadata, self-link rewriting and Markdown conversion for Medium posts."""

from .html_cleaner import HtmlCleaner
from .link_processor import LinkProcessor
from .markdown_converter import MarkdownConverter
from .metadata_extractor import MetadataExtractor, build_md_filename, generate_slug
from .rules import RULES, ConversionContext, ConversionRule, apply_rules

__all__ = [
    'apply_rules',
    'build_md_filename',
    'ConversionContext',
    'ConversionRule',
    'generate_slug',
    'HtmlCleaner',
    'LinkProcessor',
    'MarkdownConverter',
    'MetadataExtractor',
    'RULES',
]
