"""
Conversion rules for Medium HTML.

Each rule maps one element (or text node) to a Markdown fragment, or
returns None to let the next rule, and finally markdownify's default
handling, deal with it. Rules are tried in RULES order and the first
fragment wins.
"""

import html
import logging
import posixpath
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Set, Tuple
from urllib.parse import urlsplit, urlunsplit

from bs4 import Comment, NavigableString, Tag
from bs4.element import PageElement

from document import DocumentParseError, SourceDocument
from fetchers.base_fetcher import BaseFetcher, FetcherError

logger = logging.getLogger('medium_hugo_migrator.converters.rules')

TEXT_NODE = '#text'
DEFAULT_FENCE = '```'

GIST_PREFIX = 'https://gist.github'
GIST_HOST = 'gist.github.com'
GIST_RAW_HOST = 'gist.githubusercontent.com'
GIST_LANGUAGE_META = "meta[name='dimension7']"
GIST_LANGUAGE_MAP = {
    'unknown': '',
    'shell': 'bash',
}

SLIDESHARE_DOMAIN = 'slideshare.net'
SLIDESHARE_IFRAME = (
    '<iframe src="{src}" width="595" height="485" frameborder="0" marginwidth="0" '
    'marginheight="0" scrolling="no" style="border:1px solid #CCC; border-width:1px; '
    'margin-bottom:5px; " allowfullscreen> </iframe>\n'
)

_TABS = re.compile(r'\t+')
_MULTI_SPACE = re.compile(r'  +')


@dataclass
class ConversionContext:
    """State threaded through one document's conversion walk."""

    fetcher: Optional[BaseFetcher] = None
    fence: str = DEFAULT_FENCE
    collected: Set[int] = field(default_factory=set)
    stats: Dict[str, int] = field(default_factory=lambda: {'gists_converted': 0, 'gist_failures': 0})
    logger: logging.Logger = field(default=logger)

    def count(self, key: str) -> None:
        self.stats[key] = self.stats.get(key, 0) + 1

    def code_block(self, content: str, language: str = '') -> str:
        return f"\n\n{self.fence}{language}\n{content}\n{self.fence}\n\n"


Replacement = Callable[[PageElement, ConversionContext], Optional[str]]


@dataclass(frozen=True)
class ConversionRule:
    """A tag-name filter and the function that may replace matching nodes."""

    name: str
    tags: Tuple[str, ...]
    replace: Replacement

    def applies_to(self, node_name: str) -> bool:
        return node_name in self.tags


def node_name(node: PageElement) -> str:
    """Tag name of an element, or '#text' for text nodes."""
    if isinstance(node, NavigableString):
        return TEXT_NODE
    return node.name


def has_class(node: Optional[Tag], class_name: str) -> bool:
    return isinstance(node, Tag) and class_name in (node.get('class') or [])


def read_code_content(node: Tag) -> str:
    """
    Read the text of a <pre>, turning every descendant <br> into a newline.

    Medium stores code lines separated by <br> rather than newlines.
    """
    parts = []
    for child in node.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            parts.append(str(child))
        elif child.name == 'br':
            parts.append('\n')
        else:
            parts.append(read_code_content(child))
    return ''.join(parts)


# Rules

def convert_gist(node: Tag, context: ConversionContext) -> Optional[str]:
    """
    Replace a GitHub gist embed script with a fenced code block.

    <script src="https://gist.github.com/chamilad/63cfa08c052e795c8e95bb7b43643f6a.js"></script>
    """
    src = node.get('src')
    if not src:
        context.count('gist_failures')
        return None

    if not src.startswith(GIST_PREFIX):
        return None

    if context.fetcher is None:
        context.logger.warning(f"No fetcher available, dropping gist {src}")
        context.count('gist_failures')
        return None

    gist_url = _gist_page_url(src)
    raw_url = f"{gist_url.replace(GIST_HOST, GIST_RAW_HOST, 1)}/raw"

    try:
        gist_page = SourceDocument.parse(context.fetcher.get_bytes(gist_url))
        language = _gist_language(gist_page)
        code_content = context.fetcher.get_text(raw_url)
    except (FetcherError, DocumentParseError) as e:
        context.logger.warning(f"Couldn't fetch gist {gist_url}: {e}")
        context.count('gist_failures')
        return None

    if not code_content:
        return None

    context.count('gists_converted')
    return context.code_block(code_content, language)


def _gist_page_url(src: str) -> str:
    """Drop the query and the .js extension from a gist embed URL."""
    parts = urlsplit(src)
    path, ext = posixpath.splitext(parts.path)
    if ext != '.js':
        path = parts.path
    return urlunsplit((parts.scheme, parts.netloc, path, '', ''))


def _gist_language(gist_page: SourceDocument) -> str:
    """Language hint from the gist page's analytics meta tag (last one wins)."""
    language = ''
    for meta in gist_page.find(GIST_LANGUAGE_META):
        content = meta.get('content')
        if content is None:
            continue
        language = GIST_LANGUAGE_MAP.get(content, content)
    return language


def convert_line_break(node: Tag, context: ConversionContext) -> Optional[str]:
    return '\n'


def convert_preformatted(node: Tag, context: ConversionContext) -> Optional[str]:
    """
    Convert a <pre> to a fenced block, absorbing the <pre> siblings right after it.

    Medium splits one code block into several adjacent <pre> elements when it
    contains blank lines; they are joined back with a blank line. Absorbed
    siblings are remembered in the context so they emit nothing later.
    """
    if id(node) in context.collected:
        return ''

    code_content = read_code_content(node)

    sibling = node.find_next_sibling()
    while sibling is not None and sibling.name == 'pre':
        code_content += '\n\n' + read_code_content(sibling)
        context.collected.add(id(sibling))
        sibling = sibling.find_next_sibling()

    return context.code_block(code_content)


def convert_slideshare(node: Tag, context: ConversionContext) -> Optional[str]:
    src = node.get('src')
    if not src or SLIDESHARE_DOMAIN not in src:
        return None
    return SLIDESHARE_IFRAME.format(src=html.escape(src))


def convert_text(node: NavigableString, context: ConversionContext) -> Optional[str]:
    """
    Emit text without Markdown escaping.

    Medium text is unlikely to hold Markdown directives, so escaping only adds
    noise. Tab runs and runs of spaces collapse to one space so prose never
    turns into an indented code block.
    """
    text = str(node)
    if not text.strip():
        # keep words on either side of a plain space from fusing together
        if '\n' not in text and node.previous_sibling is not None and node.next_sibling is not None:
            return ' '
        return ''

    text = _TABS.sub(' ', text)
    return _MULTI_SPACE.sub(' ', text)


def convert_bold_in_code(node: Tag, context: ConversionContext) -> Optional[str]:
    # Hugo renders **text** inside code literally
    if node.parent is None or node.parent.name != 'code':
        return None
    return node.get_text()


def convert_captioned_image(node: Tag, context: ConversionContext) -> Optional[str]:
    """
    Emit an HTML figure for images shaped like:

    figure
      > div.aspectRatioPlaceholder
        > img
      > figcaption
    """
    parent = node.parent
    if not isinstance(parent, Tag) or parent.name != 'div' or not has_class(parent, 'aspectRatioPlaceholder'):
        return None

    figure = parent.parent
    if not isinstance(figure, Tag) or figure.name != 'figure':
        return None

    figcaption = figure.find('figcaption')
    if figcaption is None:
        return None

    src = node.get('src', '')
    return (
        f'<figure><img src="{html.escape(src)}">'
        f'<figcaption>{html.escape(figcaption.get_text(), quote=False)}</figcaption></figure>\n'
    )


def convert_figcaption(node: Tag, context: ConversionContext) -> Optional[str]:
    return ''


def convert_tweet(node: Tag, context: ConversionContext) -> Optional[str]:
    """Embedded tweets become Hugo's tweet shortcode."""
    if not has_class(node, 'twitter-tweet'):
        return None

    anchor = node.find('a', href=True)
    if anchor is None:
        return None

    tweet_id = urlsplit(anchor['href']).path.rstrip('/').split('/')[-1]
    if not tweet_id:
        return None

    return f"\n\n{{{{< tweet {tweet_id} >}}}}\n\n"


def convert_linked_code(node: Tag, context: ConversionContext) -> Optional[str]:
    anchor = node.find('a')
    if anchor is None:
        return None
    return f"[`{anchor.get_text()}`]({anchor.get('href', '')})"


def convert_empty_anchor(node: Tag, context: ConversionContext) -> Optional[str]:
    if node.get_text().strip():
        return None
    if node.find('img') is not None:
        return None
    return ''


RULES: Tuple[ConversionRule, ...] = (
    ConversionRule('gist', ('script',), convert_gist),
    ConversionRule('line_break', ('br',), convert_line_break),
    ConversionRule('preformatted', ('pre',), convert_preformatted),
    ConversionRule('slideshare_embed', ('iframe',), convert_slideshare),
    ConversionRule('text', (TEXT_NODE,), convert_text),
    ConversionRule('bold_in_code', ('strong', 'b'), convert_bold_in_code),
    ConversionRule('captioned_image', ('img',), convert_captioned_image),
    ConversionRule('figcaption', ('figcaption',), convert_figcaption),
    ConversionRule('tweet', ('blockquote',), convert_tweet),
    ConversionRule('linked_code', ('code',), convert_linked_code),
    ConversionRule('empty_anchor', ('a',), convert_empty_anchor),
)


def apply_rules(node: PageElement, context: ConversionContext,
                rules: Tuple[ConversionRule, ...] = RULES) -> Optional[str]:
    """Return the first fragment produced by a matching rule, or None."""
    name = node_name(node)
    for rule in rules:
        if not rule.applies_to(name):
            continue
        fragment = rule.replace(node, context)
        if fragment is not None:
            return fragment
    return None


__all__ = [
    'apply_rules',
    'ConversionContext',
    'ConversionRule',
    'read_code_content',
    'RULES',
    'TEXT_NODE',
]
