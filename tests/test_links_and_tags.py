"""Tests for self-link rewriting and tag scraping."""

import unittest

import pytest

from converters.link_processor import LinkProcessor
from fetchers.base_fetcher import TagFetchError
from fetchers.tag_fetcher import TagFetcher
from models import Post
from fakes import FailingFetcher, FakeFetcher

LINKS = '''
<p class="graf graf--p">
  <a href="https://platform.example/@user/foo" data-href="https://platform.example/@user/foo"
     class="markup--anchor markup--p-anchor">mine</a>
  <a href="https://platform.example/@other/bar" class="markup--anchor markup--p-anchor">theirs</a>
  <a href="https://platform.example/@user/baz">not a rich link</a>
</p>
'''

TAG_PAGE = '''
<html><body>
<ul class="tags">
  <li><a href="/tag/python?source=post">Python</a></li>
  <li><a href="/tag/hugo">  Hugo </a></li>
  <li><a href="/topic/other">Not a tag</a></li>
</ul>
</body></html>
'''


class TestLinkProcessor(unittest.TestCase):
    def setUp(self):
        self.processor = LinkProcessor(base_url='https://platform.example/')
        self.post = Post.from_bytes(LINKS.encode('utf-8'), 'a.html')

    def test_own_links_become_root_relative(self):
        rewritten = self.processor.fix_self_links(self.post, 'user')

        anchors = self.post.document.find('a')
        self.assertEqual(rewritten, 1)
        self.assertEqual(anchors[0]['href'], '/foo')
        self.assertEqual(anchors[0]['data-href'], '/foo')

    def test_other_links_are_untouched(self):
        self.processor.fix_self_links(self.post, 'user')

        anchors = self.post.document.find('a')
        self.assertEqual(anchors[1]['href'], 'https://platform.example/@other/bar')
        self.assertEqual(anchors[2]['href'], 'https://platform.example/@user/baz')

    def test_unknown_username_keeps_links(self):
        rewritten = self.processor.fix_self_links(self.post, None)

        self.assertEqual(rewritten, 0)
        self.assertEqual(self.post.document.find('a')[0]['href'], 'https://platform.example/@user/foo')

    def test_username_prefix_of_another_user_is_not_a_self_link(self):
        post = Post.from_bytes(
            b'<p><a href="https://platform.example/@usery/foo" class="markup--anchor">other</a></p>', 'a.html')

        rewritten = self.processor.fix_self_links(post, 'user')

        self.assertEqual(rewritten, 0)
        self.assertEqual(post.document.find('a')[0]['href'], 'https://platform.example/@usery/foo')

    def test_query_fragment_and_bare_profile_links(self):
        html = (
            '<p><a href="https://platform.example/@user?source=x" class="markup--anchor">q</a>'
            '<a href="https://platform.example/@user#top" class="markup--anchor">f</a>'
            '<a href="https://platform.example/@user" class="markup--anchor">bare</a></p>'
        )
        post = Post.from_bytes(html.encode('utf-8'), 'a.html')

        rewritten = self.processor.fix_self_links(post, 'user')

        self.assertEqual(rewritten, 3)
        self.assertEqual([a['href'] for a in post.document.find('a')], ['?source=x', '#top', '/'])


def published_post(full_url='https://medium.com/@jane/hello-abc'):
    post = Post.from_bytes(b'<p>x</p>', '2021-01-01_Hello-abc.html')
    post.full_url = full_url
    return post


class TestTagFetcher:
    def test_tags_are_collected_in_page_order(self):
        fetcher = FakeFetcher({'https://medium.com/@jane/hello-abc': TAG_PAGE})
        post = published_post()

        tags = TagFetcher(fetcher).populate_tags(post)

        assert tags == ['Python', 'Hugo']
        assert post.tags == ['Python', 'Hugo']

    def test_draft_never_calls_the_network(self):
        fetcher = FakeFetcher()
        post = Post.from_bytes(b'<p>x</p>', 'draft_Hello-abc.html')
        post.full_url = 'https://medium.com/p/abc'

        assert TagFetcher(fetcher).populate_tags(post) == []
        assert fetcher.calls == []
        assert post.tags == []

    def test_post_without_url_is_skipped(self):
        fetcher = FakeFetcher()
        assert TagFetcher(fetcher).populate_tags(published_post(full_url='')) == []
        assert fetcher.calls == []

    def test_network_failure_raises_tag_fetch_error(self):
        post = published_post()
        with pytest.raises(TagFetchError):
            TagFetcher(FailingFetcher()).populate_tags(post)
        assert post.tags == []

    def test_empty_page_raises_tag_fetch_error(self):
        fetcher = FakeFetcher({'https://medium.com/@jane/hello-abc': b''})
        with pytest.raises(TagFetchError):
            TagFetcher(fetcher).populate_tags(published_post())
