"""End-to-end tests for the batch loop, run against a fake network."""

import copy

import pytest
import yaml

from config_loader import DEFAULT_CONFIG
from exporters import ExportError
from fetchers import ExportReader
from models import DocumentStatus
from orchestrator import ConversionOrchestrator, ConversionReport
from fakes import FakeFetcher, medium_post

IMAGE_URL = 'https://cdn-images-1.medium.com/max/800/1*pic.png'
CANONICAL = 'https://medium.com/@jane/hello-world-abc123'

BODY = f'''
<p class="graf graf--p">Read <a href="https://medium.com/@jane/other-post-123" class="markup--anchor markup--p-anchor">my other post</a> first.</p>
<figure class="graf graf--figure graf--layoutTextWidth"><div class="aspectRatioPlaceholder"><img class="graf-image" src="{IMAGE_URL}"></div></figure>
'''

TAG_PAGE = '<html><body><ul><li><a href="/tag/python">Python</a></li><li><a href="/tag/hugo">Hugo</a></li></ul></body></html>'

PROFILE = '<html><body><a class="u-url" href="https://medium.com/@jane">@jane</a></body></html>'


@pytest.fixture
def export_dir(tmp_path):
    root = tmp_path / 'export'
    posts = root / 'posts'
    posts.mkdir(parents=True)
    (root / 'profile').mkdir()
    (root / 'profile' / 'profile.html').write_text(PROFILE, encoding='utf-8')

    (posts / '2021-01-01_Hello-World-abc123.html').write_text(medium_post(body=BODY), encoding='utf-8')
    (posts / '2021-02-02_Broken-def456.html').write_bytes(b'')
    (posts / 'draft_Empty-ghi789.html').write_text(
        medium_post(body='', title='Empty', canonical='', date=''), encoding='utf-8')
    (posts / 'notes.txt').write_text('not a post', encoding='utf-8')
    return root


@pytest.fixture
def config(tmp_path):
    config = copy.deepcopy(DEFAULT_CONFIG)
    config['output']['directory'] = str(tmp_path / 'site')
    config['output']['ignore_empty'] = True
    config['output']['progress_bars'] = False
    return config


@pytest.fixture
def fetcher():
    return FakeFetcher({IMAGE_URL: b'\x89PNG', CANONICAL: TAG_PAGE})


def run(config, fetcher, export_dir):
    orchestrator = ConversionOrchestrator(config, fetcher=fetcher)
    with ExportReader(str(export_dir)) as reader:
        return orchestrator.run(reader)


class TestConversionOrchestrator:
    def test_batch_continues_past_failures(self, config, fetcher, export_dir):
        batch = run(config, fetcher, export_dir)

        assert batch.success_count == 1
        assert batch.errored == ['2021-02-02_Broken-def456.html']
        assert batch.ignored == ['draft_Empty-ghi789.html', 'notes.txt']
        assert batch.username == 'jane'

        reasons = {result.html_filename: result.reason for result in batch.results}
        assert reasons['notes.txt'] == 'extension'
        assert reasons['draft_Empty-ghi789.html'] == 'empty body'

    def test_converted_post_is_written(self, config, fetcher, export_dir, tmp_path):
        run(config, fetcher, export_dir)

        content = (tmp_path / 'site' / 'post' / '2021-01-01_hello-world.md').read_text(encoding='utf-8')
        front_matter = yaml.safe_load(content.split('---\n')[1])

        assert front_matter['title'] == 'Hello World'
        assert front_matter['tags'] == ['Python', 'Hugo']
        assert front_matter['image'] == '/post/img/2021-01-01_hello-world_0.png'
        assert front_matter['aliases'] == ['/hello-world-abc123']
        assert 'Read [my other post](/other-post-123) first.' in content
        assert '![](/post/img/2021-01-01_hello-world_0.png#layoutTextWidth)' in content
        assert (tmp_path / 'site' / 'post' / 'img' / '2021-01-01_hello-world_0.png').read_bytes() == b'\x89PNG'

    def test_counters_are_summed(self, config, fetcher, export_dir):
        batch = run(config, fetcher, export_dir)

        assert batch.totals['images_found'] == 1
        assert batch.totals['images_downloaded'] == 1
        assert batch.totals['self_links_rewritten'] == 1
        assert batch.totals['tags_found'] == 2
        assert batch.totals['tag_fetch_failed'] == 0

    def test_draft_is_not_fetched(self, config, fetcher, export_dir):
        run(config, fetcher, export_dir)
        assert fetcher.calls == [IMAGE_URL, CANONICAL]

    def test_tag_failure_is_recoverable(self, config, export_dir, tmp_path):
        batch = run(config, FakeFetcher({IMAGE_URL: b'img'}), export_dir)

        assert batch.success_count == 1
        assert batch.totals['tag_fetch_failed'] == 1
        content = (tmp_path / 'site' / 'post' / '2021-01-01_hello-world.md').read_text(encoding='utf-8')
        assert 'tags:' not in content

    def test_empty_posts_are_written_without_ignore_empty(self, config, fetcher, export_dir, tmp_path):
        config['output']['ignore_empty'] = False
        batch = run(config, fetcher, export_dir)

        assert batch.success_count == 2
        assert (tmp_path / 'site' / 'post' / 'draft__empty.md').exists()

    def test_username_falls_back_to_config(self, config, fetcher, export_dir):
        (export_dir / 'profile' / 'profile.html').unlink()
        config['medium']['username'] = 'jane'

        batch = run(config, fetcher, export_dir)

        assert batch.username == 'jane'
        assert batch.totals['self_links_rewritten'] == 1

    def test_without_username_links_are_kept(self, config, fetcher, export_dir):
        (export_dir / 'profile' / 'profile.html').unlink()

        batch = run(config, fetcher, export_dir)

        assert batch.username is None
        assert batch.totals['self_links_rewritten'] == 0

    def test_unwritable_output_aborts_before_the_loop(self, config, fetcher, export_dir, tmp_path):
        (tmp_path / 'site').write_text('a file, not a directory')
        with pytest.raises(ExportError):
            run(config, fetcher, export_dir)
        assert fetcher.calls == []

    def test_unexpected_error_in_one_post_does_not_stop_the_batch(self, config, fetcher, export_dir, tmp_path):
        (export_dir / 'posts' / '2020-06-06_Deep-xyz.html').write_text(
            medium_post(body='<p>deep</p>', title='Deep'), encoding='utf-8')
        orchestrator = ConversionOrchestrator(config, fetcher=fetcher)
        convert_post = orchestrator.converter.convert_post

        def convert_or_recurse(post, fetcher=None):
            if post.title == 'Deep':
                raise RecursionError('maximum recursion depth exceeded')
            return convert_post(post, fetcher=fetcher)

        orchestrator.converter.convert_post = convert_or_recurse
        with ExportReader(str(export_dir)) as reader:
            batch = orchestrator.run(reader)

        assert '2020-06-06_Deep-xyz.html' in batch.errored
        assert batch.success_count == 1
        assert (tmp_path / 'site' / 'post' / '2021-01-01_hello-world.md').exists()
        reasons = {result.html_filename: result.reason for result in batch.results}
        assert reasons['2020-06-06_Deep-xyz.html'].startswith('RecursionError')

    def test_process_document_records_parse_errors(self, config, fetcher, export_dir):
        orchestrator = ConversionOrchestrator(config, fetcher=fetcher)
        result = orchestrator.process_document(export_dir / 'posts' / '2021-02-02_Broken-def456.html', 'jane')

        assert result.status is DocumentStatus.ERRORED
        assert 'empty document' in result.reason


class TestConversionReport:
    def test_console_report_lists_ignored_and_errored_side_by_side(self, config, fetcher, export_dir):
        batch = run(config, fetcher, export_dir)
        report = ConversionReport().format_console_report(batch)

        assert 'Posts processed: 4' in report
        assert 'Username:        jane' in report
        lines = report.splitlines()
        header = next(line for line in lines if line.startswith('Ignored'))
        assert header.split() == ['Ignored', 'Errored']
        first_row = lines[lines.index(header) + 2]
        assert first_row.startswith('01: draft_Empty-ghi789.html')
        assert first_row.endswith('01: 2021-02-02_Broken-def456.html')
        assert lines[lines.index(header) + 3].strip() == '02: notes.txt'
        assert '1 posts successfully converted' in report

    def test_json_report(self, config, fetcher, export_dir, tmp_path):
        import json

        batch = run(config, fetcher, export_dir)
        path = tmp_path / 'report.json'
        ConversionReport().export_json_report(batch, str(path))

        data = json.loads(path.read_text(encoding='utf-8'))
        assert data['success_count'] == 1
        assert data['errored'] == ['2021-02-02_Broken-def456.html']
        assert len(data['documents']) == 4
