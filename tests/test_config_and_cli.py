"""Tests for configuration loading and the command line entry point."""

import argparse
import os
import unittest
from pathlib import Path
import tempfile

import pytest

import migrate
from config_loader import DEFAULT_CONFIG, ConfigLoader, get_nested
from fetchers.http_client import HttpClient, insecure_from_env
from fakes import FakeFetcher, medium_post


class TestConfigLoader(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = Path(self.temp_dir.name) / 'config.yaml'

    def tearDown(self):
        self.temp_dir.cleanup()

    def write(self, text):
        self.path.write_text(text, encoding='utf-8')
        return str(self.path)

    def test_missing_file_raises(self):
        with self.assertRaises(FileNotFoundError):
            ConfigLoader.load(str(self.path))

    def test_load_or_default_without_file(self):
        config = ConfigLoader.load_or_default(str(self.path))
        self.assertEqual(config, DEFAULT_CONFIG)
        self.assertIsNot(config, DEFAULT_CONFIG)

    def test_partial_file_is_merged_with_defaults(self):
        config = ConfigLoader.load(self.write('output:\n  directory: ./site\n'))

        self.assertEqual(config['output']['directory'], './site')
        self.assertEqual(config['output']['content_type'], 'post')
        self.assertEqual(config['network']['timeout'], 30)

    def test_empty_file_means_defaults(self):
        self.assertEqual(ConfigLoader.load(self.write('')), DEFAULT_CONFIG)

    def test_environment_variables_are_substituted(self):
        os.environ['MEDIUM_TEST_USER'] = 'jane'
        try:
            config = ConfigLoader.load(self.write('medium:\n  username: ${MEDIUM_TEST_USER}\n'))
        finally:
            del os.environ['MEDIUM_TEST_USER']
        self.assertEqual(config['medium']['username'], 'jane')

    def test_non_mapping_is_rejected(self):
        with self.assertRaises(ValueError):
            ConfigLoader.load(self.write('- a\n- b\n'))

    def test_defaults_validate(self):
        ConfigLoader.validate(ConfigLoader.load_or_default(None))

    def test_validation_errors(self):
        cases = [
            ('network.timeout', 0),
            ('network.timeout', 'soon'),
            ('medium.base_url', 'medium.com'),
            ('output.content_type', 'a/b'),
            ('output.ignore_empty', 'yes'),
            ('logging.level', 'LOUD'),
            ('input.path', ''),
        ]
        for path, value in cases:
            config = ConfigLoader.load_or_default(None)
            section, key = path.split('.')
            config[section][key] = value
            with self.subTest(path=path, value=value):
                with self.assertRaises(ValueError):
                    ConfigLoader.validate(config)

    def test_unsubstituted_variable_is_reported(self):
        config = ConfigLoader.load_or_default(None)
        config['input']['path'] = '${MEDIUM_EXPORT_THAT_IS_NOT_SET}'
        with self.assertRaisesRegex(ValueError, 'MEDIUM_EXPORT_THAT_IS_NOT_SET'):
            ConfigLoader.validate(config)

    def test_cli_arguments_take_precedence(self):
        args = argparse.Namespace(file='export.zip', output='./out', ignore_empty=True, no_images=True,
                                  timeout=5.0, insecure=True, verbose=2)
        merged = ConfigLoader.merge_with_args(ConfigLoader.load_or_default(None), args)

        self.assertEqual(merged['input']['path'], 'export.zip')
        self.assertEqual(merged['output']['directory'], './out')
        self.assertTrue(merged['output']['ignore_empty'])
        self.assertFalse(merged['output']['download_images'])
        self.assertEqual(merged['network']['timeout'], 5.0)
        self.assertTrue(merged['network']['allow_insecure'])
        self.assertEqual(merged['logging']['level'], 'DEBUG')

    def test_unset_arguments_keep_config_values(self):
        args = argparse.Namespace(file=None, output=None, ignore_empty=False, no_images=False,
                                  timeout=None, insecure=False, verbose=0)
        config = ConfigLoader.load_or_default(None)
        self.assertEqual(ConfigLoader.merge_with_args(config, args), config)

    def test_get_nested(self):
        config = {'a': {'b': {'c': 1}}}
        self.assertEqual(get_nested(config, 'a.b.c'), 1)
        self.assertEqual(get_nested(config, 'a.x', 'default'), 'default')


class TestHttpClientConfig:
    def test_insecure_from_environment(self, monkeypatch):
        monkeypatch.setenv('ALLOW_INSECURE', 'TRUE')
        assert insecure_from_env() is True
        client = HttpClient.from_config({'network': {'timeout': 7}})
        assert client.session.verify is False
        assert client.timeout == 7
        client.close()

    def test_secure_by_default(self, monkeypatch):
        monkeypatch.delenv('ALLOW_INSECURE', raising=False)
        with HttpClient.from_config(DEFAULT_CONFIG) as client:
            assert client.session.verify is True
            assert client.session.headers['User-Agent'] == 'medium-hugo-migrator/1.0'


class OfflineClient(FakeFetcher):
    """FakeFetcher usable where migrate expects an HttpClient."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass


class TestMain:
    @pytest.fixture(autouse=True)
    def offline(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(migrate.HttpClient, 'from_config', classmethod(lambda cls, config: OfflineClient()))

    def make_export(self, tmp_path):
        posts = tmp_path / 'export' / 'posts'
        posts.mkdir(parents=True)
        (posts / '2021-01-01_Hello-World-abc123.html').write_text(medium_post(), encoding='utf-8')
        return tmp_path / 'export'

    def test_successful_run(self, tmp_path, capsys):
        export = self.make_export(tmp_path)
        report = tmp_path / 'report.json'

        code = migrate.main(['-f', str(export), '-o', str(tmp_path / 'site'), '--report', str(report)])

        assert code == 0
        assert (tmp_path / 'site' / 'post' / '2021-01-01_hello-world.md').exists()
        assert report.exists()
        assert 'CONVERSION REPORT' in capsys.readouterr().out

    def test_missing_input_exits_with_2(self, tmp_path):
        assert migrate.main(['-f', str(tmp_path / 'missing.zip')]) == 2

    def test_missing_explicit_config_exits_with_2(self, tmp_path):
        assert migrate.main(['--config', str(tmp_path / 'nope.yaml')]) == 2

    def test_invalid_config_exits_with_2(self, tmp_path):
        export = self.make_export(tmp_path)
        assert migrate.main(['-f', str(export), '--timeout', '-1']) == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            migrate.main(['--version'])
        assert excinfo.value.code == 0
        assert migrate.__version__ in capsys.readouterr().out
