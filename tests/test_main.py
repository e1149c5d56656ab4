"""Tests for the command-line entry point and crawl context setup."""

from unittest.mock import patch

import pytest

from main import CrawlerApp, apply_overrides, build_parser
from spider.crawler.context import close_context, create_context
from spider.utils.config import Config, CrawlerConfig, DatabaseConfig, TokenizerConfig


def file_config(tmp_path, **crawler):
    return Config(
        crawler=CrawlerConfig(**crawler),
        database=DatabaseConfig(type='file', file={'path': str(tmp_path / 'index.json')})
    )


class TestLoadSeeds:

    def test_file_seeds_come_before_inline_seeds(self, tmp_path):
        seed_file = tmp_path / 'seeds.txt'
        seed_file.write_text("https://a.test\n\nhttps://b.test\n")
        config = file_config(tmp_path, seed_file=str(seed_file), seed_urls=['https://c.test'])

        seeds = CrawlerApp().load_seeds(config)

        assert [seed.url for seed in seeds] == ["https://a.test", "https://b.test", "https://c.test"]
        assert all(seed.depth == 0 and seed.root_seed == seed.url for seed in seeds)


class TestApplyOverrides:

    def test_flags_override_config(self, tmp_path):
        args = build_parser().parse_args([
            '--seeds', 'other.txt', '--max-depth', '3', '--workers', '6', '--max-duration', '60'
        ])

        config = apply_overrides(file_config(tmp_path), args)

        assert config.crawler.seed_file == 'other.txt'
        assert config.crawler.max_depth == 3
        assert config.crawler.max_workers == 6
        assert config.crawler.max_duration == 60

    def test_unset_flags_keep_config_values(self, tmp_path):
        args = build_parser().parse_args([])

        config = apply_overrides(file_config(tmp_path, seed_urls=['https://a.test'], max_depth=2), args)

        assert config.crawler.max_depth == 2
        assert config.crawler.seed_file is None

    def test_invalid_override_is_rejected(self, tmp_path):
        args = build_parser().parse_args(['--workers', '0'])

        with pytest.raises(ValueError):
            apply_overrides(file_config(tmp_path, seed_urls=['https://a.test']), args)

    def test_missing_seeds_are_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            apply_overrides(file_config(tmp_path), build_parser().parse_args([]))


class TestCreateContext:

    async def test_tokenizer_follows_fold_case_setting(self, tmp_path):
        config = file_config(tmp_path, seed_urls=['https://a.test'])
        config.tokenizer = TokenizerConfig(fold_case=True)

        context = await create_context(config)
        try:
            assert context.tokenizer.fold_case is True
            assert context.tokenizer.tokenize("Go go") == ["go", "go"]
            assert context.deadline is None
        finally:
            await close_context(context)

    async def test_max_duration_sets_deadline(self, tmp_path):
        context = await create_context(file_config(tmp_path, seed_urls=['https://a.test'], max_duration=60))
        try:
            assert 0 < context.time_left() <= 60
        finally:
            await close_context(context)

    async def test_store_is_closed_when_setup_fails(self, tmp_path):
        config = file_config(tmp_path, seed_urls=['https://a.test'])

        with patch('spider.crawler.context.WebFetcher.start', side_effect=RuntimeError("no session")):
            with pytest.raises(RuntimeError):
                await create_context(config)

        # Closing the file backend writes its snapshot
        assert (tmp_path / 'index.json').exists()


class TestCrawlerApp:

    async def test_missing_seed_file_exits_with_status_one(self, tmp_path):
        config = file_config(tmp_path, seed_file=str(tmp_path / 'absent.txt'))

        app = CrawlerApp()
        assert await app.run(config) == 1
        assert app.context is None
