"""Tests for feed seeding from the built-in list, feeds.json and OPML."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from rss.feeds import DEFAULT_FEEDS, FeedSeed, load_feeds_file, seed_feeds
from rss.opml_handler import parse_opml

OPML = """<?xml version="1.0" encoding="UTF-8"?>
<opml version="1.0">
  <head><title>Subscriptions</title></head>
  <body>
    <outline text="Research" title="Research">
      <outline type="rss" text="Lab Blog" title="Lab Blog" xmlUrl="https://lab.test/rss"/>
      <outline type="rss" text="Papers" xmlUrl="https://papers.test/feed"/>
    </outline>
    <outline type="rss" text="Loose Feed" xmlUrl="https://loose.test/rss"/>
  </body>
</opml>
"""


class TestSeedFeeds:
    def test_default_feeds_seeded_once(self, store):
        seed_feeds(store, DEFAULT_FEEDS)
        results = seed_feeds(store, DEFAULT_FEEDS)

        assert all(r.get("success") for r in results)
        assert len(store.list_feeds()) == len(DEFAULT_FEEDS)

    def test_duplicate_urls_in_one_batch(self, store):
        seeds = [FeedSeed("https://a.test/rss", "A"), FeedSeed("https://a.test/rss", "A again")]
        results = seed_feeds(store, seeds)

        assert len(results) == 1
        assert [f.name for f in store.list_feeds()] == ["A"]


class TestFeedsFile:
    def test_load_feeds_file(self, tmp_path: Path):
        path = tmp_path / "feeds.json"
        path.write_text(json.dumps({
            "AI": [{"url": "https://a.test/rss", "name": "A", "description": "about A"}],
            "Tools": [{"url": "https://b.test/rss"}],
        }), encoding="utf-8")

        seeds = load_feeds_file(str(path))

        assert seeds == [
            FeedSeed("https://a.test/rss", "A", "about A", "AI"),
            FeedSeed("https://b.test/rss", "https://b.test/rss", None, "Tools"),
        ]

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_feeds_file(str(tmp_path / "nope.json"))


class TestOpml:
    def test_parse_opml_categories(self, tmp_path: Path):
        path = tmp_path / "subs.opml"
        path.write_text(OPML, encoding="utf-8")

        seeds = parse_opml(str(path))

        assert [(s.url, s.name, s.category) for s in seeds] == [
            ("https://lab.test/rss", "Lab Blog", "Research"),
            ("https://papers.test/feed", "Papers", "Research"),
            ("https://loose.test/rss", "Loose Feed", None),
        ]
