"""Tests for ArticleStore: feeds, article selection, claims and listing."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from dateutil.tz import tzutc

from conftest import full_analysis
from database.store import date_range_bounds
from errors import ArticleInsertError, ArticleNotFoundError, PersistenceError

NOW = datetime(2026, 10, 19, 15, 30, tzinfo=tzutc())


class TestFeeds:
    def test_upsert_is_keyed_on_url(self, store):
        store.upsert_feed("https://a.test/rss", "Old name", "old", "AI")
        store.upsert_feed("https://a.test/rss", "New name", "new", None)

        feeds = store.list_feeds()
        assert len(feeds) == 1
        assert feeds[0].name == "New name"
        assert feeds[0].description == "new"
        assert feeds[0].category == "AI"

    def test_list_feeds_ordered_by_name(self, store):
        store.upsert_feed("https://z.test/rss", "Zeta")
        store.upsert_feed("https://a.test/rss", "Alpha")
        assert [f.name for f in store.list_feeds()] == ["Alpha", "Zeta"]

    def test_mark_feed_fetched(self, store, feed):
        store.mark_feed_fetched(feed.id, NOW)
        assert store.list_feeds()[0].last_fetched_at.replace(tzinfo=None) == NOW.replace(tzinfo=None)


class TestArticles:
    def test_duplicate_url_rejected(self, store, make_article):
        make_article(url="https://x.test/same")
        with pytest.raises(ArticleInsertError):
            make_article(url="https://x.test/same")
        assert store.count_articles() == 1

    def test_article_exists(self, store, make_article):
        make_article(url="https://x.test/here")
        assert store.article_exists("https://x.test/here")
        assert not store.article_exists("https://x.test/elsewhere")

    def test_list_unanalyzed_excludes_analyzed(self, store, make_article):
        analyzed = make_article()
        pending = make_article()
        store.save_analysis(analyzed.id, full_analysis())

        assert [a.id for a in store.list_unanalyzed()] == [pending.id]

    def test_save_analysis_missing_article(self, store):
        with pytest.raises(PersistenceError):
            store.save_analysis(999, full_analysis())

    def test_get_missing_article(self, store):
        assert store.get_article(12345) is None


class TestClaims:
    def test_claim_only_once(self, store, make_article):
        article = make_article()
        assert store.claim_for_analysis(article.id, ttl_seconds=600, now=NOW)
        assert not store.claim_for_analysis(article.id, ttl_seconds=600, now=NOW + timedelta(minutes=1))

    def test_claim_expires(self, store, make_article):
        article = make_article()
        store.claim_for_analysis(article.id, ttl_seconds=600, now=NOW)
        assert store.claim_for_analysis(article.id, ttl_seconds=600, now=NOW + timedelta(minutes=11))

    def test_release_allows_new_claim(self, store, make_article):
        article = make_article()
        store.claim_for_analysis(article.id, ttl_seconds=600, now=NOW)
        store.release_claim(article.id)
        assert store.claim_for_analysis(article.id, ttl_seconds=600, now=NOW)

    def test_analyzed_article_cannot_be_claimed(self, store, make_article):
        article = make_article()
        store.save_analysis(article.id, full_analysis())
        assert not store.claim_for_analysis(article.id, ttl_seconds=600)


class TestLearnMoreColumns:
    def test_save_learn_more(self, store, make_article):
        article = make_article()
        store.save_learn_more(article.id, "# Notes", {"Claude": "prompt"})
        stored = store.get_article(article.id)
        assert stored.ai_learn_more_markdown == "# Notes"
        assert stored.ai_learn_more_prompts == {"Claude": "prompt"}

    def test_save_learn_more_missing_article(self, store):
        with pytest.raises(ArticleNotFoundError):
            store.save_learn_more(999, "# Notes", None)


class TestListEnriched:
    def _enriched(self, make_article, store, published_at, **overrides):
        article = make_article(published_at=published_at)
        store.save_analysis(article.id, full_analysis(**overrides))
        return article

    def test_filters_and_order(self, store, make_article):
        newest = self._enriched(make_article, store, NOW - timedelta(hours=1))
        older = self._enriched(make_article, store, NOW - timedelta(hours=3), difficulty="advanced")
        make_article(published_at=NOW - timedelta(hours=2))  # not analyzed
        self._enriched(make_article, store, NOW - timedelta(hours=4), aiTechnologies=[])

        articles, total = store.list_enriched(date_range="today", now=NOW)
        assert [a.id for a in articles] == [newest.id, older.id]
        assert total == 2

        articles, total = store.list_enriched(date_range="today", difficulty="advanced", now=NOW)
        assert [a.id for a in articles] == [older.id]

        articles, total = store.list_enriched(date_range="today", category="all", now=NOW)
        assert total == 2

    def test_date_range_excludes_other_days(self, store, make_article):
        self._enriched(make_article, store, NOW - timedelta(days=1))
        assert store.list_enriched(date_range="today", now=NOW)[1] == 0
        assert store.list_enriched(date_range="yesterday", now=NOW)[1] == 1
        assert store.list_enriched(date_range="all", now=NOW)[1] == 1

    def test_pagination(self, store, make_article):
        for hours in range(5):
            self._enriched(make_article, store, NOW - timedelta(hours=hours))
        newest_first = [a.id for a in store.list_enriched(date_range="today", items_per_page=10, now=NOW)[0]]

        page, total = store.list_enriched(date_range="today", page=2, items_per_page=2, now=NOW)
        assert total == 5
        assert len(page) == 2
        assert [a.id for a in page] == newest_first[2:4]

        last_page, _ = store.list_enriched(date_range="today", page=3, items_per_page=2, now=NOW)
        assert [a.id for a in last_page] == newest_first[4:]

    def test_missing_or_empty_technologies_excluded(self, store, make_article):
        kept = self._enriched(make_article, store, NOW - timedelta(hours=1))
        self._enriched(make_article, store, NOW - timedelta(hours=2), aiTechnologies=None)
        self._enriched(make_article, store, NOW - timedelta(hours=3), aiTechnologies=[])

        articles, total = store.list_enriched(date_range="all", now=NOW)
        assert [a.id for a in articles] == [kept.id]
        assert total == 1


class TestDateRangeBounds:
    def test_today(self):
        start, end = date_range_bounds("today", NOW)
        assert start == datetime(2026, 10, 19, tzinfo=tzutc())
        assert end.date() == NOW.date()

    def test_last_7_days(self):
        start, _ = date_range_bounds("last_7_days", NOW)
        assert start == datetime(2026, 10, 12, tzinfo=tzutc())

    def test_unknown_range_means_no_bounds(self):
        assert date_range_bounds("all", NOW) is None
