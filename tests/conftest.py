"""Shared fixtures: in-memory SQLite store, fake completion client, fake HTTP session."""

from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest
import requests
from dateutil.tz import tzutc
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from database.db import init_db, make_session_factory
from database.store import ArticleStore


def full_analysis(**overrides) -> dict:
    """A model reply containing every required field."""
    analysis = {
        "category": "tool",
        "practicalLevel": "beginner_friendly",
        "aiTechnologies": ["Stable Diffusion", "PyTorch"],
        "difficulty": "beginner",
        "timeToExperiment": 30,
        "hasCode": True,
        "hasAPI": False,
        "hasDemo": True,
        "hasTutorial": False,
        "requiresPayment": False,
        "requiresSignup": True,
        "learningObjectives": ["Generate images from prompts"],
        "prerequisites": ["Python basics"],
        "summary": "A new diffusion model was released with open weights.",
        "keyTakeaways": ["Open weights", "Runs on consumer GPUs"],
        "tags": ["diffusion", "image-generation"],
    }
    analysis.update(overrides)
    return analysis


class FakeCompletionClient:
    """Returns queued replies in order and records every request."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls: list[dict] = []

    def complete(self, model, system_prompt, user_prompt, temperature=0.1, max_tokens=2000):
        self.calls.append({
            "model": model,
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if not self.replies:
            raise AssertionError("Unexpected completion request")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Maps urls to RSS documents; unknown urls raise a connection error."""

    def __init__(self, documents: dict):
        self.documents = documents
        self.requested: list[str] = []

    def get(self, url, timeout=None, headers=None):
        self.requested.append(url)
        document = self.documents.get(url)
        if document is None:
            raise requests.ConnectionError(f"Cannot reach {url}")
        if isinstance(document, FakeResponse):
            return document
        return FakeResponse(document.encode("utf-8"))


def rss_document(items: list[dict], title: str = "Test Feed") -> str:
    entries = []
    for item in items:
        parts = [f"<title>{item['title']}</title>"]
        if item.get("link"):
            parts.append(f"<link>{item['link']}</link>")
        if item.get("description"):
            parts.append(f"<description><![CDATA[{item['description']}]]></description>")
        if item.get("pubDate"):
            parts.append(f"<pubDate>{item['pubDate']}</pubDate>")
        if item.get("enclosure"):
            parts.append(f'<enclosure url="{item["enclosure"]}" type="image/jpeg" length="0"/>')
        entries.append("<item>" + "".join(parts) + "</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel>'
        f"<title>{title}</title><link>https://feed.test/</link><description>Test</description>"
        + "".join(entries)
        + "</channel></rss>"
    )


@pytest.fixture
def store() -> ArticleStore:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return ArticleStore(make_session_factory(engine))


@pytest.fixture
def feed(store):
    return store.upsert_feed("https://feed.test/rss", "Test Feed", "A feed", "AI")


@pytest.fixture
def make_article(store, feed):
    """Insert an article; later calls default to older publish times."""
    counter = {"n": 0}

    def _make(title: str = None, url: str = None, published_at: datetime = None, **fields):
        counter["n"] += 1
        n = counter["n"]
        return store.insert_article(
            feed_id=feed.id,
            url=url or f"https://x.test/article-{n}",
            title=title or f"Article {n}",
            description="desc",
            content="content",
            published_at=published_at or datetime(2026, 10, 19, 12, tzinfo=tzutc()) - timedelta(hours=n),
            source_name=feed.name,
            source_url=feed.url,
            **fields,
        )

    return _make

