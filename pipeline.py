"""Entry points shared by the HTTP routes, the cron routes and the CLI.

Every caller goes through these functions so ingestion and enrichment
behave the same however they are triggered.
"""

import logging
from functools import lru_cache

from config import config
from database.db import init_db, make_engine, make_session_factory
from database.store import ArticleStore
from llm.client import CompletionClient
from llm.enrich import EnrichmentAnalyzer
from rss.ingestor import FeedIngestor

logger = logging.getLogger('practical_feed')


@lru_cache(maxsize=1)
def default_store() -> ArticleStore:
    engine = make_engine(config.db.url)
    init_db(engine)
    return ArticleStore(make_session_factory(engine))


@lru_cache(maxsize=1)
def default_client() -> CompletionClient:
    return CompletionClient(config.ollama.base_url, config.ollama.timeout)


def refresh_feeds(store: ArticleStore) -> dict:
    """Fetch every feed and store new articles."""
    return FeedIngestor(store).run().to_dict()


def enrich_articles(store: ArticleStore, client: CompletionClient, limit: int = None) -> dict:
    """Analyze unanalyzed articles, all of them unless ``limit`` is given."""
    return EnrichmentAnalyzer(store, client).run(limit=limit).to_dict()


def run_scheduled_enrichment(store: ArticleStore, client: CompletionClient) -> dict:
    """Small enrichment batch for frequent scheduled runs."""
    return enrich_articles(store, client, limit=config.enrich.batch_limit)


def run_full_pipeline(store: ArticleStore, client: CompletionClient) -> dict:
    """Ingest then enrich, returning both results."""
    feed_result = refresh_feeds(store)
    enrich_result = enrich_articles(store, client)
    return {
        'success': True,
        'message': 'Feeds fetched and articles enriched',
        'feedResult': feed_result,
        'enrichResult': enrich_result,
    }
