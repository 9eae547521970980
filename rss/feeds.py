import json
import logging
import os
from dataclasses import asdict, dataclass
from typing import Dict, List

from database.store import ArticleStore
from errors import PersistenceError

logger = logging.getLogger(__name__)


@dataclass
class FeedSeed:
    url: str
    name: str
    description: str = None
    category: str = None


DEFAULT_FEEDS: List[FeedSeed] = [
    FeedSeed(
        name='MIT Technology Review - AI',
        url='https://www.technologyreview.com/feed/',
        description='Covers breakthroughs in machine learning, robotics, and AI ethics',
        category='AI',
    ),
    FeedSeed(
        name='OpenAI Blog',
        url='https://openai.com/blog/rss/',
        description='Updates on latest AI research and applications',
        category='AI',
    ),
    FeedSeed(
        name='AI Trends',
        url='https://www.aitrends.com/feed/',
        description='Business and enterprise side of AI',
        category='AI',
    ),
    FeedSeed(
        name='AI Weekly',
        url='https://aiweekly.co/rss',
        description='Curated AI news and research',
        category='AI',
    ),
    FeedSeed(
        name='Microsoft AI Blog',
        url='https://blogs.microsoft.com/ai/feed/',
        description="Microsoft's AI research and services",
        category='AI',
    ),
]


def load_feeds_file(path: str) -> List[FeedSeed]:
    """
    Load feed seeds from a JSON file shaped like
    {"category": [{"url": ..., "name": ..., "description": ...}, ...]}
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Feeds file not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        data: Dict[str, List[dict]] = json.load(f)

    seeds = []
    for category, feeds in data.items():
        for feed in feeds:
            seeds.append(FeedSeed(
                url=feed['url'],
                name=feed.get('name') or feed['url'],
                description=feed.get('description'),
                category=feed.get('category', category),
            ))
    return seeds


def seed_feeds(store: ArticleStore, seeds: List[FeedSeed]) -> List[dict]:
    """Upsert each seed by url. Re-seeding a known feed only refreshes its metadata."""
    results = []
    seen_urls = set()
    for seed in seeds:
        if seed.url in seen_urls:
            logger.debug(f"Skipping duplicate seed url: {seed.url}")
            continue
        seen_urls.add(seed.url)
        try:
            store.upsert_feed(seed.url, seed.name, seed.description, seed.category)
        except PersistenceError as e:
            logger.error(f"Error adding feed {seed.name}: {e}")
            results.append({'feed': asdict(seed), 'error': str(e)})
            continue
        results.append({'feed': asdict(seed), 'success': True})
    return results
