from .feeds import DEFAULT_FEEDS, FeedSeed, load_feeds_file, seed_feeds
from .ingestor import FeedIngestor, IngestResult
from .opml_handler import parse_opml

__all__ = [
    'DEFAULT_FEEDS',
    'FeedSeed',
    'load_feeds_file',
    'seed_feeds',
    'FeedIngestor',
    'IngestResult',
    'parse_opml',
]
