import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import feedparser
import requests
from bs4 import BeautifulSoup
from dateutil.parser import parse
from dateutil.tz import tzutc

from config import config
from database.models import Feed, utcnow
from database.store import ArticleStore
from errors import ArticleInsertError, FeedFetchError, PersistenceError

logger = logging.getLogger('practical_feed')

# Define timezone info for common timezones
TZINFOS = {
    'EST': -18000,  # UTC-5 hours in seconds
    'EDT': -14400,  # UTC-4 hours in seconds
    'CST': -21600,  # UTC-6 hours
    'CDT': -18000,  # UTC-5 hours
    'MST': -25200,  # UTC-7 hours
    'MDT': -21600,  # UTC-6 hours
    'PST': -28800,  # UTC-8 hours
    'PDT': -25200,  # UTC-7 hours
    'GMT': 0,       # UTC
    'UTC': 0,
}

_SPACE_RE = re.compile(r'\s+')


@dataclass
class FeedOutcome:
    feed_id: int
    name: str
    new_articles: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {'feed_id': self.feed_id, 'name': self.name, 'new_articles': self.new_articles}
        if self.error:
            data['error'] = self.error
        return data


@dataclass
class IngestResult:
    success: bool = True
    message: str = 'Feeds fetched and stored successfully'
    feeds: List[FeedOutcome] = field(default_factory=list)

    @property
    def new_articles(self) -> int:
        return sum(outcome.new_articles for outcome in self.feeds)

    def to_dict(self) -> dict:
        return {
            'success': self.success,
            'message': self.message,
            'feeds': [outcome.to_dict() for outcome in self.feeds],
        }


def text_snippet(value: str) -> str:
    """Plain-text rendering of an HTML fragment."""
    if not value:
        return ''
    soup = BeautifulSoup(value, 'html.parser')
    for tag in soup(['script', 'style']):
        tag.decompose()
    return _SPACE_RE.sub(' ', soup.get_text(separator=' ')).strip()


def parse_published(entry, default: datetime) -> datetime:
    published = entry.get('published', entry.get('updated', entry.get('created')))
    if not published:
        return default
    try:
        # First try to parse with timezone info
        published_date = parse(published, tzinfos=TZINFOS)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Error parsing date '{published}': {e}")
        return default
    # If no timezone info was found, assume UTC
    if published_date.tzinfo is None:
        published_date = published_date.replace(tzinfo=tzutc())
    return published_date.astimezone(tzutc())


def entry_image(entry) -> Optional[str]:
    for enclosure in entry.get('enclosures', []):
        href = enclosure.get('href') or enclosure.get('url')
        if href:
            return href
    for media in entry.get('media_content', []) + entry.get('media_thumbnail', []):
        if media.get('url'):
            return media['url']
    return None


class FeedIngestor:
    """Fetches every stored feed and stores articles whose url is new."""

    def __init__(self, store: ArticleStore, http: requests.Session = None, timeout: float = None):
        self.store = store
        self.http = http or requests.Session()
        self.timeout = timeout if timeout is not None else config.rss.fetch_timeout

    def fetch_document(self, url: str):
        try:
            response = self.http.get(url, timeout=self.timeout, headers={'User-Agent': config.rss.user_agent})
            response.raise_for_status()
        except requests.RequestException as e:
            raise FeedFetchError(f"Could not download feed {url}: {e}") from e

        feed_data = feedparser.parse(response.content)
        # feedparser flags recoverable problems as bozo; only give up when nothing parsed
        if feed_data.bozo and not feed_data.entries:
            raise FeedFetchError(f"Could not parse feed {url}: {feed_data.get('bozo_exception', 'No feed data')}")
        return feed_data

    def run(self) -> IngestResult:
        """Ingest all feeds in listing order.

        A failure to list feeds propagates. Anything that goes wrong inside one
        feed is logged and recorded on that feed's outcome.
        """
        feeds = self.store.list_feeds()
        logger.info(f"Processing {len(feeds)} sources...")

        result = IngestResult()
        for feed in feeds:
            result.feeds.append(self.ingest_feed(feed))

        logger.info(f"Feed refresh completed: {result.new_articles} new articles")
        return result

    def ingest_feed(self, feed: Feed) -> FeedOutcome:
        outcome = FeedOutcome(feed_id=feed.id, name=feed.name)
        logger.info(f"Fetching {feed.name} ({feed.url})")
        try:
            feed_data = self.fetch_document(feed.url)
            logger.debug(f"Found {len(feed_data.entries)} items")
            for entry in feed_data.entries:
                if self.store_entry(feed, entry):
                    outcome.new_articles += 1
        except Exception as e:
            outcome.error = str(e)
            logger.error(f"Error processing {feed.name}: {e}")

        # Recorded for every attempt, whether or not anything new was found
        try:
            self.store.mark_feed_fetched(feed.id)
        except PersistenceError as e:
            logger.error(f"Error updating last_fetched_at for {feed.name}: {e}")

        logger.info(f"Processed {feed.name}: added {outcome.new_articles} new articles")
        return outcome

    def store_entry(self, feed: Feed, entry) -> bool:
        """Insert one feed item unless its url is already stored."""
        link = entry.get('link')
        if not link:
            logger.debug(f"Skipping entry without link: {entry.get('title', '')}")
            return False

        try:
            if self.store.article_exists(link):
                return False

            snippet = text_snippet(entry.get('summary', ''))
            content = (entry.get('content') or [{}])[0].get('value', '') or entry.get('summary', '') or snippet
            self.store.insert_article(
                feed_id=feed.id,
                url=link,
                title=entry.get('title', ''),
                description=snippet or text_snippet(content),
                content=content,
                image_url=entry_image(entry),
                published_at=parse_published(entry, utcnow()),
                source_name=feed.name,
                source_url=feed.url,
            )
        except ArticleInsertError as e:
            logger.error(f"Error inserting article \"{entry.get('title', '')}\": {e}")
            return False
        except Exception as e:
            logger.error(f"Error checking for existing article {link}: {e}")
            return False

        logger.debug(f"Added entry: {entry.get('title', '')}")
        return True
