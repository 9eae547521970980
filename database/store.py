"""Persistence for feeds and articles.

``ArticleStore`` wraps a SQLAlchemy session factory. Each public method runs
in its own short session, so one failed write never leaves another item's
changes half applied.
"""

from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from dateutil.tz import tzutc
from sqlalchemy import String, cast, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from database.models import ANALYSIS_FIELDS, Article, Feed, utcnow
from errors import ArticleInsertError, ArticleNotFoundError, PersistenceError

DATE_RANGES = ('today', 'yesterday', 'last_7_days', 'last_30_days')


class ArticleStore:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def get_db_session(self):
        """Create a new database session."""
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    # Feeds

    def list_feeds(self) -> List[Feed]:
        with self.get_db_session() as db:
            return db.query(Feed).order_by(Feed.name).all()

    def upsert_feed(self, url: str, name: str, description: str = None, category: str = None) -> Feed:
        """Create a feed or refresh its metadata, keyed on url."""
        with self.get_db_session() as db:
            try:
                feed = db.query(Feed).filter(Feed.url == url).first()
                if feed:
                    feed.name = name
                    if description is not None:
                        feed.description = description
                    if category is not None:
                        feed.category = category
                else:
                    feed = Feed(url=url, name=name, description=description, category=category)
                    db.add(feed)
                db.commit()
                return feed
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Could not save feed {url}: {e}") from e

    def mark_feed_fetched(self, feed_id: int, fetched_at: datetime = None):
        with self.get_db_session() as db:
            try:
                db.execute(
                    update(Feed)
                    .where(Feed.id == feed_id)
                    .values(last_fetched_at=fetched_at or utcnow())
                )
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Could not update feed {feed_id}: {e}") from e

    # Articles

    def article_exists(self, url: str) -> bool:
        with self.get_db_session() as db:
            return db.query(Article.id).filter(Article.url == url).first() is not None

    def insert_article(self, **fields) -> Article:
        with self.get_db_session() as db:
            try:
                article = Article(**fields)
                db.add(article)
                db.commit()
                return article
            except SQLAlchemyError as e:
                db.rollback()
                raise ArticleInsertError(f"Could not insert article {fields.get('url')}: {e}") from e

    def get_article(self, article_id: int) -> Optional[Article]:
        with self.get_db_session() as db:
            return db.get(Article, article_id)

    def count_articles(self) -> int:
        with self.get_db_session() as db:
            return db.query(func.count(Article.id)).scalar()

    def list_unanalyzed(self, limit: int = None) -> List[Article]:
        """Articles without an analysis, newest first."""
        with self.get_db_session() as db:
            query = (
                db.query(Article)
                .filter(Article.ai_analyzed_at.is_(None))
                .order_by(Article.published_at.desc())
            )
            if limit is not None:
                query = query.limit(limit)
            return query.all()

    def claim_for_analysis(self, article_id: int, ttl_seconds: int, now: datetime = None) -> bool:
        """Mark an unanalyzed article as in progress.

        Returns False when the article was analyzed meanwhile or another run
        claimed it less than ``ttl_seconds`` ago.
        """
        now = now or utcnow()
        stale_before = now - timedelta(seconds=ttl_seconds)
        with self.get_db_session() as db:
            try:
                result = db.execute(
                    update(Article)
                    .where(Article.id == article_id)
                    .where(Article.ai_analyzed_at.is_(None))
                    .where((Article.processing_since.is_(None)) | (Article.processing_since < stale_before))
                    .values(processing_since=now)
                )
                db.commit()
                return result.rowcount == 1
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Could not claim article {article_id}: {e}") from e

    def release_claim(self, article_id: int):
        with self.get_db_session() as db:
            try:
                db.execute(update(Article).where(Article.id == article_id).values(processing_since=None))
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Could not release article {article_id}: {e}") from e

    def save_analysis(self, article_id: int, analysis: Dict, analyzed_at: datetime = None):
        """Write every analysis column and the analyzed stamp in one UPDATE."""
        values = {column: analysis.get(key) for key, column in ANALYSIS_FIELDS.items()}
        values['ai_analyzed_at'] = analyzed_at or utcnow()
        values['processing_since'] = None
        with self.get_db_session() as db:
            try:
                result = db.execute(update(Article).where(Article.id == article_id).values(**values))
                if result.rowcount != 1:
                    db.rollback()
                    raise PersistenceError(f"Article {article_id} no longer exists")
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Could not save analysis for article {article_id}: {e}") from e

    def save_learn_more(self, article_id: int, markdown: str, prompts: Optional[Dict]):
        with self.get_db_session() as db:
            try:
                result = db.execute(
                    update(Article)
                    .where(Article.id == article_id)
                    .values(ai_learn_more_markdown=markdown, ai_learn_more_prompts=prompts)
                )
                if result.rowcount != 1:
                    db.rollback()
                    raise ArticleNotFoundError(f"Article {article_id} not found")
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Could not save learn-more for article {article_id}: {e}") from e

    def list_enriched(
        self,
        date_range: str = 'today',
        page: int = 1,
        items_per_page: int = 10,
        practical_level: str = None,
        difficulty: str = None,
        category: str = None,
        now: datetime = None,
    ) -> Tuple[List[Article], int]:
        """Enriched articles that name at least one technology, newest first.

        ``date_range`` is one of DATE_RANGES (UTC calendar days) or ``all``.
        Filters set to None or ``all`` are ignored.
        """
        with self.get_db_session() as db:
            query = db.query(Article).filter(Article.ai_analyzed_at.isnot(None))

            if practical_level and practical_level != 'all':
                query = query.filter(Article.ai_practical_level == practical_level)
            if difficulty and difficulty != 'all':
                query = query.filter(Article.ai_difficulty == difficulty)
            if category and category != 'all':
                query = query.filter(Article.ai_category == category)

            bounds = date_range_bounds(date_range, now or utcnow())
            if bounds:
                start, end = bounds
                query = query.filter(Article.published_at >= start, Article.published_at <= end)

            # Empty or null technology lists, compared as serialized text
            technologies = cast(Article.ai_technologies, String)
            query = query.filter(
                Article.ai_technologies.isnot(None),
                technologies.not_in(['[]', 'null']),
            )

            total = query.count()
            page = max(page, 1)
            articles = (
                query.order_by(Article.published_at.desc())
                .offset((page - 1) * items_per_page)
                .limit(items_per_page)
                .all()
            )
        return articles, total


def date_range_bounds(date_range: str, now: datetime) -> Optional[Tuple[datetime, datetime]]:
    if date_range not in DATE_RANGES:
        return None
    today = now.astimezone(tzutc()).replace(hour=0, minute=0, second=0, microsecond=0)
    end_of_today = today + timedelta(days=1) - timedelta(microseconds=1)
    if date_range == 'today':
        return today, end_of_today
    if date_range == 'yesterday':
        return today - timedelta(days=1), today - timedelta(microseconds=1)
    if date_range == 'last_7_days':
        return today - timedelta(days=7), end_of_today
    return today - timedelta(days=30), end_of_today
