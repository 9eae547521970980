from datetime import datetime

from dateutil.tz import tzutc
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(tzutc())


# Response key -> Article column for the structured analysis
ANALYSIS_FIELDS = {
    'category': 'ai_category',
    'practicalLevel': 'ai_practical_level',
    'aiTechnologies': 'ai_technologies',
    'difficulty': 'ai_difficulty',
    'timeToExperiment': 'ai_time_to_experiment',
    'hasCode': 'ai_has_code',
    'hasAPI': 'ai_has_api',
    'hasDemo': 'ai_has_demo',
    'hasTutorial': 'ai_has_tutorial',
    'requiresPayment': 'ai_requires_payment',
    'requiresSignup': 'ai_requires_signup',
    'learningObjectives': 'ai_learning_objectives',
    'prerequisites': 'ai_prerequisites',
    'summary': 'ai_summary',
    'keyTakeaways': 'ai_key_takeaways',
    'tags': 'ai_tags',
}


class Feed(Base):
    __tablename__ = 'rss_feeds'

    id = Column(Integer, primary_key=True)
    url = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text)
    category = Column(String)
    last_fetched_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    articles = relationship('Article', back_populates='feed')

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'url': self.url,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'last_fetched_at': self.last_fetched_at.isoformat() if self.last_fetched_at else None,
        }


class Article(Base):
    __tablename__ = 'articles'

    id = Column(Integer, primary_key=True)
    feed_id = Column(Integer, ForeignKey('rss_feeds.id'))
    url = Column(String, unique=True, nullable=False)
    title = Column(String)
    description = Column(Text)
    content = Column(Text)
    image_url = Column(String)
    published_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    source_name = Column(String)
    source_url = Column(String)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Structured analysis, all null until the article is enriched
    ai_category = Column(String)
    ai_practical_level = Column(String)
    ai_technologies = Column(JSON)
    ai_difficulty = Column(String)
    ai_time_to_experiment = Column(Integer)
    ai_has_code = Column(Boolean)
    ai_has_api = Column(Boolean)
    ai_has_demo = Column(Boolean)
    ai_has_tutorial = Column(Boolean)
    ai_requires_payment = Column(Boolean)
    ai_requires_signup = Column(Boolean)
    ai_learning_objectives = Column(JSON)
    ai_prerequisites = Column(JSON)
    ai_summary = Column(Text)
    ai_key_takeaways = Column(JSON)
    ai_tags = Column(JSON)
    ai_analyzed_at = Column(DateTime(timezone=True), index=True)

    # Set while an enrichment run holds the article
    processing_since = Column(DateTime(timezone=True))

    ai_learn_more_markdown = Column(Text)
    ai_learn_more_prompts = Column(JSON)

    feed = relationship('Feed', back_populates='articles')

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'feed_id': self.feed_id,
            'url': self.url,
            'title': self.title,
            'description': self.description,
            'content': self.content,
            'image_url': self.image_url,
            'published_at': self.published_at.isoformat() if self.published_at else None,
            'source_name': self.source_name,
            'source_url': self.source_url,
        }
        for column in ANALYSIS_FIELDS.values():
            data[column] = getattr(self, column)
        data['ai_analyzed_at'] = self.ai_analyzed_at.isoformat() if self.ai_analyzed_at else None
        return data
