"""Structured analysis of unanalyzed articles.

Each article gets one completion request. When the reply cannot be parsed
or lacks any required field, exactly one stricter retry is made; a second
failure is recorded against the article and the batch moves on.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from config import config
from database.models import ANALYSIS_FIELDS
from database.store import ArticleStore
from errors import ParseRepairError, PersistenceError, ProviderError, SchemaIncompleteError
from llm.client import CompletionClient
from llm.json_repair import repair_json
from llm.prompts import ANALYSIS_SYSTEM_PROMPT, RETRY_SYSTEM_PROMPT, build_analysis_prompt, build_retry_prompt

logger = logging.getLogger('practical_feed')

REQUIRED_FIELDS = tuple(ANALYSIS_FIELDS)


@dataclass
class ArticleOutcome:
    id: int
    title: str
    status: str
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.error is None:
            del data['error']
        return data


@dataclass
class EnrichmentResult:
    processed: int = 0
    errors: int = 0
    skipped: int = 0
    details: List[ArticleOutcome] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'processed': self.processed,
            'errors': self.errors,
            'skipped': self.skipped,
            'details': [outcome.to_dict() for outcome in self.details],
        }


def missing_fields(analysis: dict) -> List[str]:
    """Required keys absent from ``analysis``. Values are not checked."""
    return [name for name in REQUIRED_FIELDS if name not in analysis]


class EnrichmentAnalyzer:
    def __init__(
        self,
        store: ArticleStore,
        client: CompletionClient,
        model: str = None,
        temperature: float = None,
        max_tokens: int = None,
        claim_articles: bool = None,
        claim_ttl: int = None,
    ):
        self.store = store
        self.client = client
        self.model = model or config.ollama.enrich_model
        self.temperature = temperature if temperature is not None else config.enrich.temperature
        self.max_tokens = max_tokens if max_tokens is not None else config.enrich.max_tokens
        self.claim_articles = claim_articles if claim_articles is not None else config.enrich.claim_articles
        self.claim_ttl = claim_ttl if claim_ttl is not None else config.enrich.claim_ttl

    def run(self, limit: int = None) -> EnrichmentResult:
        """Analyze every unanalyzed article, newest first, up to ``limit``.

        Listing failures propagate; anything that goes wrong for a single
        article becomes an error outcome.
        """
        articles = self.store.list_unanalyzed(limit=limit)
        logger.info(f"Found {len(articles)} articles to analyze")

        result = EnrichmentResult()
        for article in articles:
            try:
                if self.claim_articles and not self.store.claim_for_analysis(article.id, self.claim_ttl):
                    logger.debug(f"Skipping article {article.id}: claimed by another run or already analyzed")
                    result.skipped += 1
                    continue

                logger.info(f"Processing: {article.title}")
                analysis = self.analyze(article.title, article.url)
                self.store.save_analysis(article.id, analysis)
            except Exception as e:
                self._release(article.id)
                result.errors += 1
                result.details.append(ArticleOutcome(article.id, article.title, 'error', str(e) or type(e).__name__))
                logger.error(f"Error enriching article {article.id}: {e}")
                continue

            result.processed += 1
            result.details.append(ArticleOutcome(article.id, article.title, 'success'))
            logger.info(
                f"Enriched article {article.id}: category={analysis.get('category')}, "
                f"practical level={analysis.get('practicalLevel')}"
            )

        logger.info(f"AI enrichment completed: {result.processed} processed, {result.errors} errors")
        return result

    def analyze(self, title: str, url: str) -> dict:
        """Return a complete analysis dict or raise a PipelineError."""
        try:
            analysis = self._request(ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt(title, url))
            missing = missing_fields(analysis)
            if not missing:
                return analysis
            logger.info(f"Missing fields: {', '.join(missing)}. Retrying with explicit prompt...")
        except ParseRepairError as e:
            logger.info(f"Could not parse first response ({e}). Retrying with explicit prompt...")
            logger.debug(f"Raw content: {e.raw}")
        except ProviderError as e:
            logger.warning(f"First completion attempt failed ({e}). Retrying with explicit prompt...")

        try:
            analysis = self._request(RETRY_SYSTEM_PROMPT, build_retry_prompt(title, url, REQUIRED_FIELDS))
        except ParseRepairError as e:
            logger.debug(f"Raw retry content: {e.raw}")
            raise ParseRepairError(f"Failed to parse AI response after retry: {e}", raw=e.raw) from e

        missing = missing_fields(analysis)
        if missing:
            raise SchemaIncompleteError(missing, prefix="Still missing required fields after retry")
        return analysis

    def _request(self, system_prompt: str, user_prompt: str) -> dict:
        content = self.client.complete(
            self.model,
            system_prompt,
            user_prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return repair_json(content)

    def _release(self, article_id: int):
        if not self.claim_articles:
            return
        try:
            self.store.release_claim(article_id)
        except PersistenceError as e:
            # The claim expires after claim_ttl seconds
            logger.warning(f"Could not release claim on article {article_id}: {e}")
