import logging
import secrets
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

import pipeline
from config import config
from database.store import ArticleStore
from errors import ArticleNotFoundError
from llm.client import CompletionClient
from llm.learn_more import LearnMoreGenerator
from rss.feeds import DEFAULT_FEEDS, seed_feeds

# Initialize logger
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Practical AI Feed API",
    description="RSS ingestion and LLM enrichment triggers",
)

class FeedResponse(BaseModel):
    id: int
    url: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    last_fetched_at: Optional[str] = None

class FeedListResponse(BaseModel):
    success: bool
    feeds: List[FeedResponse]
    total: int

def get_store() -> ArticleStore:
    return pipeline.default_store()

def get_client() -> CompletionClient:
    return pipeline.default_client()

def _authorized(authorization: Optional[str]) -> bool:
    if not config.cron.secret:
        logger.warning("CRON_SECRET is not set; rejecting cron request")
        return False
    return secrets.compare_digest(authorization or "", f"Bearer {config.cron.secret}")

def _unauthorized() -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "Unauthorized"})

@app.get("/health")
async def health():
    return {"status": "ok"}

@app.post("/api/refresh-feeds")
def refresh_feeds(store: ArticleStore = Depends(get_store)):
    """Fetch every feed and store new articles"""
    try:
        return pipeline.refresh_feeds(store)
    except Exception as e:
        logger.error(f"Error refreshing feeds: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to refresh feeds", "details": str(e)},
        )

@app.post("/api/enrich")
def enrich(store: ArticleStore = Depends(get_store), client: CompletionClient = Depends(get_client)):
    """Analyze all unanalyzed articles"""
    try:
        results = pipeline.enrich_articles(store, client)
        return {"success": True, "results": results}
    except Exception as e:
        logger.error(f"Error in enrich endpoint: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

@app.get("/api/cron/fetch-feeds")
def cron_fetch_feeds(
    authorization: Optional[str] = Header(None),
    store: ArticleStore = Depends(get_store),
    client: CompletionClient = Depends(get_client),
):
    """Scheduled ingest followed by enrichment"""
    if not _authorized(authorization):
        return _unauthorized()
    try:
        return pipeline.run_full_pipeline(store, client)
    except Exception as e:
        logger.error(f"Error in fetch-feeds cron job: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch feeds", "details": str(e)},
        )

@app.api_route("/api/cron/enrich", methods=["GET", "POST"])
def cron_enrich(
    authorization: Optional[str] = Header(None),
    store: ArticleStore = Depends(get_store),
    client: CompletionClient = Depends(get_client),
):
    """Scheduled enrichment of a small batch, without ingestion"""
    if not _authorized(authorization):
        return _unauthorized()
    try:
        results = pipeline.run_scheduled_enrichment(store, client)
        return {"success": True, "results": results}
    except Exception as e:
        logger.error(f"Error in enrich cron job: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

@app.get("/api/feeds", response_model=FeedListResponse)
def list_feeds(store: ArticleStore = Depends(get_store)):
    """List all RSS feeds ordered by name"""
    try:
        feeds = [FeedResponse(**feed.to_dict()) for feed in store.list_feeds()]
        return FeedListResponse(success=True, feeds=feeds, total=len(feeds))
    except Exception as e:
        logger.error(f"Error fetching RSS feeds: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch feeds", "details": str(e)},
        )

@app.post("/api/add-feeds")
def add_feeds(store: ArticleStore = Depends(get_store)):
    """Seed the built-in feed list"""
    try:
        return {"success": True, "results": seed_feeds(store, DEFAULT_FEEDS)}
    except Exception as e:
        logger.error(f"Error adding feeds: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to add feeds", "details": str(e)},
        )

@app.get("/api/articles")
def list_articles(
    date_range: str = Query("today"),
    page: int = Query(1, ge=1),
    items_per_page: int = Query(10, ge=1, le=100),
    practical_level: Optional[str] = None,
    difficulty: Optional[str] = None,
    category: Optional[str] = None,
    store: ArticleStore = Depends(get_store),
):
    """Enriched articles with optional filters"""
    try:
        articles, total = store.list_enriched(
            date_range=date_range,
            page=page,
            items_per_page=items_per_page,
            practical_level=practical_level,
            difficulty=difficulty,
            category=category,
        )
        return {"success": True, "articles": [a.to_dict() for a in articles], "total": total}
    except Exception as e:
        logger.error(f"Error fetching articles: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

@app.post("/api/articles/{article_id}/learn-more")
def learn_more(
    article_id: int,
    store: ArticleStore = Depends(get_store),
    client: CompletionClient = Depends(get_client),
):
    """Generate (or return cached) hands-on follow-up material for an article"""
    try:
        result = LearnMoreGenerator(store, client).generate(article_id)
    except ArticleNotFoundError:
        return JSONResponse(status_code=404, content={"success": False, "error": "Article not found"})
    except Exception as e:
        logger.error(f"Error in learn-more endpoint: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to generate enrichment"})
    return {"success": True, "markdown": result["markdown"], "prompts": result["prompts"]}
