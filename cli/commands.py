from rich.console import Console
from rich.panel import Panel
from rich.table import Table

import pipeline
from database.store import ArticleStore
from llm.client import CompletionClient
from rss.feeds import DEFAULT_FEEDS, load_feeds_file, seed_feeds
from rss.opml_handler import parse_opml

# Initialize rich console
console = Console()

def display_seed_results(results):
    """Show which feeds were added or refreshed"""
    for result in results:
        feed = result["feed"]
        if result.get("success"):
            console.print(f"[green]Saved feed:[/green] {feed['name']} [dim]({feed['url']})[/dim]")
        else:
            console.print(f"[red]Failed to save feed {feed['name']}:[/red] {result['error']}")

def seed_default_feeds(store: ArticleStore):
    """Add the built-in AI feed list"""
    display_seed_results(seed_feeds(store, DEFAULT_FEEDS))

def seed_from_file(store: ArticleStore, path: str):
    """Add feeds from a feeds.json file"""
    try:
        seeds = load_feeds_file(path)
    except (OSError, ValueError, KeyError) as e:
        console.print(f"[bold red]Error loading {path}:[/bold red] {e}")
        return
    display_seed_results(seed_feeds(store, seeds))

def import_opml(store: ArticleStore, file_path: str):
    """Import feeds from OPML file"""
    try:
        seeds = parse_opml(file_path)
    except Exception as e:
        console.print(f"[bold red]Error importing OPML:[/bold red] {e}")
        return
    display_seed_results(seed_feeds(store, seeds))
    console.print("\n[bold green]OPML import complete![/bold green]")

def display_feeds(store: ArticleStore):
    """Display all stored feeds in a table"""
    table = Table(title="Configured Feeds")
    table.add_column("Name", style="cyan")
    table.add_column("URL", style="blue")
    table.add_column("Category", style="green")
    table.add_column("Last Fetched", style="yellow")

    for feed in store.list_feeds():
        last_fetched = feed.last_fetched_at.strftime("%Y-%m-%d %H:%M") if feed.last_fetched_at else "Never"
        table.add_row(feed.name or "No Name", feed.url, (feed.category or "Unknown").upper(), last_fetched)

    console.print(table)

def display_articles(store: ArticleStore, date_range: str = "all", practical_level: str = None,
                     difficulty: str = None, category: str = None, limit: int = 20):
    """Display enriched articles in a table"""
    articles, total = store.list_enriched(
        date_range=date_range,
        items_per_page=limit,
        practical_level=practical_level,
        difficulty=difficulty,
        category=category,
    )
    table = Table(title=f"Enriched Articles ({len(articles)} of {total})")
    table.add_column("Title", style="cyan")
    table.add_column("Category", style="green")
    table.add_column("Level", style="magenta")
    table.add_column("Difficulty", style="yellow")
    table.add_column("Minutes", justify="right")
    table.add_column("Technologies", style="blue")

    for article in articles:
        table.add_row(
            article.title or "Untitled",
            article.ai_category or "",
            article.ai_practical_level or "",
            article.ai_difficulty or "",
            str(article.ai_time_to_experiment) if article.ai_time_to_experiment is not None else "",
            ", ".join(str(t) for t in article.ai_technologies or []),
        )

    console.print(table)

def display_ingest_result(result: dict):
    lines = []
    for feed in result["feeds"]:
        if feed.get("error"):
            lines.append(f"[red]✗ {feed['name']}[/red]: {feed['error']}")
        else:
            lines.append(f"[green]✓ {feed['name']}[/green]: {feed['new_articles']} new articles")
    console.print(Panel("\n".join(lines) or "No feeds configured", title=result["message"], border_style="green"))

def display_enrich_result(result: dict):
    lines = [
        f"[bold green]Processed:[/bold green] {result['processed']}",
        f"[bold red]Errors:[/bold red] {result['errors']}",
        f"[bold yellow]Skipped:[/bold yellow] {result['skipped']}",
    ]
    for detail in result["details"]:
        if detail["status"] == "error":
            lines.append(f"[red]✗ {detail['title']}[/red]: {detail['error']}")
        else:
            lines.append(f"[green]✓ {detail['title']}[/green]")
    console.print(Panel("\n".join(lines), title="AI Enrichment", border_style="cyan"))

def fetch_feeds(store: ArticleStore):
    """Fetch latest content for all feeds"""
    console.print("\n[bold cyan]Fetching latest content for all feeds[/bold cyan]")
    try:
        with console.status("[bold yellow]Fetching feeds...[/bold yellow]"):
            result = pipeline.refresh_feeds(store)
    except Exception as e:
        console.print(f"[bold red]Error refreshing feeds:[/bold red] {e}")
        return
    display_ingest_result(result)

def enrich(store: ArticleStore, client: CompletionClient, limit: int = None):
    """Analyze unanalyzed articles"""
    console.print("\n[bold cyan]Enriching unanalyzed articles[/bold cyan]")
    try:
        with console.status("[bold yellow]Analyzing articles...[/bold yellow]"):
            result = pipeline.enrich_articles(store, client, limit=limit)
    except Exception as e:
        console.print(f"[bold red]Error enriching articles:[/bold red] {e}")
        return
    display_enrich_result(result)

def run_all(store: ArticleStore, client: CompletionClient):
    """Fetch feeds, then enrich"""
    try:
        with console.status("[bold yellow]Running pipeline...[/bold yellow]"):
            result = pipeline.run_full_pipeline(store, client)
    except Exception as e:
        console.print(f"[bold red]Pipeline failed:[/bold red] {e}")
        return
    display_ingest_result(result["feedResult"])
    display_enrich_result(result["enrichResult"])
