import argparse
import logging

import uvicorn
from rich.console import Console
from rich.logging import RichHandler

import pipeline
from cli import (
    display_articles,
    display_feeds,
    enrich,
    fetch_feeds,
    import_opml,
    run_all,
    seed_default_feeds,
    seed_from_file,
)
from config import config
from database.db import drop_db, init_db, make_engine, make_session_factory
from database.store import ArticleStore

# Initialize rich console
console = Console()

def setup_logging(debug: bool):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    # Third-party clients are chatty at DEBUG
    for name in ("httpx", "httpcore", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)

def main():
    parser = argparse.ArgumentParser(
        description='RSS aggregation with AI-derived practical metadata',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create tables and add the built-in AI feeds
  python main.py init-db
  python main.py seed-feeds

  # Add feeds from a feeds.json file or an OPML export
  python main.py seed-feeds -file feeds.json
  python main.py import-opml feeds.opml

  # Fetch new articles, then analyze them
  python main.py fetch-feeds
  python main.py enrich -limit 10

  # Both stages in one go
  python main.py run

  # Browse enriched articles
  python main.py list-articles -level beginner_friendly

  # Start the HTTP API
  python main.py serve -port 8000
        """
    )

    # Global options that can be used with any command
    parser.add_argument('-debug', action='store_true', help='Enable debug mode for verbose output')
    subparsers = parser.add_subparsers(dest='command', help='Available commands', required=False)

    # Database management
    subparsers.add_parser('init-db', help='Create all tables')
    subparsers.add_parser('reset-db', help='Drop and recreate all tables')

    # Feed management
    seed = subparsers.add_parser('seed-feeds', help='Add or refresh feeds (built-in list by default)')
    seed.add_argument('-file', type=str, help='feeds.json file to seed from')

    import_opml_parser = subparsers.add_parser('import-opml', help='Import feeds from OPML file')
    import_opml_parser.add_argument('file', type=str, help='OPML file path')

    # Information display
    subparsers.add_parser('list-feeds', help='List all stored feeds')
    list_articles = subparsers.add_parser('list-articles', help='List enriched articles')
    list_articles.add_argument('-range', dest='date_range', default='all',
                               choices=['all', 'today', 'yesterday', 'last_7_days', 'last_30_days'])
    list_articles.add_argument('-level', dest='practical_level', type=str, help='Practical level filter')
    list_articles.add_argument('-difficulty', type=str, help='Difficulty filter')
    list_articles.add_argument('-category', type=str, help='Category filter')
    list_articles.add_argument('-items', type=int, default=20, help='Maximum number of articles to show')

    # Pipeline
    subparsers.add_parser('fetch-feeds', help='Fetch all feeds and store new articles')
    enrich_parser = subparsers.add_parser('enrich', help='Analyze unanalyzed articles')
    enrich_parser.add_argument('-limit', type=int, help='Maximum number of articles to analyze')
    subparsers.add_parser('run', help='Fetch feeds, then analyze new articles')

    # HTTP API
    serve = subparsers.add_parser('serve', help='Start the HTTP API')
    serve.add_argument('-port', type=int, default=8000, help='Port for the API server (default: 8000)')
    serve.add_argument('-host', type=str, default="127.0.0.1", help='Host for the API server (default: 127.0.0.1)')

    args = parser.parse_args()
    config.debug = args.debug
    setup_logging(args.debug)

    if not args.command:
        parser.print_help()
        return

    if args.command == 'serve':
        console.print(f"[bold green]Starting API server at http://{args.host}:{args.port}[/bold green]")
        uvicorn.run("api.app:app", host=args.host, port=args.port)
        return

    engine = make_engine(config.db.url)
    if args.command == 'reset-db':
        with console.status("[bold yellow]Resetting database...[/bold yellow]"):
            drop_db(engine)
            init_db(engine)
        console.print("[bold green]Database reset complete![/bold green]")
        return

    # Just ensure tables exist
    init_db(engine)
    if args.command == 'init-db':
        console.print("[bold green]Database ready.[/bold green]")
        return

    store = ArticleStore(make_session_factory(engine))

    if args.command == 'seed-feeds':
        if args.file:
            seed_from_file(store, args.file)
        else:
            seed_default_feeds(store)
    elif args.command == 'import-opml':
        import_opml(store, args.file)
    elif args.command == 'list-feeds':
        display_feeds(store)
    elif args.command == 'list-articles':
        display_articles(store, args.date_range, args.practical_level, args.difficulty, args.category, args.items)
    elif args.command == 'fetch-feeds':
        fetch_feeds(store)
    elif args.command == 'enrich':
        enrich(store, pipeline.default_client(), args.limit)
    elif args.command == 'run':
        run_all(store, pipeline.default_client())

if __name__ == '__main__':
    main()
