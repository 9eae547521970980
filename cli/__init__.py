"""
Command line interface for the practical AI feed.

It provides commands for:
- Seeding feeds (built-in list, feeds.json, OPML)
- Fetching feeds and enriching articles
- Displaying feeds and enriched articles

The commands are implemented in the commands.py module.
"""

from .commands import (
    display_articles,
    display_feeds,
    enrich,
    fetch_feeds,
    import_opml,
    run_all,
    seed_default_feeds,
    seed_from_file,
)
