import xml.etree.ElementTree as ET
from typing import List

from .feeds import FeedSeed

def parse_opml(opml_path: str) -> List[FeedSeed]:
    """
    Parse OPML file into feed seeds, using the enclosing outline as category
    """
    tree = ET.parse(opml_path)
    root = tree.getroot()
    body = root.find('body')
    if body is None:
        return []

    result: List[FeedSeed] = []

    def process_outline(outline: ET.Element, current_category: str = None):
        if outline.get('xmlUrl'):  # This is a feed
            result.append(FeedSeed(
                url=outline.get('xmlUrl'),
                name=outline.get('title') or outline.get('text') or outline.get('xmlUrl'),
                description=outline.get('description'),
                category=current_category,
            ))
        else:  # This is a category
            category = outline.get('title') or outline.get('text', '')
            for child in outline:
                process_outline(child, category)

    for outline in body:
        process_outline(outline)

    return result
