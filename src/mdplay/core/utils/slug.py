"""Slug and identifier generation for documents and namespaces"""

import re


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated URL-safe slug."""
    text = text.lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


def identifier(text: str) -> str:
    """Convert text to a lowercase package-safe identifier ('' when nothing usable remains).

    Non-alphanumerics collapse to '_'; a leading digit gets a '_' prefix.
    """
    text = re.sub(r'[^a-z0-9]+', '_', text.lower()).strip('_')
    if text and text[0].isdigit():
        text = f"_{text}"
    return text
