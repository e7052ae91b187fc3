"""SHA-256 content hashing for snippet identification"""

import hashlib


def sha256(content: str) -> str:
    """Return hex-encoded SHA-256 hash of content (64 chars)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def content_hash(content: str, length: int = 12) -> str:
    """Return the first `length` hex digits of the SHA-256 of content."""
    return sha256(content)[:length]
