"""
Content checksums used as optimistic-concurrency tokens.

A reader gets the checksum of the content it saw; a writer passes it back
and the write is rejected if the file has changed since.
"""

import hashlib
from typing import Optional

CHECKSUM_LENGTH = 12


def compute_checksum(content: str) -> str:
    """First 12 hex characters of the SHA-256 of the UTF-8 encoded content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:CHECKSUM_LENGTH]


def verify_checksum(content: str, expected: Optional[str]) -> bool:
    """Check content against an expected checksum."""
    if not expected:
        return False
    return compute_checksum(content) == expected.strip().lower()
