"""
Reference index port.

Maps a content element to the pages that display it, including indirect
embeddings (references from other elements, mount points, shortcuts).
"""

from __future__ import annotations

from typing import Protocol

from temporal_cache.core.entities import CONTENT_TABLE


class ReferenceIndexPort(Protocol):
    """Lookup of pages embedding a content element."""

    def find_pages_embedding(
        self, content_id: int, language_id: int = 0, table_name: str = CONTENT_TABLE
    ) -> set[int]:
        """
        Pages that render the given record of ``table_name``.

        May raise or return an empty set; callers treat both as
        "no information available".
        """
        ...
