"""
Completion source for the Starling editor client.

Turns the cached node list into link completion items.
"""

import structlog

from .cache import NodeCacheStore
from .models import CompletionItem, Position, Range, TextEdit

logger = structlog.get_logger(__name__)


class CompletionProvider:
    """Completion source producing Markdown links to cached nodes."""

    def __init__(self, cache: NodeCacheStore, source_name: str = "starling"):
        self.cache = cache
        self.source_name = source_name

    def complete(self, cursor: Position) -> list[CompletionItem] | None:
        """Build completion items for a cursor sitting inside ``[]``.

        Each item replaces the bracket pair around the cursor with
        ``[<title>](<id>)``. Items keep the server's order; filtering is left
        to the completion menu.

        Returns:
            The items, or None if the cache has never been populated yet (a
            forced refresh is started so the next call can succeed)
        """
        nodes = self.cache.nodes
        if nodes is None:
            logger.debug("completion_cache_not_ready")
            self.cache.schedule_refresh(force=True)
            return None

        edit_range = Range(
            start=Position(line=cursor.line, character=cursor.character - 1),
            end=Position(line=cursor.line, character=cursor.character + 1),
        )
        return [
            CompletionItem(
                label=node.label,
                documentation=f"Path: {node.path}",
                text_edit=TextEdit(range=edit_range, new_text=f"[{node.label}]({node.id})"),
            )
            for node in nodes
        ]
