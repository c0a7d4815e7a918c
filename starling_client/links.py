"""
Link resolution for the Starling editor client.

Contains the Markdown link extractor and the LinkResolver, which opens the
file behind a Starling link.
"""

import re
from typing import Callable

import structlog
from pydantic import ValidationError

from .cache import NodeCacheStore, Notifier
from .gateway import Gateway
from .models import NodeDetail, Severity

logger = structlog.get_logger(__name__)

# [<title>](<scheme>:<uuid>), title non-greedy, scheme greedy up to the last colon
LINK_PATTERN = re.compile(r'\[.*?\]\(((.*):([a-zA-Z0-9-]+))\)')

OPEN_LINK_COMMAND = "StarlingOpenLink"
OPEN_LINK_KEYS = f"<cmd>{OPEN_LINK_COMMAND}<CR>"
FALLBACK_KEYS = "gf"
NOT_ON_LINK = "Not on Starling link"


def extract_link_id(line: str, col: int) -> str | None:
    """Extract the node id from the first Starling link in a line.

    Args:
        line: The full line text
        col: 0-based cursor column

    Returns:
        The uuid part of the link if the cursor is on it (or right after its
        closing paren), else None
    """
    match = LINK_PATTERN.search(line)
    if match and match.start() <= col <= match.end():
        return match.group(3)
    return None


class LinkResolver:
    """Opens the note a Starling link points to."""

    def __init__(
        self,
        gateway: Gateway,
        cache: NodeCacheStore,
        open_file: Callable[[str], None],
        echo: Callable[[str], None],
        notify: Notifier,
        conn_format: str = "markdown",
    ):
        self.gateway = gateway
        self.cache = cache
        self.open_file = open_file
        self.echo = echo
        self.notify = notify
        self.conn_format = conn_format

    async def open_link(self, line: str, col: int) -> str | None:
        """Open the file for the link under the cursor.

        Returns:
            The absolute path that was opened, or None
        """
        uuid = extract_link_id(line, col)
        if uuid is None:
            self.echo(NOT_ON_LINK)
            return None

        result = await self.gateway.request("GET", f"/node/{uuid}", {"conn_format": self.conn_format})
        if not result.ok:
            self.notify(result.error, result.severity)
            return None

        try:
            detail = NodeDetail.model_validate(result.data)
        except ValidationError:
            self.notify(f"Error parsing Starling response: node {uuid} has no path", Severity.ERROR)
            return None

        root = self.cache.root_path
        if root is None:
            self.notify("Starling root path is not known yet, try again shortly", Severity.WARNING)
            self.cache.schedule_refresh(force=True)
            return None

        path = f"{root}/{detail.path}"
        logger.info("link_opened", uuid=uuid, path=path)
        self.open_file(path)
        return path

    def passthrough_key(self, line: str, col: int) -> str:
        """Keys for a ``gf`` override: open the link if on one, else plain ``gf``."""
        if extract_link_id(line, col) is not None:
            return OPEN_LINK_KEYS
        return FALLBACK_KEYS
