"""
In-memory cache module for the Starling editor client.

Contains the NodeCacheStore class, which holds the last node list and root path
fetched from the Starling server.
"""

import asyncio
import time
from typing import Callable

import structlog
from pydantic import TypeAdapter, ValidationError

from .gateway import Gateway
from .models import FailureKind, GatewayResult, Node, Severity

logger = structlog.get_logger(__name__)

Notifier = Callable[[str, Severity], None]

_NODE_LIST = TypeAdapter(list[Node])


def log_notifier(message: str, severity: Severity) -> None:
    """Fallback notifier used when no editor is attached."""
    logger.warning("starling_notification", message=message, severity=severity.name)


class NodeCacheStore:
    """In-memory cache of the server's node list and root path.

    ``nodes`` and ``root_path`` are None until their first successful fetch.
    Each field is only ever replaced wholesale by a successful response, so a
    failed refresh leaves the previous snapshot in place. The two fields are
    fetched independently and may briefly disagree.
    """

    def __init__(
        self,
        gateway: Gateway,
        debounce: float = 5.0,
        conn_format: str = "markdown",
        notify: Notifier = log_notifier,
        clock: Callable[[], float] = time.time,
    ):
        self.gateway = gateway
        self.debounce = debounce
        self.conn_format = conn_format
        self.notify = notify
        self.clock = clock
        self.nodes: list[Node] | None = None
        self.fetched_at: float | None = None
        self.root_path: str | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def is_populated(self) -> bool:
        return self.nodes is not None

    @property
    def is_fresh(self) -> bool:
        return self.fetched_at is not None and self.clock() - self.fetched_at < self.debounce

    async def refresh(self, force: bool = False) -> None:
        """Fetch the node list and root path if the cache is due for it.

        Args:
            force: If True, skips the debounce check.
        """
        if not force and self.is_fresh:
            return

        await asyncio.gather(self._refresh_nodes(), self._refresh_root())

    def schedule_refresh(self, force: bool = False) -> asyncio.Task | None:
        """Start a refresh in the background on the running loop.

        Returns:
            The refresh task, or None if the debounce makes it unnecessary
        """
        if not force and self.is_fresh:
            return None

        task = asyncio.get_running_loop().create_task(self.refresh(force=force))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _refresh_nodes(self) -> None:
        result = await self.gateway.request("GET", "/nodes", {"conn_format": self.conn_format})
        if not result.ok:
            self._report(result)
            return

        try:
            nodes = _NODE_LIST.validate_python(result.data)
        except ValidationError as e:
            self._report(GatewayResult.failure(
                FailureKind.PARSE_FAILURE,
                f"Error parsing Starling response: {e.error_count()} invalid node field(s)",
                Severity.ERROR,
            ))
            return

        self.nodes = nodes
        self.fetched_at = self.clock()
        logger.info("cache_refreshed", node_count=len(nodes))

    async def _refresh_root(self) -> None:
        # Refetched every time so a moved Starling directory is picked up live
        result = await self.gateway.request("GET", "/info/root", {})
        if not result.ok:
            self._report(result)
            return

        if not isinstance(result.data, str):
            self._report(GatewayResult.failure(
                FailureKind.PARSE_FAILURE,
                f"Error parsing Starling response: root path is {type(result.data).__name__}, not a string",
                Severity.ERROR,
            ))
            return

        self.root_path = result.data
        logger.debug("root_path_refreshed", root_path=self.root_path)

    def _report(self, result: GatewayResult) -> None:
        self.notify(result.error, result.severity)
