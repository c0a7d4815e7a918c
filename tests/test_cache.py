"""
Tests for the node cache and its refresh debounce.
"""

import asyncio

import httpx
import pytest

from starling_client.cache import NodeCacheStore
from starling_client.models import Node, Severity


def make_cache(gateway, editor, clock, debounce=5.0) -> NodeCacheStore:
    return NodeCacheStore(gateway, debounce=debounce, notify=editor.notify, clock=clock)


class TestNodeCacheInitial:
    """Tests for a cache that has never been refreshed."""

    async def test_starts_empty(self, gateway, editor, clock):
        """Test every field starts absent."""
        cache = make_cache(gateway, editor, clock)

        assert cache.nodes is None
        assert cache.root_path is None
        assert cache.fetched_at is None
        assert cache.is_populated is False
        assert cache.is_fresh is False


class TestNodeCacheRefresh:
    """Tests for NodeCacheStore.refresh."""

    async def test_refresh_populates(self, gateway, editor, clock):
        """Test a refresh fills nodes and root path."""
        cache = make_cache(gateway, editor, clock)

        await cache.refresh()

        assert cache.is_populated is True
        assert cache.root_path == "/home/user/notes"
        assert cache.fetched_at == clock.now
        assert editor.notifications == []

    async def test_nodes_keep_server_order(self, gateway, editor, clock, sample_nodes):
        """Test nodes are stored in response order."""
        cache = make_cache(gateway, editor, clock)

        await cache.refresh()

        assert [n.id for n in cache.nodes] == [n["id"] for n in sample_nodes]
        assert cache.nodes[0] == Node(id="abc-123", title=["Projects", "Starling"], path="notes/starling.md")

    async def test_sends_conn_format(self, gateway, editor, clock, server):
        """Test the node list is requested in markdown format."""
        cache = make_cache(gateway, editor, clock)

        await cache.refresh()

        nodes_request = next(r for r in server.requests if r.url.path == "/nodes")
        assert nodes_request.method == "GET"
        assert nodes_request.content == b'{"conn_format": "markdown"}'

    async def test_debounce_skips_second_refresh(self, gateway, editor, clock, server):
        """Test two refreshes within the debounce window make one pair of requests."""
        cache = make_cache(gateway, editor, clock)

        await cache.refresh()
        clock.advance(4.9)
        await cache.refresh()

        assert server.calls("/nodes") == 1
        assert server.calls("/info/root") == 1

    async def test_refresh_after_debounce_window(self, gateway, editor, clock, server):
        """Test a refresh goes out once the window has passed."""
        cache = make_cache(gateway, editor, clock)

        await cache.refresh()
        clock.advance(5)
        await cache.refresh()

        assert server.calls("/nodes") == 2
        assert server.calls("/info/root") == 2

    async def test_force_ignores_debounce(self, gateway, editor, clock, server):
        """Test a forced refresh always makes requests."""
        cache = make_cache(gateway, editor, clock)

        await cache.refresh()
        await cache.refresh(force=True)
        await cache.refresh(force=True)

        assert server.calls("/nodes") == 3
        assert server.calls("/info/root") == 3

    async def test_nodes_failure_keeps_snapshot_root_updates(self, gateway, editor, clock, server):
        """Test a failed /nodes leaves nodes alone while /info/root still applies."""
        cache = make_cache(gateway, editor, clock)
        await cache.refresh()
        before = cache.nodes
        fetched_at = cache.fetched_at

        server.routes["/nodes"] = lambda request: httpx.Response(500)
        server.routes["/info/root"] = "/srv/moved-notes"
        clock.advance(10)
        await cache.refresh()

        assert cache.nodes is before
        assert cache.fetched_at == fetched_at
        assert cache.root_path == "/srv/moved-notes"
        assert len(editor.notifications) == 1
        assert editor.notifications[0][1] == Severity.WARNING

    async def test_root_failure_keeps_root_nodes_update(self, gateway, editor, clock, server):
        """Test a failed /info/root doesn't block the node list."""
        cache = make_cache(gateway, editor, clock)
        server.routes["/info/root"] = httpx.ConnectError("refused")

        await cache.refresh()

        assert cache.is_populated is True
        assert cache.root_path is None
        assert editor.notifications == [
            ("Failed to make Starling request, server not running", Severity.WARNING),
        ]

    async def test_failed_refresh_is_retried(self, gateway, editor, clock, server, sample_nodes):
        """Test a failed fetch doesn't start the debounce window."""
        cache = make_cache(gateway, editor, clock)
        server.routes["/nodes"] = httpx.ConnectError("refused")
        await cache.refresh()

        server.routes["/nodes"] = sample_nodes
        await cache.refresh()

        assert server.calls("/nodes") == 2
        assert cache.is_populated is True

    async def test_server_down_notifies_twice(self, gateway, editor, clock, server):
        """Test each of the two requests reports its own failure."""
        cache = make_cache(gateway, editor, clock)
        server.routes["/nodes"] = httpx.ConnectError("refused")
        server.routes["/info/root"] = httpx.ConnectError("refused")

        await cache.refresh()

        assert len(editor.notifications) == 2
        assert cache.nodes is None

    async def test_invalid_node_payload(self, gateway, editor, clock, server):
        """Test nodes that don't match the schema are a parse error and change nothing."""
        cache = make_cache(gateway, editor, clock)
        await cache.refresh()
        before = cache.nodes

        server.routes["/nodes"] = [{"id": "abc-123", "path": "no-title.md"}]
        await cache.refresh(force=True)

        assert cache.nodes is before
        message, severity = editor.notifications[-1]
        assert severity == Severity.ERROR
        assert message.startswith("Error parsing Starling response")

    @pytest.mark.parametrize("body", [b"null", b'{"root": "/srv/notes"}', b"42"])
    async def test_non_string_root_is_parse_error(self, gateway, editor, clock, server, body):
        """Test a root that isn't a JSON string keeps the previous root."""
        cache = make_cache(gateway, editor, clock)
        await cache.refresh()

        server.routes["/info/root"] = httpx.Response(200, content=body)
        await cache.refresh(force=True)

        assert cache.root_path == "/home/user/notes"
        message, severity = editor.notifications[-1]
        assert severity == Severity.ERROR
        assert message.startswith("Error parsing Starling response")

    async def test_empty_node_list_is_populated(self, gateway, editor, clock, server):
        """Test an empty list is a real snapshot, unlike a never-fetched cache."""
        cache = make_cache(gateway, editor, clock)
        server.routes["/nodes"] = []

        await cache.refresh()

        assert cache.nodes == []
        assert cache.is_populated is True


class TestScheduleRefresh:
    """Tests for background refreshes."""

    async def test_schedules_task(self, gateway, editor, clock, server):
        """Test schedule_refresh runs a refresh in the background."""
        cache = make_cache(gateway, editor, clock)

        task = cache.schedule_refresh()
        assert task is not None
        await task

        assert cache.is_populated is True

    async def test_skips_when_fresh(self, gateway, editor, clock, server):
        """Test no task is created inside the debounce window."""
        cache = make_cache(gateway, editor, clock)
        await cache.refresh()

        assert cache.schedule_refresh() is None
        assert server.calls("/nodes") == 1

    async def test_forced_schedule_when_fresh(self, gateway, editor, clock, server):
        """Test forcing schedules even inside the window."""
        cache = make_cache(gateway, editor, clock)
        await cache.refresh()

        await cache.schedule_refresh(force=True)

        assert server.calls("/nodes") == 2

    async def test_overlapping_refreshes_last_response_wins(self, gateway, editor, clock, server, sample_nodes):
        """Test two in-flight refreshes both complete without cancelling each other."""
        cache = make_cache(gateway, editor, clock)

        first = cache.schedule_refresh()
        second = cache.schedule_refresh()
        await asyncio.gather(first, second)

        assert server.calls("/nodes") == 2
        assert len(cache.nodes) == len(sample_nodes)
