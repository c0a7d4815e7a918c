"""
Editor-facing client for the Starling server.

Contains StarlingClient, which owns the gateway, node cache, completion, link
and autoreload components and routes editor events to them.
"""

import structlog

from .autoreload import AutoreloadScheduler
from .brackets import CompletionTrigger
from .cache import NodeCacheStore
from .completion import CompletionProvider
from .config import Settings, settings as default_settings
from .editor import Editor
from .gateway import Gateway
from .links import LinkResolver
from .models import CompletionItem, Position

logger = structlog.get_logger(__name__)


class StarlingClient:
    """Everything one editor session needs to talk to Starling.

    Event handlers are synchronous and never raise into the editor; network
    work is started as tasks on the running loop.
    """

    def __init__(self, editor: Editor, config: Settings | None = None, gateway: Gateway | None = None):
        self.editor = editor
        self.settings = config or default_settings
        self.gateway = gateway or Gateway(
            self.settings.base_url,
            connect_timeout=self.settings.connect_timeout,
            request_timeout=self.settings.request_timeout,
        )
        self.cache = NodeCacheStore(
            self.gateway,
            debounce=self.settings.refresh_debounce,
            conn_format=self.settings.conn_format,
            notify=editor.notify,
        )
        self.trigger = CompletionTrigger(self._open_completion)
        self.completion = CompletionProvider(self.cache, source_name=self.settings.source_name)
        self.links = LinkResolver(
            self.gateway,
            self.cache,
            open_file=editor.open_file,
            echo=editor.echo,
            notify=editor.notify,
            conn_format=self.settings.conn_format,
        )
        self.autoreload = AutoreloadScheduler(
            editor.current_buffer,
            editor.check_time,
            interval=self.settings.reload_interval,
        )

    # ============== Editor events ==============

    def on_buf_enter(self, buf: int, name: str) -> None:
        if self.settings.is_note_file(name):
            self.cache.schedule_refresh()
        if self.settings.is_autoreload_file(name):
            self.autoreload.start(buf)

    def on_buf_leave(self, buf: int, name: str) -> None:
        self.autoreload.stop(buf)
        self.trigger.reset()

    def on_insert_enter(self, name: str) -> None:
        if self.settings.is_note_file(name):
            self.cache.schedule_refresh()

    def on_insert_leave(self, name: str) -> None:
        if self.settings.is_note_file(name):
            self.cache.schedule_refresh()

    def on_text_changed(self, name: str, line: str, col: int) -> bool:
        """Handle a cursor move or text change in insert mode.

        Returns:
            True if completion was opened
        """
        if not self.settings.is_note_file(name):
            return False
        return self.trigger.update(line, col)

    def on_buf_write(self, name: str) -> None:
        if self.settings.is_note_file(name):
            self.autoreload.recheck_after_write(self.settings.write_recheck_delay)

    # ============== Commands ==============

    def complete(self, cursor: Position) -> list[CompletionItem] | None:
        return self.completion.complete(cursor)

    async def open_link(self, line: str, col: int) -> str | None:
        return await self.links.open_link(line, col)

    def passthrough_key(self, line: str, col: int) -> str:
        return self.links.passthrough_key(line, col)

    async def aclose(self) -> None:
        self.autoreload.stop_all()
        await self.gateway.aclose()
        logger.debug("client_closed")

    def _open_completion(self) -> None:
        self.editor.trigger_completion(self.completion.source_name)
