"""
Neovim remote plugin for the Starling editor client.

Registers the autocommands, the StarlingOpenLink command, the ``gf`` override
and an nvim-cmp source that calls the StarlingComplete bridge. Install by
putting rplugin/python3/starling.py on the runtimepath and running
:UpdateRemotePlugins.
"""

import asyncio

import pynvim
import structlog

from .client import StarlingClient
from .config import settings
from .links import OPEN_LINK_COMMAND
from .logging import configure_logging
from .models import Position, Severity

logger = structlog.get_logger(__name__)

NOTE_PATTERN = ",".join(settings.note_patterns)
BUF_EVAL = '[str2nr(expand("<abuf>")), expand("<afile>:p")]'
TYPING_EVAL = '[expand("<afile>:p"), getline("."), col(".") - 1]'

COMPLETE_LUA = "require('cmp').complete({ config = { sources = { { name = ... } } } })"
NOTIFY_LUA = "vim.notify(...)"

# nvim-cmp source over StarlingComplete. "Not ready" answers an empty incomplete
# list so cmp asks again on the next keystroke.
REGISTER_SOURCE_LUA = """
local name = ...
local ok, cmp = pcall(require, 'cmp')
if not ok then
  return false
end
local source = {}
function source:complete(params, callback)
  local cursor = params.context.cursor
  local result = vim.fn.StarlingComplete(cursor.line, cursor.character)
  if result == false then
    callback({ items = {}, isIncomplete = true })
  else
    callback(result)
  end
end
cmp.register_source(name, source)
return true
"""

# vim.keymap.set translates <cmd>...<CR> in the returned keys (replace_keycodes)
GF_MAP_LUA = """
vim.keymap.set('n', 'gf', function()
  return vim.fn.StarlingGfPassthrough()
end, { expr = true, buffer = true, silent = true })
"""


def char_col(line: str, byte_col: int) -> int:
    """Convert Neovim's byte-based cursor column to a str index."""
    return len(line.encode("utf-8")[:byte_col].decode("utf-8", errors="ignore"))


class NvimEditor:
    """Editor implementation over a pynvim session.

    Side effects go through ``async_call`` since they may be issued from loop
    callbacks rather than plugin handlers. The focused buffer is tracked from
    BufEnter so timer ticks don't need a round trip.
    """

    def __init__(self, nvim: pynvim.Nvim):
        self.nvim = nvim
        self.focused: int | None = None

    def current_buffer(self) -> int | None:
        return self.focused

    def notify(self, message: str, severity: Severity) -> None:
        self.nvim.async_call(self.nvim.exec_lua, NOTIFY_LUA, message, int(severity))

    def echo(self, message: str) -> None:
        self.nvim.async_call(self.nvim.out_write, message + "\n")

    def open_file(self, path: str) -> None:
        self.nvim.async_call(self._edit, path)

    def check_time(self) -> None:
        self.nvim.async_call(self.nvim.command, "checktime")

    def trigger_completion(self, source: str) -> None:
        self.nvim.async_call(self.nvim.exec_lua, COMPLETE_LUA, source)

    def _edit(self, path: str) -> None:
        self.nvim.command("edit " + self.nvim.funcs.fnameescape(path))


@pynvim.plugin
class StarlingPlugin:
    def __init__(self, nvim: pynvim.Nvim):
        configure_logging(settings.log_level)
        self.nvim = nvim
        self.editor = NvimEditor(nvim)
        self.client = StarlingClient(self.editor, settings)
        self._tasks: set[asyncio.Future] = set()
        self._source_registered = False
        logger.info("starling_plugin_started", base_url=settings.base_url)

    # ============== Autocommands ==============

    @pynvim.autocmd("BufEnter", pattern="*", eval='str2nr(expand("<abuf>"))')
    def on_any_buf_enter(self, buf):
        self.editor.focused = buf

    @pynvim.autocmd("BufEnter", pattern=NOTE_PATTERN, eval=BUF_EVAL)
    def on_buf_enter(self, args):
        buf, name = args
        self.editor.focused = buf
        self.client.on_buf_enter(buf, name)
        self._register_source()
        self.nvim.exec_lua(GF_MAP_LUA)

    @pynvim.autocmd("BufLeave", pattern=NOTE_PATTERN, eval=BUF_EVAL)
    def on_buf_leave(self, args):
        buf, name = args
        self.client.on_buf_leave(buf, name)

    @pynvim.autocmd("InsertEnter", pattern=NOTE_PATTERN, eval='expand("<afile>:p")')
    def on_insert_enter(self, name):
        self.client.on_insert_enter(name)

    @pynvim.autocmd("InsertLeave", pattern=NOTE_PATTERN, eval='expand("<afile>:p")')
    def on_insert_leave(self, name):
        self.client.on_insert_leave(name)

    @pynvim.autocmd("CursorMovedI", pattern=NOTE_PATTERN, eval=TYPING_EVAL)
    def on_cursor_moved(self, args):
        self._typing(args)

    @pynvim.autocmd("TextChangedI", pattern=NOTE_PATTERN, eval=TYPING_EVAL)
    def on_text_changed(self, args):
        self._typing(args)

    @pynvim.autocmd("BufWritePost", pattern=NOTE_PATTERN, eval='expand("<afile>:p")')
    def on_buf_write(self, name):
        self.client.on_buf_write(name)

    @pynvim.autocmd("VimLeavePre", pattern="*")
    def on_vim_leave(self, *args):
        self._spawn(self.client.aclose())

    # ============== Commands and functions ==============

    @pynvim.command(OPEN_LINK_COMMAND, nargs="*")
    def open_link(self, args):
        line, col = self._cursor()
        self._spawn(self.client.open_link(line, col))

    @pynvim.function("StarlingGfPassthrough", sync=True)
    def gf_passthrough(self, args):
        line, col = self._cursor()
        return self.client.passthrough_key(line, col)

    @pynvim.function("StarlingComplete", sync=True)
    def complete(self, args):
        """Completion bridge: StarlingComplete(line, character), both 0-based."""
        line, character = args
        items = self.client.complete(Position(line=line, character=character))
        if items is None:
            return False
        return {"items": [item.to_lsp() for item in items]}

    def _register_source(self) -> None:
        # Once per session, from the first note buffer
        if self._source_registered:
            return
        source = self.client.completion.source_name
        if self.nvim.exec_lua(REGISTER_SOURCE_LUA, source):
            logger.info("completion_source_registered", source=source)
        else:
            logger.warning("completion_source_unavailable", source=source, reason="nvim-cmp not found")
        self._source_registered = True

    def _typing(self, args) -> None:
        name, line, byte_col = args
        self.client.on_text_changed(name, line, char_col(line, byte_col))

    def _cursor(self) -> tuple[str, int]:
        line = self.nvim.current.line
        _, byte_col = self.nvim.current.window.cursor
        return line, char_col(line, byte_col)

    def _spawn(self, coro) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
