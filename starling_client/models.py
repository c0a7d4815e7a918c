"""
Pydantic models for the Starling editor client.

Contains data models for server nodes, gateway results, and completion items.
"""

from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Severity(IntEnum):
    """Notification severity, numbered like Neovim's vim.log.levels."""

    DEBUG = 1
    INFO = 2
    WARNING = 3
    ERROR = 4


class FailureKind(str, Enum):
    """Why a gateway request failed."""

    UNREACHABLE = "unreachable"
    TRANSPORT_FAILURE = "transport_failure"
    PARSE_FAILURE = "parse_failure"
    SPAWN_FAILURE = "spawn_failure"
    EMPTY_RESPONSE = "empty_response"


class Node(BaseModel):
    """Model for a node as listed by the server."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: list[str]
    path: str

    @property
    def label(self) -> str:
        return "/".join(self.title)


class NodeDetail(BaseModel):
    """Model for a single node lookup. Only the path is used."""

    path: str


class GatewayResult(BaseModel):
    """Model for the outcome of one gateway request.

    Exactly one of ``data`` (when ``ok``) or ``kind``/``error``/``severity``
    (when not ``ok``) is meaningful.
    """

    ok: bool
    data: Any = None
    kind: FailureKind | None = None
    error: str = ""
    severity: Severity = Severity.INFO

    @classmethod
    def success(cls, data: Any) -> "GatewayResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, kind: FailureKind, error: str, severity: Severity) -> "GatewayResult":
        return cls(ok=False, kind=kind, error=error, severity=severity)


class Position(BaseModel):
    """Zero-based line/character position in a buffer."""

    line: int
    character: int


class Range(BaseModel):
    start: Position
    end: Position


class TextEdit(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    range: Range
    new_text: str = Field(alias="newText")


class CompletionItem(BaseModel):
    """Model for one completion candidate."""

    model_config = ConfigDict(populate_by_name=True)

    label: str
    documentation: str
    text_edit: TextEdit = Field(alias="textEdit")

    def to_lsp(self) -> dict[str, Any]:
        """Dump in the LSP shape completion engines consume."""
        return self.model_dump(by_alias=True)
