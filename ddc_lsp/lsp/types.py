from dataclasses import dataclass
from typing import Any, Literal, Optional, Sequence, TypedDict, Union

from ..shared.types import Encoding

# https://microsoft.github.io/language-server-protocol/specification


@dataclass(frozen=True)
class _CompletionItemLabelDetails:
    detail: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class Position:
    line: int
    character: int


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position


@dataclass(frozen=True)
class InsertReplaceRange:
    insert: Range
    replace: Range


@dataclass(frozen=True)
class _TextEdit:
    newText: str


@dataclass(frozen=True)
class TextEdit(_TextEdit):
    range: Range


@dataclass(frozen=True)
class InsertReplaceEdit(_TextEdit, InsertReplaceRange):
    ...


_CompletionItemKind = int
_InsertTextFormat = int
_InsertTextMode = int


@dataclass(frozen=True)
class MarkupContent:
    kind: Union[Literal["plaintext", "markdown"], str]
    value: str


@dataclass(frozen=True)
class CompletionItem:
    label: str
    labelDetails: Optional[_CompletionItemLabelDetails] = None

    kind: Optional[_CompletionItemKind] = None

    detail: Optional[str] = None
    documentation: Union[str, MarkupContent, None] = None

    insertText: Optional[str] = None
    insertTextFormat: Optional[_InsertTextFormat] = None
    insertTextMode: Optional[_InsertTextMode] = None

    textEdit: Union[TextEdit, InsertReplaceEdit, None] = None
    additionalTextEdits: Optional[Sequence[TextEdit]] = None

    commitCharacters: Optional[Sequence[str]] = None
    data: Optional[Any] = None


@dataclass(frozen=True)
class ItemDefaults:
    commitCharacters: Optional[Sequence[str]] = None
    editRange: Union[Range, InsertReplaceRange, None] = None
    insertTextFormat: Optional[_InsertTextFormat] = None
    insertTextMode: Optional[_InsertTextMode] = None
    data: Optional[Any] = None


class _CompletionList(TypedDict):
    isIncomplete: bool
    items: Sequence[Any]
    itemDefaults: Optional[Any]


CompletionResponse = Union[Literal[None, False, 0], Sequence[Any], _CompletionList]


@dataclass(frozen=True)
class UserData:
    """
    Replay state, round tripped through the completion engine

    lineOnRequest:    call getbuf
    requestCharacter: call getbuf|
    suggestCharacter: call |getbuf
    """

    lspitem: str
    clientId: int
    offsetEncoding: Encoding
    resolvable: bool
    lineOnRequest: str
    requestCharacter: int
    suggestCharacter: int


@dataclass(frozen=True)
class NormalizedItem:
    word: str
    abbr: str
    kind: str
    menu: str
    user_data: UserData


@dataclass(frozen=True)
class LSPcomp:
    client: int
    is_incomplete: bool
    items: Sequence[NormalizedItem]
