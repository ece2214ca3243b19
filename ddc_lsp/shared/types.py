from dataclasses import dataclass
from typing import AbstractSet, Literal, Sequence, Tuple

UTF8: Literal["UTF-8"] = "UTF-8"
UTF16: Literal["UTF-16-LE"] = "UTF-16-LE"
UTF32: Literal["UTF-32-LE"] = "UTF-32-LE"
Encoding = Literal["UTF-8", "UTF-16-LE", "UTF-32-LE"]

# In nvim, the col is a ut8 byte offset
NvimCursor = int
NvimPos = Tuple[int, NvimCursor]

BYTE_TRANS = {
    UTF8: 1,
    UTF16: 2,
    UTF32: 4,
}


@dataclass(frozen=True)
class Provider:
    """
    One LSP client able to answer `textDocument/completion`
    """

    id: int
    encoding: Encoding
    resolvable: bool
    trigger_characters: AbstractSet[str] = frozenset()


@dataclass(frozen=True)
class LineContext:
    """
    |...        line_before           🐭          line_after        ...|
    """

    row: int
    col: NvimCursor
    line: str


@dataclass(frozen=True)
class EditInstruction:
    """
    End exclusive, positions are nvim positions
    """

    primary: bool
    begin: NvimPos
    end: NvimPos
    new_lines: Sequence[str]
