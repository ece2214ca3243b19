from typing import (
    Any,
    Awaitable,
    Callable,
    Iterable,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Union,
)

from ..shared.types import EditInstruction, LineContext, Provider

SnippetEngine = Union[str, Callable[[str], Awaitable[None]]]


class LSPHost(Protocol):
    """
    The language-server client, already connected
    """

    async def list_providers(self) -> Sequence[Provider]: ...

    async def request(self, client: int, context: Mapping[str, Any]) -> Any: ...

    async def resolve(self, client: int, item: Mapping[str, Any]) -> Optional[Any]: ...

    async def parse_snippet(self, text: str) -> str: ...


class Editor(Protocol):
    async def current_line(self) -> LineContext: ...

    async def get_lines(self, lo: int, hi: int) -> Sequence[str]: ...

    async def apply(self, instructions: Iterable[EditInstruction]) -> None: ...

    async def set_cursor(self, row: int, col: int) -> None: ...

    async def undo_break(self) -> None: ...

    async def filetype(self) -> str: ...

    async def print_error(self, msg: str) -> None: ...

    async def expand_snippet(self, engine: str, body: str) -> None: ...

    async def skip_next_complete(self) -> None: ...
