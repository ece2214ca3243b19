from dataclasses import dataclass
from typing import Any, Iterator, Literal, Mapping, Sequence, Union

from ..lsp.parse import insert_text, load_stored, parse_raw, split_lines
from ..lsp.protocol import SNIPPET_KIND
from ..lsp.types import MarkupContent, UserData
from .confirm import resolve_item
from .host import Editor, LSPHost

_FENCE = "```"
_SEP = "---"


@dataclass(frozen=True)
class Preview:
    kind: Literal["empty", "markdown"]
    contents: Sequence[str] = ()


def _fenced(filetype: str, text: str) -> Iterator[str]:
    yield _FENCE + filetype
    yield from split_lines(text)
    yield _FENCE


def _tsc_source(data: Any) -> str:
    if isinstance(data, Mapping):
        tsc = data.get("tsc")
        if isinstance(tsc, Mapping) and isinstance(source := tsc.get("source"), str):
            return source
    return ""


def _doc(doc: Union[str, MarkupContent]) -> Sequence[str]:
    if isinstance(doc, str):
        return split_lines(doc)
    elif doc.kind == "plaintext":
        return split_lines(f"<text>\n{doc.value}\n</text>")
    else:
        return split_lines(doc.value)


async def preview(
    lsp: LSPHost, editor: Editor, user_data: UserData, resolve_timeout: float
) -> Preview:
    raw = load_stored(user_data)
    if raw is None:
        return Preview(kind="empty")

    resolved = (
        await resolve_item(lsp, user_data=user_data, raw=raw, timeout=resolve_timeout)
        if user_data.resolvable
        else raw
    )
    item = parse_raw(resolved)
    if not item:
        return Preview(kind="empty")

    filetype = await editor.filetype()

    if item.kind == SNIPPET_KIND:
        body = await lsp.parse_snippet(insert_text(item))
        return Preview(kind="markdown", contents=tuple(_fenced(filetype, text=body)))

    contents = [*_fenced(filetype, text=item.detail)] if item.detail else []

    if source := _tsc_source(raw.get("data")):
        if contents:
            contents.append(_SEP)
        contents.append(f"import from `{source}`")

    doc = item.documentation
    if doc and (doc if isinstance(doc, str) else doc.value):
        if contents:
            contents.append(_SEP)
        contents.extend(_doc(doc))

    return Preview(kind="markdown", contents=tuple(contents))
