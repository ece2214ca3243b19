from asyncio import create_task, wait
from typing import Any, Mapping, Optional

from pynvim_pp.lib import decode, encode
from pynvim_pp.logging import log
from std2.asyncio import cancel

from ..lang import LANG
from ..lsp.offsets import to_buffer_offset
from ..lsp.parse import edit_range, insert_text, load_stored, parse_raw
from ..lsp.protocol import is_snippet
from ..lsp.snippet import ParseError, render_plain
from ..lsp.types import CompletionItem, Range, UserData
from ..shared.settings import ConfirmBehavior, Settings
from ..shared.timeit import timeit
from ..shared.types import LineContext
from .edit import plan, rows_needed
from .host import Editor, LSPHost, SnippetEngine


async def resolve_item(
    lsp: LSPHost, user_data: UserData, raw: Mapping[str, Any], timeout: float
) -> Mapping[str, Any]:
    """
    Resolved fields overlay `raw`, any failure falls back to `raw`
    """

    with timeit(f"RESOLVE :: {user_data.clientId}"):
        task = create_task(lsp.resolve(user_data.clientId, raw))
        done, not_done = await wait((task,), timeout=timeout)
        await cancel(*not_done)

    if not done:
        log.debug("%s", f"RESOLVE TIMEOUT -- {user_data.clientId}")
        return raw
    else:
        try:
            resolved = done.pop().result()
        except Exception as e:
            log.warn("%s", e)
            return raw
        else:
            return {**raw, **resolved} if isinstance(resolved, Mapping) else raw


def _guard(live: LineContext, word: str, user_data: UserData) -> bool:
    inserted = decode(encode(live.line)[user_data.suggestCharacter : live.col])
    return inserted == word


def _primary_range(settings: Settings, item: CompletionItem) -> Optional[Range]:
    if not item.textEdit:
        return None
    else:
        replace = settings.confirm_behavior is ConfirmBehavior.replace
        return edit_range(item.textEdit, replace=replace)


def _is_replace(user_data: UserData, edit: Optional[Range]) -> bool:
    if not edit:
        return False
    else:
        begin = to_buffer_offset(
            edit.start.character, user_data.lineOnRequest, user_data.offsetEncoding
        )
        end = to_buffer_offset(
            edit.end.character, user_data.lineOnRequest, user_data.offsetEncoding
        )
        return (
            begin < user_data.suggestCharacter
            or end > user_data.requestCharacter
            or edit.end.line != edit.start.line
        )


async def _expand(editor: Editor, engine: SnippetEngine, body: str) -> None:
    try:
        if isinstance(engine, str):
            await editor.expand_snippet(engine, body)
        else:
            await engine(body)
    except Exception as e:
        log.exception("%s", e)
        await editor.print_error(LANG("snippet engine failed", error=str(e)))


async def confirm(
    lsp: LSPHost,
    editor: Editor,
    settings: Settings,
    snippet_engine: Optional[SnippetEngine],
    word: str,
    user_data: UserData,
) -> bool:
    live = await editor.current_line()
    if not _guard(live, word=word, user_data=user_data):
        log.debug("%s", f"CONFIRM STALE -- {word}")
        return False

    raw = load_stored(user_data)
    if raw is None:
        return False

    if user_data.resolvable and settings.enable_resolve_item:
        raw = await resolve_item(
            lsp,
            user_data=user_data,
            raw=raw,
            timeout=settings.limits.resolve_timeout,
        )

    item = parse_raw(raw)
    if not item:
        return False

    new_text = insert_text(item)
    snippet = is_snippet(item.insertTextFormat)
    primary = _primary_range(settings, item=item)
    secondary = (
        item.additionalTextEdits or ()
        if settings.enable_additional_text_edit
        else ()
    )

    if not (new_text != word or secondary or _is_replace(user_data, edit=primary)):
        return False

    if snippet and not snippet_engine:
        await editor.print_error(LANG("snippet engine missing"))
        try:
            new_text = render_plain(new_text)
        except ParseError as e:
            log.info("%s", e)
        snippet = False

    if rows := rows_needed(live, edits=secondary):
        fetched = await editor.get_lines(rows.start, rows.stop)
        lines = {row: line for row, line in zip(rows, fetched)}
    else:
        lines = {}

    edits = plan(
        live,
        user_data=user_data,
        lines=lines,
        edit=primary,
        new_text=new_text,
        snippet=snippet,
        secondary=secondary,
    )

    await editor.undo_break()
    await editor.apply(edits.instructions)
    row, col = edits.cursor
    await editor.set_cursor(row, col)

    if snippet and snippet_engine:
        await _expand(editor, engine=snippet_engine, body=new_text)

    await editor.skip_next_complete()
    return True
