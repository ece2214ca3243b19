from dataclasses import dataclass
from itertools import chain
from typing import Iterable, Iterator, Mapping, MutableSequence, Optional, Sequence, Tuple

from pynvim_pp.lib import decode, encode
from pynvim_pp.logging import log

from ..lsp.offsets import to_buffer_offset
from ..lsp.parse import split_lines
from ..lsp.types import Position, Range, TextEdit, UserData
from ..shared.types import EditInstruction, LineContext, NvimPos


@dataclass(frozen=True)
class EditPlan:
    # bottom-most first
    instructions: Sequence[EditInstruction]
    cursor: NvimPos


def _advance(begin: NvimPos, text: str) -> NvimPos:
    row, col = begin
    lines = split_lines(text)
    if len(lines) > 1:
        return row + len(lines) - 1, len(encode(lines[-1]))
    else:
        return row, col + len(encode(lines[0]))


def _primary(
    live: LineContext,
    user_data: UserData,
    edit: Optional[Range],
    new_text: str,
    snippet: bool,
) -> Tuple[EditInstruction, NvimPos]:
    """
    By the time of confirmation, the typed span was already replaced with `word`

    |...<begin>...<suggest>  typed  <request>...<end>...|  on request
    |...<begin>...<suggest>  word  <cursor>  tail...|      live
    """

    req_line = encode(user_data.lineOnRequest)
    suggest, request = user_data.suggestCharacter, user_data.requestCharacter

    if edit:
        begin = to_buffer_offset(
            edit.start.character, user_data.lineOnRequest, user_data.offsetEncoding
        )
        end = (
            to_buffer_offset(
                edit.end.character, user_data.lineOnRequest, user_data.offsetEncoding
            )
            if edit.end.line == edit.start.line
            else request
        )
        begin, end = min(begin, end), max(begin, end)
    else:
        begin, end = suggest, request

    lo = min(begin, suggest)
    keep_before = decode(req_line[suggest:begin]) if begin > suggest else ""
    keep_after = decode(req_line[end:request])

    overhang = req_line[request:end] if end > request else b""
    if overhang and encode(live.line)[live.col :].startswith(overhang):
        hi = live.col + len(overhang)
    else:
        hi = live.col

    body = "" if snippet else new_text
    inst = EditInstruction(
        primary=True,
        begin=(live.row, lo),
        end=(live.row, hi),
        new_lines=split_lines(keep_before + body + keep_after),
    )
    cursor = _advance((live.row, lo), text=keep_before + body)
    return inst, cursor


def _secondary(
    live: LineContext,
    user_data: UserData,
    lines: Mapping[int, str],
    edit: TextEdit,
) -> Optional[EditInstruction]:
    encoding = user_data.offsetEncoding

    def pos(position: Position) -> Optional[NvimPos]:
        if position.line == live.row:
            col = to_buffer_offset(
                position.character, user_data.lineOnRequest, encoding
            )
            # past `suggest` the live line no longer matches the request line
            return (live.row, col) if col <= user_data.suggestCharacter else None
        elif (line := lines.get(position.line)) is not None:
            return position.line, to_buffer_offset(position.character, line, encoding)
        else:
            return None

    begin, end = pos(edit.range.start), pos(edit.range.end)
    if begin is None or end is None:
        log.info("%s", f"DROPPED EDIT -- {edit}")
        return None
    else:
        return EditInstruction(
            primary=False,
            begin=min(begin, end),
            end=max(begin, end),
            new_lines=split_lines(edit.newText),
        )


def rows_needed(live: LineContext, edits: Iterable[TextEdit]) -> Optional[range]:
    rows = tuple(
        row
        for edit in edits
        for row in (edit.range.start.line, edit.range.end.line)
        if row != live.row
    )
    return range(min(rows), max(rows) + 1) if rows else None


def _consolidate(
    instruction: EditInstruction, *instructions: EditInstruction
) -> Sequence[EditInstruction]:
    edits = sorted(chain((instruction,), instructions), key=lambda i: (i.begin, i.end))
    pivot = 0, 0
    stack: MutableSequence[EditInstruction] = []

    for edit in edits:
        if edit.begin >= pivot:
            stack.append(edit)
            pivot = edit.end

        elif edit.primary:
            while stack:
                conflicting = stack.pop()
                if conflicting.end <= edit.begin:
                    stack.append(conflicting)
                    break
            stack.append(edit)
            pivot = edit.end

        else:
            log.info("%s", f"OVERLAPPING EDIT -- {edit}")

    return stack


def _shift(pos: NvimPos, inst: EditInstruction) -> NvimPos:
    """
    Where `pos`, lying after `inst`, ends up once `inst` is applied
    """

    row, col = pos
    _, (r2, c2) = inst.begin, inst.end
    n_row, n_col = _advance(inst.begin, text="\n".join(inst.new_lines))

    if row == r2:
        return n_row, n_col + (col - c2)
    else:
        return row + (n_row - r2), col


def _preceding(
    instructions: Sequence[EditInstruction], primary: EditInstruction
) -> Iterator[EditInstruction]:
    for inst in reversed(instructions):
        if inst is not primary and inst.end <= primary.begin:
            yield inst


def plan(
    live: LineContext,
    user_data: UserData,
    lines: Mapping[int, str],
    edit: Optional[Range],
    new_text: str,
    snippet: bool,
    secondary: Sequence[TextEdit],
) -> EditPlan:
    primary, cursor = _primary(
        live, user_data=user_data, edit=edit, new_text=new_text, snippet=snippet
    )
    instructions = _consolidate(
        primary,
        *(
            inst
            for e in secondary
            if (inst := _secondary(live, user_data=user_data, lines=lines, edit=e))
        ),
    )

    for inst in _preceding(instructions, primary=primary):
        cursor = _shift(cursor, inst=inst)

    return EditPlan(instructions=tuple(reversed(instructions)), cursor=cursor)
