from dataclasses import asdict, dataclass
from json import JSONDecodeError, dumps, loads
from typing import Any, Mapping, MutableMapping, Optional, Sequence, Union

from pynvim_pp.lib import decode, encode
from pynvim_pp.logging import log
from std2.pickle.decoder import _new_parser, new_decoder
from std2.pickle.types import DecodeError

from ..shared.types import Encoding
from .offsets import to_buffer_offset
from .protocol import PROTOCOL, is_snippet
from .snippet import ParseError, render_plain
from .types import (
    CompletionItem,
    CompletionResponse,
    InsertReplaceEdit,
    ItemDefaults,
    LSPcomp,
    NormalizedItem,
    Range,
    TextEdit,
    UserData,
)


@dataclass(frozen=True)
class RequestContext:
    """
    Buffer snapshot shared by every item of one gather cycle
    """

    client: int
    encoding: Encoding
    resolvable: bool
    row: int
    line: str
    suggest_character: int
    request_character: int
    snippet_indicator: str


def _falsy(thing: Any) -> bool:
    return thing is None or thing is False or thing == 0 or thing == "" or thing == b""


_defaults_parser = new_decoder[Optional[ItemDefaults]](
    Optional[ItemDefaults], strict=False, decoders=()
)
_item_parser = _new_parser(CompletionItem, path=(), strict=False, decoders=())


def split_lines(text: str) -> Sequence[str]:
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def insert_text(item: CompletionItem) -> str:
    if item.textEdit:
        return item.textEdit.newText
    elif item.insertText is not None:
        return item.insertText
    else:
        return item.label


def edit_range(
    edit: Union[TextEdit, InsertReplaceEdit], replace: bool = False
) -> Range:
    if isinstance(edit, TextEdit):
        return edit.range
    else:
        return edit.replace if replace else edit.insert


def _with_defaults(defaults: ItemDefaults, item: Any) -> Any:
    if not isinstance(item, Mapping):
        return item
    else:
        merged: MutableMapping[str, Any] = {**item}
        if defaults.insertTextFormat is not None:
            merged.setdefault("insertTextFormat", defaults.insertTextFormat)
        if defaults.insertTextMode is not None:
            merged.setdefault("insertTextMode", defaults.insertTextMode)
        if defaults.commitCharacters is not None:
            merged.setdefault("commitCharacters", [*defaults.commitCharacters])
        if defaults.data is not None:
            merged.setdefault("data", defaults.data)

        if isinstance(text := merged.get("insertText") or merged.get("label"), str) and (
            ra := defaults.editRange
        ):
            if isinstance(ra, Range):
                merged.setdefault("textEdit", {"newText": text, "range": asdict(ra)})
            else:
                merged.setdefault("textEdit", {"newText": text, **asdict(ra)})

        return merged


def _word(context: RequestContext, item: CompletionItem) -> Optional[str]:
    text = insert_text(item)
    if is_snippet(item.insertTextFormat):
        try:
            text = render_plain(text)
        except ParseError as e:
            log.info("%s", e)

    if item.textEdit:
        start = edit_range(item.textEdit).start
        if start.line != context.row:
            return None

        b_line = encode(context.line)
        begin = to_buffer_offset(start.character, context.line, context.encoding)
        if begin > context.request_character:
            return None
        elif begin < context.suggest_character:
            # <div -> div
            typed = decode(b_line[begin : context.suggest_character])
            if text.startswith(typed):
                text = text[len(typed) :]
        elif begin > context.suggest_character:
            text = decode(b_line[context.suggest_character : begin]) + text

    word, *_ = split_lines(text)
    return word


def parse_item(
    context: RequestContext, defaults: ItemDefaults, item: Any
) -> Optional[NormalizedItem]:
    if not item:
        return None
    else:
        merged = _with_defaults(defaults, item=item)
        go, parsed = _item_parser(merged)
        if not go:
            log.warn("%s", parsed)
            return None
        else:
            assert isinstance(parsed, CompletionItem)
            word = _word(context, item=parsed)
            if not word:
                return None
            else:
                label = (
                    parsed.label + (label_detail.detail or "")
                    if (label_detail := parsed.labelDetails)
                    else parsed.label
                )
                abbr = (
                    label + context.snippet_indicator
                    if is_snippet(parsed.insertTextFormat)
                    else label
                )
                menu = (
                    (label_detail.description or "")
                    if (label_detail := parsed.labelDetails)
                    else ""
                )
                user_data = UserData(
                    lspitem=dumps(merged, check_circular=False, ensure_ascii=False),
                    clientId=context.client,
                    offsetEncoding=context.encoding,
                    resolvable=context.resolvable,
                    lineOnRequest=context.line,
                    requestCharacter=context.request_character,
                    suggestCharacter=context.suggest_character,
                )
                return NormalizedItem(
                    word=word,
                    abbr=abbr,
                    kind=PROTOCOL.CompletionItemKind.get(parsed.kind, "Unknown"),
                    menu=menu,
                    user_data=user_data,
                )


def _items(
    context: RequestContext, defaults: ItemDefaults, items: Sequence[Any]
) -> Sequence[NormalizedItem]:
    return tuple(
        comp
        for item in items
        if (comp := parse_item(context, defaults=defaults, item=item))
    )


def parse(context: RequestContext, resp: CompletionResponse) -> LSPcomp:
    if _falsy(resp):
        return LSPcomp(client=context.client, is_incomplete=False, items=())

    elif isinstance(resp, Mapping):
        is_incomplete = not _falsy(resp.get("isIncomplete"))

        if not isinstance((items := resp.get("items")), Sequence):
            log.warn("%s", f"Unknown LSP resp -- {type(items)}")
            return LSPcomp(client=context.client, is_incomplete=is_incomplete, items=())

        else:
            try:
                defaults = _defaults_parser(resp.get("itemDefaults"))
            except DecodeError as e:
                log.warn("%s", e)
                defaults = None
            comps = _items(context, defaults=defaults or ItemDefaults(), items=items)
            return LSPcomp(client=context.client, is_incomplete=is_incomplete, items=comps)

    elif isinstance(resp, Sequence) and not isinstance(resp, str):
        comps = _items(context, defaults=ItemDefaults(), items=resp)
        return LSPcomp(client=context.client, is_incomplete=False, items=comps)

    else:
        log.warn("%s", f"Unknown LSP resp -- {type(resp)}")
        return LSPcomp(client=context.client, is_incomplete=False, items=())


def load_stored(user_data: UserData) -> Optional[Mapping[str, Any]]:
    """
    Replays the payload kept in `user_data.lspitem`
    """

    try:
        raw = loads(user_data.lspitem)
    except JSONDecodeError as e:
        log.warn("%s", e)
        return None
    else:
        return raw if isinstance(raw, Mapping) else None


def parse_raw(raw: Any) -> Optional[CompletionItem]:
    if not isinstance(raw, Mapping):
        return None
    else:
        go, parsed = _item_parser(raw)
        if not go:
            log.warn("%s", parsed)
            return None
        else:
            assert isinstance(parsed, CompletionItem)
            return parsed
