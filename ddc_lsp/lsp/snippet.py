from string import Template, ascii_letters, digits
from textwrap import dedent
from typing import AbstractSet, Iterable, Iterator, MutableSequence, NoReturn, Tuple

from std2.itertools import deiter

#
# Single pass renderer for LSP snippets, text only:
# https://github.com/microsoft/language-server-protocol/blob/master/snippetSyntax.md
#
# tabstop     -> ""
# placeholder -> its (rendered) default
# choice      -> first choice
# variable    -> default if any, else ""
#


class ParseError(Exception): ...


EChar = Tuple[int, str]

_ESC_CHARS = {"\\", "$", "}"}
_CHOICE_ESC_CHARS = _ESC_CHARS | {",", "|"}
_INT_CHARS = {*digits}
_VAR_BEGIN_CHARS = {*ascii_letters, "_"}
_VAR_CHARS = {*digits, *ascii_letters, "_"}


def _raise_err(
    text: str, pos: int, condition: str, expected: Iterable[str], actual: str
) -> NoReturn:
    char = f"'{actual}'" if actual else "EOF"
    expected_chars = ", ".join(map(lambda c: f"'{c}'", expected))
    tpl = """
    Unexpected char found :: `${condition}`:
    pos:  ${pos}
    Expected one of: > ${expected_chars} <
    Found:           ${char}
    Text:    |-
    ${text}
    """
    msg = Template(dedent(tpl)).substitute(
        condition=condition,
        pos=pos,
        expected_chars=expected_chars,
        char=char,
        text=text,
    )
    raise ParseError(msg)


def _next_char(it: Iterator[EChar]) -> EChar:
    return next(it, (-1, ""))


def _push_back(it: deiter[EChar], pos: int, char: str) -> None:
    if char:
        it.push_back((pos, char))


def _lex_escape(it: deiter[EChar], escapable_chars: AbstractSet[str]) -> str:
    pos, char = _next_char(it)
    if char in escapable_chars:
        return char
    else:
        _push_back(it, pos, char)
        return "\\"


def _consume(it: deiter[EChar], chars: AbstractSet[str]) -> str:
    acc: MutableSequence[str] = []
    for pos, char in it:
        if char in chars:
            acc.append(char)
        else:
            _push_back(it, pos, char)
            break
    return "".join(acc)


# choice      ::= '${' int '|' text (',' text)* '|}'
def _lex_choice(text: str, it: deiter[EChar]) -> str:
    choices: MutableSequence[str] = []
    acc: MutableSequence[str] = []

    for pos, char in it:
        if char == "\\":
            acc.append(_lex_escape(it, escapable_chars=_CHOICE_ESC_CHARS))
        elif char == ",":
            choices.append("".join(acc))
            acc.clear()
        elif char == "|":
            pos, char = _next_char(it)
            if char != "}":
                _raise_err(text, pos=pos, condition="after |", expected="}", actual=char)
            choices.append("".join(acc))
            return choices[0]
        else:
            acc.append(char)

    _raise_err(text, pos=-1, condition="while parsing choice", expected="|", actual="")


# '${' var '/' regex '/' (format | text)+ '/' options '}'
def _skip_transform(text: str, it: deiter[EChar]) -> None:
    depth = 1
    for _, char in it:
        if char == "\\":
            _next_char(it)
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if not depth:
                return

    _raise_err(text, pos=-1, condition="while parsing transform", expected="}", actual="")


# ${...}
def _lex_inner_scope(text: str, it: deiter[EChar]) -> Iterator[str]:
    pos, char = _next_char(it)

    if char in _INT_CHARS:
        _push_back(it, pos, char)
        _consume(it, chars=_INT_CHARS)
        pos, char = _next_char(it)
        if char == "}":
            pass
        elif char == ":":
            yield from _lex(text, it=it, nested=True)
        elif char == "|":
            yield _lex_choice(text, it=it)
        else:
            _raise_err(
                text,
                pos=pos,
                condition="while parsing (tabstop | choice | placeholder)",
                expected=("0-9", "}", "|", ":"),
                actual=char,
            )

    elif char in _VAR_BEGIN_CHARS:
        _push_back(it, pos, char)
        _consume(it, chars=_VAR_CHARS)
        pos, char = _next_char(it)
        if char == "}":
            pass
        elif char == ":":
            yield from _lex(text, it=it, nested=True)
        elif char == "/":
            _skip_transform(text, it=it)
        else:
            _raise_err(
                text,
                pos=pos,
                condition="while parsing variable",
                expected=("_", "a-z", "A-Z", "}", ":", "/"),
                actual=char,
            )

    else:
        _raise_err(
            text, pos=pos, condition="after ${", expected=("_", "0-9", "A-z"), actual=char
        )


# $...
def _lex_scope(text: str, it: deiter[EChar]) -> Iterator[str]:
    pos, char = _next_char(it)
    if char == "{":
        yield from _lex_inner_scope(text, it=it)
    elif char in _INT_CHARS:
        _push_back(it, pos, char)
        _consume(it, chars=_INT_CHARS)
    elif char in _VAR_BEGIN_CHARS:
        _push_back(it, pos, char)
        _consume(it, chars=_VAR_CHARS)
    else:
        _push_back(it, pos, char)
        yield "$"


# any         ::= tabstop | placeholder | choice | variable | text
def _lex(text: str, it: deiter[EChar], nested: bool) -> Iterator[str]:
    for _, char in it:
        if char == "\\":
            yield _lex_escape(it, escapable_chars=_ESC_CHARS)
        elif nested and char == "}":
            return
        elif char == "$":
            yield from _lex_scope(text, it=it)
        else:
            yield char

    if nested:
        _raise_err(text, pos=-1, condition="unterminated ${", expected="}", actual="")


def render_plain(snippet: str) -> str:
    it = deiter(enumerate(snippet))
    return "".join(_lex(snippet, it=it, nested=False))
