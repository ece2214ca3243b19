from typing import Mapping, Optional

from pynvim_pp.lib import encode

from ..shared.types import BYTE_TRANS, UTF8, UTF16, UTF32, Encoding

_ENCODING_MAP: Mapping[str, Encoding] = {
    "utf8": UTF8,
    "utf16": UTF16,
    "utf32": UTF32,
}


def encoding_of(offset_encoding: Optional[str]) -> Encoding:
    """
    LSP `positionEncoding` -> python codec, UTF-16 unless negotiated otherwise
    """

    name = (offset_encoding or "").casefold().replace("-", "")
    return _ENCODING_MAP.get(name, UTF16)


def to_buffer_offset(character: int, line: str, encoding: Encoding) -> int:
    """
    Protocol `Position.character` -> nvim byte column

    Out of range or mid-character positions clamp to the previous boundary
    """

    unit = BYTE_TRANS[encoding]
    encoded = line.encode(encoding, errors="surrogatepass")
    prefix = encoded[: max(0, character) * unit].decode(encoding, errors="ignore")
    return len(encode(prefix))


def to_protocol_position(offset: int, line: str, encoding: Encoding) -> int:
    """
    nvim byte column -> protocol `Position.character`
    """

    unit = BYTE_TRANS[encoding]
    prefix = encode(line)[: max(0, offset)].decode(UTF8, errors="ignore")
    return len(prefix.encode(encoding, errors="surrogatepass")) // unit
