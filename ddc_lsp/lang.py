from pathlib import Path
from string import Template
from typing import AbstractSet, Mapping, Union

from pynvim_pp.lib import decode
from std2.pickle.decoder import new_decoder
from yaml import safe_load

from .consts import DEFAULT_LANG, LANG_ROOT

_DECODER = new_decoder[Mapping[str, str]](Mapping[str, str])


def _messages(path: Path) -> Mapping[str, str]:
    return _DECODER(safe_load(decode(path.read_bytes())))


class Messages:
    """
    `${name}` templates keyed by message, see `locale/<lang>.yml`
    """

    def __init__(self, lang: str) -> None:
        path = (LANG_ROOT / lang).with_suffix(".yml")
        self.lang = lang
        self._templates = _messages(path)

    def keys(self) -> AbstractSet[str]:
        return self._templates.keys()

    def __call__(self, key: str, **kwds: Union[int, float, str]) -> str:
        return Template(self._templates[key]).substitute(kwds)


LANG = Messages(DEFAULT_LANG)
