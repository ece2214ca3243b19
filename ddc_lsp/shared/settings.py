from dataclasses import dataclass
from enum import Enum, auto


class ConfirmBehavior(Enum):
    insert = auto()
    replace = auto()


@dataclass(frozen=True)
class Limits:
    completion_timeout: float
    resolve_timeout: float


@dataclass(frozen=True)
class Settings:
    # Key of `DDC_LSP.snippet_engines`, else a Vim function, called with the body
    snippet_engine: str
    enable_resolve_item: bool
    enable_additional_text_edit: bool
    confirm_behavior: ConfirmBehavior
    snippet_indicator: str
    limits: Limits
