from dataclasses import dataclass

from ..shared.settings import Settings
from .cache import Session
from .host import Editor, LSPHost


class ValidationError(Exception): ...


@dataclass(frozen=True)
class Stack:
    settings: Settings
    session: Session
    lsp: LSPHost
    editor: Editor
