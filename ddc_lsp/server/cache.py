from dataclasses import dataclass, field
from typing import MutableMapping, Optional, Sequence

from pynvim_pp.logging import log

from ..lsp.types import NormalizedItem
from ..shared.timeit import TracingLocker


class ItemCache:
    """
    Complete responses only, keyed by LSP client id

    An incomplete response must be re-queried on every keystroke
    """

    def __init__(self) -> None:
        self._items: MutableMapping[int, Sequence[NormalizedItem]] = {}

    def get(self, client: int) -> Optional[Sequence[NormalizedItem]]:
        return self._items.get(client)

    def put(
        self, client: int, items: Sequence[NormalizedItem], is_incomplete: bool
    ) -> None:
        if is_incomplete:
            self._items.pop(client, None)
        else:
            self._items[client] = items

    def clear(self) -> None:
        if self._items:
            log.debug("%s", f"LSP CACHE CLEAR -- {len(self._items)}")
        self._items.clear()


@dataclass(frozen=True)
class Session:
    cache: ItemCache = field(default_factory=ItemCache)
    lock: TracingLocker = field(
        default_factory=lambda: TracingLocker(name="gather", force=True)
    )
