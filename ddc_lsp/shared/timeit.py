from asyncio import Lock
from contextlib import contextmanager, nullcontext
from types import TracebackType
from typing import (
    Any,
    AsyncContextManager,
    Iterator,
    MutableMapping,
    Optional,
    Tuple,
    Type,
)

from pynvim_pp.logging import log
from std2.locale import si_prefixed_smol
from std2.timeit import timeit as _timeit

from ..consts import DEBUG

_RECORDS: MutableMapping[str, Tuple[int, float]] = {}


def _fmt(seconds: float) -> str:
    return f"{si_prefixed_smol(seconds, precision=0)}s".ljust(8)


@contextmanager
def timeit(name: str, *args: Any, warn: Optional[float] = None) -> Iterator[None]:
    """
    Logs the elapsed time under `DDC_LSP_DEBUG`,
    or at INFO when a `warn` threshold is crossed
    """

    if not DEBUG and warn is None:
        yield None
    else:
        with _timeit() as t:
            yield None
        delta = t().total_seconds()

        times, cum = _RECORDS.get(name, (0, 0))
        _RECORDS[name] = times + 1, cum + delta
        avg = (cum + delta) / (times + 1)

        msg = f"TIME -- {name.ljust(40)} :: {_fmt(delta)} @ {_fmt(avg)} {' '.join(map(str, args))}"
        if warn is not None and delta >= warn:
            log.info("%s", msg)
        else:
            log.debug("%s", msg)


class TracingLocker(AsyncContextManager):
    """
    asyncio.Lock, logs how long a contended acquire waited
    """

    def __init__(self, name: str, force: bool = False) -> None:
        self._lock = Lock()
        self._name, self._force = name, force

    def locked(self) -> bool:
        return self._lock.locked()

    async def __aenter__(self) -> None:
        mgr = (
            timeit(f"LOCKED -- {self._name}", warn=0 if self._force else None)
            if self._lock.locked()
            else nullcontext()
        )
        with mgr:
            await self._lock.__aenter__()

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self._lock.__aexit__(exc_type, exc, tb)
