from asyncio import AbstractEventLoop, Future, get_running_loop
from dataclasses import dataclass
from itertools import count
from threading import Lock
from typing import Any, MutableMapping, Optional, Tuple

from pynvim_pp.logging import log
from pynvim_pp.nvim import Nvim
from pynvim_pp.types import NoneType
from std2.pickle.decoder import new_decoder

from ...registry import NAMESPACE, rpc
from ...server.rt_types import Stack
from ...shared.timeit import timeit


class LSPError(Exception):
    ...


@dataclass(frozen=True)
class _Payload:
    uid: int
    reply: Any
    err: Optional[str] = None


_DECODER = new_decoder[_Payload](_Payload)

_LOCK = Lock()
_UIDS = count()
_PENDING: MutableMapping[int, Tuple[AbstractEventLoop, "Future[Any]"]] = {}


def _register() -> Tuple[int, "Future[Any]"]:
    uid = next(_UIDS)
    loop = get_running_loop()
    fut: "Future[Any]" = loop.create_future()
    with _LOCK:
        _PENDING[uid] = (loop, fut)
    return uid, fut


def _release(uid: int) -> None:
    with _LOCK:
        _PENDING.pop(uid, None)


@rpc(blocking=False)
async def _lsp_notify(stack: Stack, rpayload: _Payload) -> None:
    payload = _DECODER(rpayload)

    with _LOCK:
        pending = _PENDING.get(payload.uid)

    if not pending:
        log.info("%s", f"<><> DELAYED LSP RESP <><> :: {payload.uid}")
    else:
        loop, fut = pending

        def cont() -> None:
            if fut.done():
                pass
            elif payload.err is not None:
                fut.set_exception(LSPError(payload.err))
            else:
                fut.set_result(payload.reply)

        loop.call_soon_threadsafe(cont)


async def async_request(name: str, *args: Any) -> Any:
    """
    Calls `DDC_LSP.<name>(uid, ...)`, which answers through `Lsp_notify`

    Raises `LSPError` when the server, or `client.request`, reports an error
    """

    with timeit(f"LSP :: {name}"):
        uid, fut = _register()
        try:
            await Nvim.api.exec_lua(NoneType, f"{NAMESPACE}.{name}(...)", (uid, *args))
            return await fut
        finally:
            _release(uid)
