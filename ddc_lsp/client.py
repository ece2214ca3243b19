from asyncio import get_running_loop, sleep
from asyncio.exceptions import CancelledError
from contextlib import suppress
from functools import wraps
from logging import DEBUG as DEBUG_LV
from logging import INFO
from math import inf
from pathlib import PurePath
from sys import exit
from typing import Any, Sequence, cast

from pynvim_pp.lib import decode
from pynvim_pp.logging import log, suppress_and_log
from pynvim_pp.nvim import Nvim, conn
from pynvim_pp.rpc import MsgType
from pynvim_pp.types import Method, NoneType, RPCallable
from std2.pickle.types import DecodeError

from ._registry import ____
from .consts import DEBUG, LSP_LUA
from .lang import LANG
from .registry import NAMESPACE, atomic, rpc
from .server.rt_types import Stack, ValidationError
from .server.runtime import stack

assert ____ or True

_CB = RPCallable[None]


def _set_debug() -> None:
    loop = get_running_loop()
    loop.set_debug(DEBUG)
    if DEBUG:
        log.setLevel(DEBUG_LV)
    else:
        log.setLevel(INFO)


async def _default(msg: MsgType, method: Method, params: Sequence[Any]) -> None:
    with suppress_and_log():
        assert False, (msg, method, params)


def _trans(stack: Stack, handler: _CB) -> _CB:
    @wraps(handler)
    async def f(*params: Any) -> None:
        with suppress(CancelledError):
            return await handler(stack, *params)

    return cast(_CB, f)


async def init(socket: PurePath) -> None:
    _set_debug()

    async with conn(socket, default=_default) as client:
        try:
            stk = await stack()
        except (DecodeError, ValidationError) as e:
            await Nvim.write(LANG("bad settings", error=str(e)), error=True)
            exit(1)
        else:
            rpc_atomic, handlers = rpc.drain()
            for handler in handlers.values():
                hldr = _trans(stk, handler=handler)
                client.register(hldr)

            atomic.exec_lua(decode(LSP_LUA.read_bytes()), (NAMESPACE,))
            await (rpc_atomic + atomic).commit(NoneType)
            await sleep(inf)
