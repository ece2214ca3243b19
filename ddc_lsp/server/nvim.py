from string import Template
from textwrap import dedent
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple, cast

from pynvim_pp.atomic import Atomic
from pynvim_pp.logging import log
from pynvim_pp.nvim import Nvim
from pynvim_pp.rpc_types import NvimError
from pynvim_pp.types import NoneType
from pynvim_pp.window import Window
from std2.pickle.decoder import new_decoder

from ..lsp.offsets import encoding_of
from ..lsp.requests.request import async_request
from ..registry import NAMESPACE
from ..shared.types import EditInstruction, LineContext, Provider


_CLIENTS = new_decoder[Sequence[Mapping[str, Any]]](Sequence[Mapping[str, Any]])


def _provider(client: Mapping[str, Any]) -> Provider:
    return Provider(
        id=int(client["id"]),
        encoding=encoding_of(client.get("offset_encoding")),
        resolvable=bool(client.get("resolvable")),
        trigger_characters=frozenset(client.get("trigger_characters") or ()),
    )


class NvimLSP:
    async def list_providers(self) -> Sequence[Provider]:
        clients = await Nvim.api.exec_lua(
            NoneType, f"return {NAMESPACE}.lsp_clients()", ()
        )
        return tuple(map(_provider, _CLIENTS(clients or ())))

    async def request(self, client: int, context: Mapping[str, Any]) -> Any:
        return await async_request("lsp_comp", client, context)

    async def resolve(self, client: int, item: Mapping[str, Any]) -> Optional[Any]:
        return await async_request("lsp_resolve", client, item)

    async def parse_snippet(self, text: str) -> str:
        return await Nvim.api.exec_lua(
            str, f"return {NAMESPACE}.parse_snippet(...)", (text,)
        )


class NvimEditor:
    async def current_line(self) -> LineContext:
        with Atomic() as (atomic, ns):
            ns.cursor = atomic.win_get_cursor(0)
            ns.line = atomic.get_current_line()
            await atomic.commit(NoneType)

        r, col = cast(Tuple[int, int], ns.cursor(NoneType))
        return LineContext(row=r - 1, col=col, line=ns.line(str))

    async def get_lines(self, lo: int, hi: int) -> Sequence[str]:
        win = await Window.get_current()
        buf = await win.get_buf()
        with Atomic() as (atomic, ns):
            ns.line_count = atomic.buf_line_count(buf)
            await atomic.commit(NoneType)

        line_count = ns.line_count(int)
        return await buf.get_lines(lo=max(0, lo), hi=min(hi, line_count))

    async def apply(self, instructions: Iterable[EditInstruction]) -> None:
        win = await Window.get_current()
        buf = await win.get_buf()
        insts = tuple(instructions)

        atomic = Atomic()
        for inst in insts:
            (r1, c1), (r2, c2) = inst.begin, inst.end
            atomic.buf_set_text(buf, r1, c1, r2, c2, inst.new_lines)

        try:
            await atomic.commit(NoneType)
        except NvimError as e:
            tpl = """
            ${e}
            ${insts}
            """
            msg = Template(dedent(tpl)).substitute(e=e, insts=insts)
            log.warn("%s", msg)

    async def set_cursor(self, row: int, col: int) -> None:
        win = await Window.get_current()
        try:
            await win.set_cursor(row=row, col=col)
        except NvimError as e:
            log.warn("%s", e)

    async def undo_break(self) -> None:
        undolevels = await Nvim.opts.get(int, "undolevels")
        await Nvim.opts.set("undolevels", val=undolevels)

    async def filetype(self) -> str:
        win = await Window.get_current()
        buf = await win.get_buf()
        return await buf.filetype()

    async def print_error(self, msg: str) -> None:
        await Nvim.write(msg, error=True)

    async def expand_snippet(self, engine: str, body: str) -> None:
        await Nvim.api.exec_lua(
            NoneType, f"{NAMESPACE}.expand_snippet(...)", (engine, body)
        )

    async def skip_next_complete(self) -> None:
        await Nvim.api.exec_lua(NoneType, f"{NAMESPACE}.skip_next_complete()", ())
