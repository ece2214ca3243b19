from asyncio import create_task, wait
from dataclasses import dataclass
from itertools import chain
from typing import Any, Mapping, Sequence, Union

from pynvim_pp.lib import encode
from pynvim_pp.logging import log
from std2.asyncio import cancel

from ..lang import LANG
from ..lsp.parse import RequestContext, parse
from ..lsp.protocol import PROTOCOL
from ..lsp.types import LSPcomp, NormalizedItem
from ..shared.timeit import timeit
from ..shared.types import LineContext, Provider
from .cache import Session
from .host import Editor, LSPHost


@dataclass(frozen=True)
class GatherRequest:
    """
    Sent by the completion engine, `timeout` in milliseconds
    """

    input: str
    isIncomplete: bool
    completePos: int
    completeStr: str
    timeout: Union[int, float, None] = None


@dataclass(frozen=True)
class GatherResult:
    items: Sequence[NormalizedItem]
    isIncomplete: bool


def trigger_context(provider: Provider, request: GatherRequest) -> Mapping[str, Any]:
    kinds = PROTOCOL.CompletionTriggerKind
    trigger = request.input[-1:]

    if trigger and trigger in provider.trigger_characters:
        return {
            "triggerKind": kinds["TriggerCharacter"],
            "triggerCharacter": trigger,
        }
    elif request.isIncomplete:
        return {"triggerKind": kinds["TriggerForIncompleteCompletions"]}
    else:
        return {"triggerKind": kinds["Invoked"]}


async def _comp(
    session: Session,
    lsp: LSPHost,
    editor: Editor,
    line: LineContext,
    request: GatherRequest,
    timeout: float,
    snippet_indicator: str,
    provider: Provider,
) -> LSPcomp:
    empty = LSPcomp(client=provider.id, is_incomplete=False, items=())

    if (cached := session.cache.get(provider.id)) is not None:
        return LSPcomp(client=provider.id, is_incomplete=False, items=cached)
    else:
        context = trigger_context(provider, request=request)
        with timeit(f"LSP :: {provider.id}"):
            task = create_task(lsp.request(provider.id, context))
            done, not_done = await wait((task,), timeout=timeout)
            await cancel(*not_done)

        if not done:
            log.debug("%s", f"LSP TIMEOUT -- {provider.id}")
            return empty
        else:
            try:
                resp = done.pop().result()
                rctx = RequestContext(
                    client=provider.id,
                    encoding=provider.encoding,
                    resolvable=provider.resolvable,
                    row=line.row,
                    line=line.line,
                    suggest_character=request.completePos,
                    request_character=request.completePos
                    + len(encode(request.completeStr)),
                    snippet_indicator=snippet_indicator,
                )
                comps = parse(rctx, resp=resp)
            except Exception as e:
                log.exception("%s", e)
                await editor.print_error(
                    LANG("provider failed", client=provider.id, error=str(e))
                )
                return empty
            else:
                session.cache.put(
                    provider.id, items=comps.items, is_incomplete=comps.is_incomplete
                )
                return comps


async def gather(
    session: Session,
    lsp: LSPHost,
    editor: Editor,
    request: GatherRequest,
    default_timeout: float,
    snippet_indicator: str,
) -> GatherResult:
    timeout = (
        request.timeout / 1000 if request.timeout is not None else default_timeout
    )

    async with session.lock:
        with timeit("GATHER"):
            line = await editor.current_line()
            providers = await lsp.list_providers()

            tasks = tuple(
                create_task(
                    _comp(
                        session,
                        lsp=lsp,
                        editor=editor,
                        line=line,
                        request=request,
                        timeout=timeout,
                        snippet_indicator=snippet_indicator,
                        provider=provider,
                    )
                )
                for provider in providers
            )
            if tasks:
                await wait(tasks)

            results = tuple(task.result() for task in tasks)
            is_incomplete = any(comps.is_incomplete for comps in results)
            if not is_incomplete:
                session.cache.clear()

            items = tuple(chain.from_iterable(comps.items for comps in results))
            return GatherResult(items=items, isIncomplete=is_incomplete)
