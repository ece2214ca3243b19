from typing import Any, Mapping

from pynvim_pp.logging import log, suppress_and_log
from pynvim_pp.nvim import Nvim
from pynvim_pp.types import NoneType
from std2.pickle.decoder import new_decoder
from std2.pickle.encoder import new_encoder
from std2.pickle.types import DecodeError

from ...lsp.types import UserData
from ...registry import NAMESPACE, rpc
from ..confirm import confirm
from ..gather import GatherRequest, GatherResult, gather
from ..preview import Preview, preview
from ..rt_types import Stack

_REQ_DECODER = new_decoder[GatherRequest](GatherRequest, strict=False)
_UDECODER = new_decoder[UserData](UserData, strict=False)
_RES_ENCODER = new_encoder[GatherResult](GatherResult)
_PREV_ENCODER = new_encoder[Preview](Preview)


@rpc(blocking=False)
async def _gather(stack: Stack, uid: int, req: Mapping[str, Any]) -> None:
    with suppress_and_log():
        request = _REQ_DECODER(req)
        result = await gather(
            stack.session,
            lsp=stack.lsp,
            editor=stack.editor,
            request=request,
            default_timeout=stack.settings.limits.completion_timeout,
            snippet_indicator=stack.settings.snippet_indicator,
        )
        await Nvim.api.exec_lua(
            NoneType,
            f"{NAMESPACE}.on_gather(...)",
            (uid, _RES_ENCODER(result)),
        )


@rpc(blocking=False)
async def _complete_done(stack: Stack, event: Mapping[str, Any]) -> None:
    with suppress_and_log():
        word, data = event.get("word"), event.get("user_data")
        if isinstance(word, str) and data:
            try:
                user_data = _UDECODER(data)
            except DecodeError as e:
                log.warn("%s", e)
            else:
                await confirm(
                    stack.lsp,
                    editor=stack.editor,
                    settings=stack.settings,
                    snippet_engine=stack.settings.snippet_engine or None,
                    word=word,
                    user_data=user_data,
                )


@rpc(blocking=False)
async def _preview(stack: Stack, uid: int, item: Mapping[str, Any]) -> None:
    with suppress_and_log():
        try:
            user_data = _UDECODER(item.get("user_data"))
        except DecodeError as e:
            log.warn("%s", e)
            prev = Preview(kind="empty")
        else:
            prev = await preview(
                stack.lsp,
                editor=stack.editor,
                user_data=user_data,
                resolve_timeout=stack.settings.limits.resolve_timeout,
            )

        await Nvim.api.exec_lua(
            NoneType,
            f"{NAMESPACE}.on_preview(...)",
            (uid, _PREV_ENCODER(prev)),
        )
