from re import compile
from typing import Any, Mapping, cast

from pynvim_pp.lib import decode
from pynvim_pp.nvim import Nvim
from pynvim_pp.types import NoneType
from std2.configparser import hydrate
from std2.graphlib import merge
from std2.pickle.decoder import new_decoder
from yaml import safe_load

from ..consts import CONFIG_YML, SETTINGS_VAR
from ..shared.settings import Settings
from .cache import Session
from .nvim import NvimEditor, NvimLSP
from .rt_types import Stack, ValidationError

_CAMEL = compile(r"(?<=[a-z0-9])([A-Z])")


def _snake_case(conf: Any) -> Any:
    if isinstance(conf, Mapping):
        return {
            (
                _CAMEL.sub(lambda m: "_" + m.group(1).lower(), key)
                if isinstance(key, str)
                else key
            ): _snake_case(val)
            for key, val in conf.items()
        }
    else:
        return conf


def load_settings(user_config: Any) -> Settings:
    """
    `user_config` accepts both `snippetEngine` and `snippet_engine` forms
    """

    yml = safe_load(decode(CONFIG_YML.read_bytes()))
    u_conf = _snake_case(hydrate(user_config or {}))

    merged = merge(yml, u_conf, replace=True)
    config = new_decoder[Settings](Settings)(merged)

    if config.limits.completion_timeout <= 0:
        raise ValidationError("limits.completion_timeout <= 0")

    if config.limits.resolve_timeout <= 0:
        raise ValidationError("limits.resolve_timeout <= 0")

    return config


async def _settings() -> Settings:
    user_config = cast(Any, (await Nvim.vars.get(NoneType, SETTINGS_VAR)) or {})
    return load_settings(user_config)


async def stack() -> Stack:
    settings = await _settings()
    return Stack(
        settings=settings,
        session=Session(),
        lsp=NvimLSP(),
        editor=NvimEditor(),
    )
