from os import environ
from pathlib import Path

TOP_LEVEL = Path(__file__).resolve().parent

_CONF_DIR = TOP_LEVEL / "config"
LANG_ROOT = TOP_LEVEL / "locale"
DEFAULT_LANG = "en"

CONFIG_YML = _CONF_DIR / "defaults.yml"
LSP_LUA = TOP_LEVEL / "lsp" / "clients.lua"


SETTINGS_VAR = "ddc_lsp_settings"


DEBUG = "DDC_LSP_DEBUG" in environ
