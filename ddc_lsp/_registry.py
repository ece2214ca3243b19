from .lsp.requests import request
from .server.registrants import source

assert request
assert source

____ = None
