"""Minimal stdio language server answering Wrangler commands for session tests."""

from __future__ import annotations

from lsprotocol import types
from pygls.lsp.server import LanguageServer

RENAME_VAR = "12345:wrangler-rename-var"

server = LanguageServer("erlang-ls-echo", "0.1.0")


@server.command(RENAME_VAR)
def rename_var(ls: LanguageServer, *arguments):
    value = arguments[0]["user_input"]["value"]
    ls.window_show_message(
        types.ShowMessageParams(type=types.MessageType.Error, message=f"Renamed to {value}")
    )
    return {"received": list(arguments)}


if __name__ == "__main__":
    server.start_io()
