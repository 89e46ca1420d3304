"""Erlang LS client package root."""

from erlang_ls_client.exceptions import ClientError, ConfigError, LspClientError

__all__ = ["__version__", "ClientError", "ConfigError", "LspClientError"]

__version__ = "0.1.0"
