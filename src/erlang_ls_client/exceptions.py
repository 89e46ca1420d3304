"""Exception types raised by the Erlang LS client."""

from __future__ import annotations


class ClientError(RuntimeError):
    """Base class for failures the client reports to its caller."""


class ConfigError(ClientError):
    """Configuration could not be read or holds values of the wrong type."""


class LspClientError(ClientError):
    """The language server rejected or failed a request."""
