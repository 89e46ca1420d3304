from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager
from fnmatch import fnmatch
from pathlib import Path
from typing import AsyncIterator, Iterable

from lsprotocol import types
from pygls.exceptions import JsonRpcException
from pygls.lsp.client import LanguageClient

from erlang_ls_client import __version__
from erlang_ls_client.exceptions import LspClientError
from erlang_ls_client.json_types import JSONValue
from erlang_ls_client.launcher import LaunchSpec, Transport
from erlang_ls_client.logging_config import get_logger
from erlang_ls_client.middleware import CommandRequest, Interception, intercept_async
from erlang_ls_client.prompts import PromptSurface

CLIENT_NAME = "erlang_ls"
WATCHED_FILE_GLOBS: tuple[str, ...] = ("**/rebar.config", "**/rebar.lock")

logger = get_logger("lsp_client")


class ErlangLanguageClient(LanguageClient):
    """Language client whose executeCommand requests pass the input middleware."""

    def __init__(self, prompts: PromptSurface) -> None:
        super().__init__(CLIENT_NAME, __version__)
        self.prompts = prompts
        self._register_handlers()

    def _register_handlers(self) -> None:
        self.feature(types.WINDOW_SHOW_MESSAGE)(_show_message)
        self.feature(types.WINDOW_LOG_MESSAGE)(_log_message)
        self.feature(types.CLIENT_REGISTER_CAPABILITY)(_register_capability)

    def on_show_message(self, params: types.ShowMessageParams) -> None:
        if params.type == types.MessageType.Error:
            self.prompts.show_error_message(params.message)
        else:
            logger.info("server: %s", params.message)

    def on_log_message(self, params: types.LogMessageParams) -> None:
        logger.debug("server log: %s", params.message)

    def on_register_capability(self, params: types.RegistrationParams) -> None:
        for registration in params.registrations:
            logger.debug("server registered %s", registration.method)

    async def _forward_execute_command(
        self, command: str, arguments: list[JSONValue]
    ) -> object:
        params = types.ExecuteCommandParams(command=command, arguments=arguments)
        try:
            return await self.workspace_execute_command_async(params)
        except JsonRpcException as exc:
            raise LspClientError(f"LSP error: {exc}") from exc

    async def execute_command_async(
        self, command: str, arguments: list[JSONValue] | None = None
    ) -> Interception:
        return await intercept_async(
            command,
            arguments,
            self._forward_execute_command,
            self.prompts,
        )

    def notify_watched_files(
        self,
        paths: Iterable[Path],
        change_type: types.FileChangeType = types.FileChangeType.Changed,
    ) -> int:
        changes = [
            types.FileEvent(uri=path.resolve().as_uri(), type=change_type)
            for path in paths
            if is_watched_file(path)
        ]
        if not changes:
            return 0
        self.workspace_did_change_watched_files(
            types.DidChangeWatchedFilesParams(changes=changes)
        )
        return len(changes)


def _show_message(ls: ErlangLanguageClient, params: types.ShowMessageParams) -> None:
    ls.on_show_message(params)


def _log_message(ls: ErlangLanguageClient, params: types.LogMessageParams) -> None:
    ls.on_log_message(params)


def _register_capability(ls: ErlangLanguageClient, params: types.RegistrationParams) -> None:
    ls.on_register_capability(params)


def is_watched_file(path: Path) -> bool:
    candidate = path.resolve().as_posix()
    return any(fnmatch(candidate, pattern) for pattern in WATCHED_FILE_GLOBS)


def client_capabilities() -> types.ClientCapabilities:
    return types.ClientCapabilities(
        workspace=types.WorkspaceClientCapabilities(
            execute_command=types.ExecuteCommandClientCapabilities(
                dynamic_registration=False
            ),
            did_change_watched_files=types.DidChangeWatchedFilesClientCapabilities(
                dynamic_registration=True
            ),
        ),
    )


def initialize_params(root: Path) -> types.InitializeParams:
    return types.InitializeParams(
        process_id=os.getpid(),
        root_uri=root.resolve().as_uri(),
        capabilities=client_capabilities(),
        client_info=types.ClientInfo(name=CLIENT_NAME, version=__version__),
    )


async def start_session(
    client: ErlangLanguageClient, spec: LaunchSpec, root: Path | None = None
) -> None:
    if spec.transport is not Transport.STDIO:
        raise LspClientError(f"Unsupported transport: {spec.transport}")
    workspace_root = root if root is not None else Path.cwd()
    try:
        await client.start_io(spec.command, *spec.args, cwd=str(workspace_root))
    except OSError as exc:
        raise LspClientError(f"Could not start language server {spec.command}: {exc}") from exc
    logger.info("Started %s", spec.argv())
    try:
        await client.initialize_async(initialize_params(workspace_root))
        client.initialized(types.InitializedParams())
    except Exception as exc:
        await stop_session(client)
        raise LspClientError(f"Language server failed to initialize: {exc}") from exc


async def stop_session(client: ErlangLanguageClient) -> None:
    try:
        if not client.stopped:
            await client.shutdown_async(None)
            client.exit(None)
    finally:
        await client.stop()
        logger.info("Stopped language server")


@asynccontextmanager
async def session(
    spec: LaunchSpec, prompts: PromptSurface, root: Path | None = None
) -> AsyncIterator[ErlangLanguageClient]:
    client = ErlangLanguageClient(prompts)
    await start_session(client, spec, root)
    try:
        yield client
    finally:
        await stop_session(client)


def run_execute_command(
    spec: LaunchSpec,
    request: CommandRequest,
    prompts: PromptSurface,
    root: Path | None = None,
) -> Interception:
    async def _run() -> Interception:
        async with session(spec, prompts, root) as client:
            return await client.execute_command_async(
                request.command, list(request.arguments)
            )

    return asyncio.run(_run())
