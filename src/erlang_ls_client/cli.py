from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional, TypeAlias

import typer

from erlang_ls_client.config import ClientConfig, client_config, merge_overrides
from erlang_ls_client.exceptions import ConfigError, LspClientError
from erlang_ls_client.json_types import JSONValue
from erlang_ls_client.launcher import (
    DEFAULT_PROBE_TIMEOUT_SECONDS,
    LaunchSpec,
    build_launch_spec,
    verify_executable,
)
from erlang_ls_client.logging_config import setup_logging
from erlang_ls_client.lsp_client import run_execute_command
from erlang_ls_client.middleware import CommandRequest, Interception, intercept
from erlang_ls_client.prompts import PromptSurface, TerminalPrompts
from erlang_ls_client.schema import (
    ExecuteCommandResponseDTO,
    LaunchSpecDTO,
    LivenessReportDTO,
)

app = typer.Typer(add_completion=False)
Runner: TypeAlias = Callable[..., Interception]
DEFAULT_RUNNER: Runner = run_execute_command


@dataclass(frozen=True)
class CliState:
    config_path: Path | None
    root: Path | None
    obj: Mapping[str, object]


def _context_state(ctx: typer.Context) -> CliState:
    state = ctx.obj
    if isinstance(state, CliState):
        return state
    return CliState(config_path=None, root=None, obj={})


def _context_callable(ctx: typer.Context, key: str, default: Callable) -> Callable:
    candidate = _context_state(ctx).obj.get(key)
    if callable(candidate):
        return candidate
    return default


def _context_prompts(ctx: typer.Context) -> PromptSurface:
    candidate = _context_state(ctx).obj.get("prompts")
    if candidate is not None:
        return candidate  # type: ignore[return-value]
    return TerminalPrompts()


def _load_config(ctx: typer.Context, **overrides: str | None) -> ClientConfig:
    state = _context_state(ctx)
    try:
        config = client_config(root=state.root, config_path=state.config_path)
        return merge_overrides(config, **overrides)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _parse_arguments(raw: str | None, path: Path | None) -> list[JSONValue]:
    if raw is not None and path is not None:
        raise typer.BadParameter("Use either --arguments or --arguments-file, not both.")
    if path is not None:
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise typer.BadParameter(f"Cannot read arguments file: {exc}") from exc
    if raw is None:
        return []
    try:
        loaded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Invalid JSON payload: {exc}") from exc
    if not isinstance(loaded, list):
        raise typer.BadParameter("Command arguments must be a JSON array.")
    return loaded


def _echo_json(payload: Mapping[str, object]) -> None:
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))


def _echo_forward(command: str, arguments: list[JSONValue]) -> JSONValue:
    return {"command": command, "arguments": arguments}


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", help="Path to erlang_ls.toml (default: <root>/erlang_ls.toml)."
    ),
    root: Optional[Path] = typer.Option(None, "--root", help="Workspace root."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Launch Erlang LS and run its commands with interactive input collection."""
    setup_logging("DEBUG" if verbose else "WARNING")
    obj = ctx.obj if isinstance(ctx.obj, Mapping) else {}
    ctx.obj = CliState(config_path=config, root=root, obj=obj)


@app.command("launch-spec")
def launch_spec(
    ctx: typer.Context,
    server_path: Optional[str] = typer.Option(None, "--server-path"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
    log_path: Optional[str] = typer.Option(None, "--log-path"),
    escript_path: Optional[str] = typer.Option(None, "--escript-path"),
) -> None:
    """Print the resolved server launch specification as JSON."""
    config = _load_config(
        ctx,
        server_path=server_path,
        log_level=log_level,
        log_path=log_path,
        escript_path=escript_path,
    )
    spec = build_launch_spec(config)
    _echo_json(LaunchSpecDTO.model_validate(spec.to_payload()).model_dump())


@app.command("check")
def check(
    ctx: typer.Context,
    server_path: Optional[str] = typer.Option(None, "--server-path"),
    escript_path: Optional[str] = typer.Option(None, "--escript-path"),
    timeout: float = typer.Option(
        DEFAULT_PROBE_TIMEOUT_SECONDS, "--timeout", min=0.1, help="Probe timeout in seconds."
    ),
) -> None:
    """Run the server liveness probe (<escript> <server> --version)."""
    config = _load_config(ctx, server_path=server_path, escript_path=escript_path)
    spec = build_launch_spec(config)
    verify = _context_callable(ctx, "verify_executable", verify_executable)
    prompts = _context_prompts(ctx)
    report = verify(
        spec.server_path,
        spec.command,
        notify=prompts.show_error_message,
        timeout_seconds=timeout,
    )
    _echo_json(LivenessReportDTO.model_validate(report.to_payload()).model_dump())
    if not report.ok:
        raise typer.Exit(code=1)


def _run_interception(
    ctx: typer.Context,
    spec: LaunchSpec,
    request: CommandRequest,
    prompts: PromptSurface,
    *,
    dry_run: bool,
) -> Interception:
    if dry_run:
        return intercept(request.command, list(request.arguments), _echo_forward, prompts)
    verify = _context_callable(ctx, "verify_executable", verify_executable)
    verify(spec.server_path, spec.command, notify=prompts.show_error_message)
    runner: Runner = _context_callable(ctx, "run_execute_command", DEFAULT_RUNNER)
    return runner(spec, request, prompts, _context_state(ctx).root)


@app.command("exec")
def exec_command(
    ctx: typer.Context,
    command: str = typer.Argument(..., help="Command identifier, e.g. 12345:wrangler-rename-var"),
    arguments: Optional[str] = typer.Option(
        None, "--arguments", help="Command arguments as a JSON array."
    ),
    arguments_file: Optional[Path] = typer.Option(
        None, "--arguments-file", help="Read the JSON argument array from a file."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Collect input and print the request without a server."
    ),
    server_path: Optional[str] = typer.Option(None, "--server-path"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
    log_path: Optional[str] = typer.Option(None, "--log-path"),
    escript_path: Optional[str] = typer.Option(None, "--escript-path"),
) -> None:
    """Execute a server command, prompting for input when it asks for some."""
    args = _parse_arguments(arguments, arguments_file)
    config = _load_config(
        ctx,
        server_path=server_path,
        log_level=log_level,
        log_path=log_path,
        escript_path=escript_path,
    )
    spec = build_launch_spec(config)
    prompts = _context_prompts(ctx)
    request = CommandRequest.of(command, args)
    try:
        interception = _run_interception(ctx, spec, request, prompts, dry_run=dry_run)
    except LspClientError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    response = ExecuteCommandResponseDTO(
        outcome=interception.outcome.value,
        command=interception.request.command,
        arguments=list(interception.request.arguments),
        result=interception.result,
    )
    _echo_json(response.model_dump())
