from __future__ import annotations

import subprocess
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Callable

from erlang_ls_client.config import ClientConfig
from erlang_ls_client.json_types import JSONObject
from erlang_ls_client.logging_config import get_logger

DEFAULT_ESCRIPT = "escript"
BUNDLED_SERVER_RELPATH = Path("erlang_ls", "_build", "default", "bin", "erlang_ls")
DEFAULT_PROBE_TIMEOUT_SECONDS = 10.0
PROBE_ERROR_PREFIX = "Could not start Language Server. Error: "

logger = get_logger("launcher")


class Transport(StrEnum):
    STDIO = "stdio"


@dataclass(frozen=True)
class LaunchSpec:
    command: str
    args: tuple[str, ...]
    transport: Transport = Transport.STDIO

    @property
    def server_path(self) -> str:
        return self.args[0]

    def argv(self) -> list[str]:
        return [self.command, *self.args]

    def to_payload(self) -> JSONObject:
        return {
            "command": self.command,
            "args": list(self.args),
            "transport": self.transport.value,
        }


@dataclass(frozen=True)
class LivenessReport:
    ok: bool
    returncode: int | None
    output: str

    def to_payload(self) -> JSONObject:
        return {"ok": self.ok, "returncode": self.returncode, "output": self.output}


def default_install_root() -> Path:
    return Path(__file__).resolve().parent


def resolve_server_path(config: ClientConfig, install_root: Path | None = None) -> str:
    if config.server_path:
        return config.server_path
    root = install_root if install_root is not None else default_install_root()
    return str(root / BUNDLED_SERVER_RELPATH)


def resolve_escript(config: ClientConfig) -> str:
    return config.escript_path or DEFAULT_ESCRIPT


def build_launch_spec(config: ClientConfig, install_root: Path | None = None) -> LaunchSpec:
    server_path = resolve_server_path(config, install_root)
    args = [server_path, "--log-level", config.log_level]
    if config.log_path:
        args.extend(["--log-dir", config.log_path])
    spec = LaunchSpec(command=resolve_escript(config), args=tuple(args))
    logger.debug("Launch spec: %s", spec.argv())
    return spec


def _decode(stream: bytes | str | None) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode("utf-8", errors="replace")
    return stream


def verify_executable(
    server_path: str,
    escript: str,
    *,
    notify: Callable[[str], None] | None = None,
    run_fn: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
) -> LivenessReport:
    """Run ``<escript> <server> --version`` once and report the outcome.

    The probe is advisory: failures are reported through ``notify`` and the
    returned report, never raised, and do not stop the caller from launching.
    """
    argv = [escript, server_path, "--version"]
    try:
        completed = run_fn(argv, capture_output=True, timeout=timeout_seconds)
    except subprocess.TimeoutExpired as exc:
        report = LivenessReport(
            ok=False,
            returncode=None,
            output=_decode(exc.stdout) or f"timed out after {timeout_seconds:g}s",
        )
    except OSError as exc:
        report = LivenessReport(ok=False, returncode=None, output=str(exc))
    else:
        report = LivenessReport(
            ok=completed.returncode == 0,
            returncode=completed.returncode,
            output=_decode(completed.stdout),
        )
    if not report.ok:
        logger.warning("Liveness probe failed: %s (exit %s)", argv, report.returncode)
        if notify is not None:
            notify(PROBE_ERROR_PREFIX + report.output)
    return report
