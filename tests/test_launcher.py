from __future__ import annotations

import subprocess
from pathlib import Path

from erlang_ls_client.config import ClientConfig
from erlang_ls_client.launcher import (
    BUNDLED_SERVER_RELPATH,
    DEFAULT_ESCRIPT,
    LaunchSpec,
    Transport,
    build_launch_spec,
    default_install_root,
    resolve_escript,
    resolve_server_path,
    verify_executable,
)


class _RecordingRun:
    def __init__(self, *, returncode: int = 0, stdout: bytes = b"", raises: BaseException | None = None) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.raises = raises
        self.calls: list[tuple[list[str], dict[str, object]]] = []

    def __call__(self, argv: list[str], **kwargs: object) -> subprocess.CompletedProcess:
        self.calls.append((argv, kwargs))
        if self.raises is not None:
            raise self.raises
        return subprocess.CompletedProcess(argv, self.returncode, stdout=self.stdout, stderr=b"")


def test_build_launch_spec_uses_configured_paths() -> None:
    config = ClientConfig(
        server_path="/opt/els/erlang_ls",
        log_level="debug",
        log_path="/tmp/els-logs",
        escript_path="/usr/local/bin/escript",
    )
    spec = build_launch_spec(config)
    assert spec == LaunchSpec(
        command="/usr/local/bin/escript",
        args=("/opt/els/erlang_ls", "--log-level", "debug", "--log-dir", "/tmp/els-logs"),
        transport=Transport.STDIO,
    )
    assert spec.server_path == "/opt/els/erlang_ls"
    assert spec.argv()[0] == "/usr/local/bin/escript"


def test_build_launch_spec_defaults(tmp_path: Path) -> None:
    spec = build_launch_spec(ClientConfig(), install_root=tmp_path)
    assert spec.command == DEFAULT_ESCRIPT
    assert spec.args == (str(tmp_path / BUNDLED_SERVER_RELPATH), "--log-level", "none")
    assert "--log-dir" not in spec.args


def test_resolve_server_path_falls_back_to_install_root() -> None:
    assert resolve_server_path(ClientConfig()) == str(default_install_root() / BUNDLED_SERVER_RELPATH)
    assert resolve_server_path(ClientConfig(server_path="/x/erlang_ls")) == "/x/erlang_ls"


def test_resolve_escript_defaults_to_platform_command() -> None:
    assert resolve_escript(ClientConfig()) == "escript"
    assert resolve_escript(ClientConfig(escript_path="/bin/escript")) == "/bin/escript"


def test_launch_spec_payload() -> None:
    spec = LaunchSpec(command="escript", args=("els", "--log-level", "none"))
    assert spec.to_payload() == {
        "command": "escript",
        "args": ["els", "--log-level", "none"],
        "transport": "stdio",
    }


def test_verify_executable_success_does_not_notify() -> None:
    run = _RecordingRun(returncode=0, stdout=b"Version: 0.52.0\n")
    messages: list[str] = []
    report = verify_executable("/opt/els", "escript", notify=messages.append, run_fn=run, timeout_seconds=3)
    assert report.ok
    assert report.returncode == 0
    assert report.output == "Version: 0.52.0\n"
    assert messages == []
    argv, kwargs = run.calls[0]
    assert argv == ["escript", "/opt/els", "--version"]
    assert kwargs == {"capture_output": True, "timeout": 3}


def test_verify_executable_nonzero_exit_reports_stdout() -> None:
    run = _RecordingRun(returncode=1, stdout=b"escript: no such file\n")
    messages: list[str] = []
    report = verify_executable("/missing", "escript", notify=messages.append, run_fn=run)
    assert not report.ok
    assert report.returncode == 1
    assert messages == ["Could not start Language Server. Error: escript: no such file\n"]


def test_verify_executable_missing_interpreter_is_reported_not_raised() -> None:
    run = _RecordingRun(raises=FileNotFoundError(2, "No such file or directory", "escript"))
    messages: list[str] = []
    report = verify_executable("/opt/els", "escript", notify=messages.append, run_fn=run)
    assert not report.ok
    assert report.returncode is None
    assert len(messages) == 1
    assert messages[0].startswith("Could not start Language Server. Error: ")


def test_verify_executable_timeout_is_bounded() -> None:
    run = _RecordingRun(raises=subprocess.TimeoutExpired(["escript"], 0.5))
    messages: list[str] = []
    report = verify_executable("/opt/els", "escript", notify=messages.append, run_fn=run, timeout_seconds=0.5)
    assert not report.ok
    assert report.output == "timed out after 0.5s"
    assert messages == ["Could not start Language Server. Error: timed out after 0.5s"]


def test_verify_executable_without_notify() -> None:
    report = verify_executable("/opt/els", "escript", run_fn=_RecordingRun(returncode=3))
    assert report.to_payload() == {"ok": False, "returncode": 3, "output": ""}
