from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from typing import Awaitable, Callable, Mapping, Sequence, TypeAlias

from erlang_ls_client.json_types import JSONValue
from erlang_ls_client.logging_config import get_logger
from erlang_ls_client.prompts import PromptSurface
from erlang_ls_client.user_input import (
    USER_INPUT_KEY,
    collect_user_input,
    user_input_spec,
)

WRANGLER_FAMILY_PREFIX = "wrangler-"

logger = get_logger("middleware")

Continuation: TypeAlias = Callable[[str, list[JSONValue]], object]
AsyncContinuation: TypeAlias = Callable[[str, list[JSONValue]], Awaitable[object]]


@dataclass(frozen=True)
class CommandRequest:
    command: str
    arguments: tuple[JSONValue, ...] = ()

    @classmethod
    def of(cls, command: str, arguments: Sequence[JSONValue] | None) -> CommandRequest:
        return cls(command=command, arguments=tuple(arguments or ()))


@dataclass(frozen=True)
class Forward:
    request: CommandRequest


@dataclass(frozen=True)
class Abort:
    request: CommandRequest


Decision: TypeAlias = Forward | Abort


class Outcome(StrEnum):
    FORWARDED = "forwarded"
    ABORTED = "aborted"


@dataclass(frozen=True)
class Interception:
    outcome: Outcome
    request: CommandRequest
    result: object = None


def command_family(command: str) -> str | None:
    segments = command.split(":")
    if len(segments) < 2:
        return None
    return segments[1]


def is_interactive(request: CommandRequest) -> bool:
    family = command_family(request.command)
    if family is None or not family.startswith(WRANGLER_FAMILY_PREFIX):
        return False
    if not request.arguments:
        return False
    return user_input_spec(request.arguments[0]) is not None


def with_user_value(request: CommandRequest, value: str) -> CommandRequest:
    first = request.arguments[0]
    assert isinstance(first, Mapping)
    marker = first[USER_INPUT_KEY]
    assert isinstance(marker, Mapping)
    updated = dict(first)
    updated[USER_INPUT_KEY] = {**marker, "value": value}
    return CommandRequest(
        command=request.command,
        arguments=(updated, *request.arguments[1:]),
    )


def decide(request: CommandRequest, prompts: PromptSurface) -> Decision:
    """Decide whether ``request`` goes to the server, collecting input first.

    Requests that do not ask for user input are forwarded as the very same
    object. A dismissed prompt or an unknown input type yields ``Abort``.
    """
    if not is_interactive(request):
        logger.debug("Passing through %s", request.command)
        return Forward(request)
    spec = user_input_spec(request.arguments[0])
    assert spec is not None
    value = collect_user_input(spec, prompts)
    if value is None:
        logger.debug("Aborted %s: no %s value collected", request.command, spec.type)
        return Abort(request)
    logger.debug("Collected %s value for %s", spec.type, request.command)
    return Forward(with_user_value(request, value))


def _outgoing_arguments(
    forwarded: CommandRequest,
    original: CommandRequest,
    arguments: Sequence[JSONValue] | None,
) -> list[JSONValue]:
    # Untouched requests hand the caller's own list to the server.
    if forwarded is original and isinstance(arguments, list):
        return arguments
    return list(forwarded.arguments)


def intercept(
    command: str,
    arguments: Sequence[JSONValue] | None,
    forward: Continuation,
    prompts: PromptSurface,
) -> Interception:
    request = CommandRequest.of(command, arguments)
    decision = decide(request, prompts)
    if isinstance(decision, Abort):
        return Interception(Outcome.ABORTED, decision.request)
    forwarded = decision.request
    result = forward(forwarded.command, _outgoing_arguments(forwarded, request, arguments))
    return Interception(Outcome.FORWARDED, forwarded, result)


async def intercept_async(
    command: str,
    arguments: Sequence[JSONValue] | None,
    forward: AsyncContinuation,
    prompts: PromptSurface,
) -> Interception:
    request = CommandRequest.of(command, arguments)
    if is_interactive(request):
        # Prompts block on the terminal; keep the event loop serving the server.
        decision = await asyncio.to_thread(decide, request, prompts)
    else:
        decision = decide(request, prompts)
    if isinstance(decision, Abort):
        return Interception(Outcome.ABORTED, decision.request)
    forwarded = decision.request
    result = await forward(
        forwarded.command, _outgoing_arguments(forwarded, request, arguments)
    )
    return Interception(Outcome.FORWARDED, forwarded, result)
