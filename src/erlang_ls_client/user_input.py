from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Mapping, Optional, TypeAlias

from pydantic import BaseModel, ConfigDict

from erlang_ls_client.logging_config import get_logger
from erlang_ls_client.prompts import PromptSurface, Validator

DEFAULT_PLACEHOLDER = "New name"
USER_INPUT_KEY = "user_input"

_NAME_CHARS = r"[_a-zA-Z0-9@]"
_VARIABLE_RE = re.compile(rf"[A-Z]{_NAME_CHARS}*")
_UNQUOTED_ATOM_RE = re.compile(rf"[a-z]{_NAME_CHARS}*")
_QUOTED_ATOM_RE = re.compile(rf"'{_NAME_CHARS}*'")
_MACRO_RE = re.compile(rf"{_NAME_CHARS}+")

logger = get_logger("user_input")


class InputKind(StrEnum):
    VARIABLE = "variable"
    ATOM = "atom"
    MACRO = "macro"
    FILE = "file"


class UserInputSpec(BaseModel):
    """The ``user_input`` marker a server attaches to a command argument."""

    model_config = ConfigDict(frozen=True)

    type: str
    text: Optional[str] = None
    value: Optional[str] = None

    @property
    def kind(self) -> InputKind | None:
        try:
            return InputKind(self.type)
        except ValueError:
            return None

    @property
    def placeholder(self) -> str:
        return self.text if self.text is not None else DEFAULT_PLACEHOLDER


def _type_name(raw: object) -> str:
    if isinstance(raw, str):
        return raw
    return json.dumps(raw)


def user_input_spec(argument: object) -> UserInputSpec | None:
    if not isinstance(argument, Mapping):
        return None
    raw = argument.get(USER_INPUT_KEY)
    if not isinstance(raw, Mapping) or "type" not in raw:
        return None
    text = raw.get("text")
    value = raw.get("value")
    return UserInputSpec(
        type=_type_name(raw["type"]),
        text=text if isinstance(text, str) else None,
        value=value if isinstance(value, str) else None,
    )


def validate_variable(value: str) -> str | None:
    if _VARIABLE_RE.fullmatch(value) is None:
        return "Name must be a valid Erlang variable name"
    return None


def validate_atom(value: str) -> str | None:
    if _UNQUOTED_ATOM_RE.fullmatch(value) is None and _QUOTED_ATOM_RE.fullmatch(value) is None:
        return "Name must be a valid Erlang atom"
    return None


def validate_macro(value: str) -> str | None:
    if _MACRO_RE.fullmatch(value) is None:
        return "Name must be a valid Erlang macro name"
    return None


@dataclass(frozen=True)
class TextInput:
    validate: Validator

    def collect(self, spec: UserInputSpec, prompts: PromptSurface) -> str | None:
        return prompts.show_input_box(placeholder=spec.placeholder, validate=self.validate)


@dataclass(frozen=True)
class FileInput:
    def collect(self, spec: UserInputSpec, prompts: PromptSurface) -> str | None:
        selection = prompts.show_open_dialog(
            can_select_files=True,
            can_select_folders=False,
            can_select_many=False,
        )
        if not selection:
            return None
        return str(selection[0])


InputHandler: TypeAlias = TextInput | FileInput

INPUT_HANDLERS: Mapping[InputKind, InputHandler] = {
    InputKind.VARIABLE: TextInput(validate_variable),
    InputKind.ATOM: TextInput(validate_atom),
    InputKind.MACRO: TextInput(validate_macro),
    InputKind.FILE: FileInput(),
}


def collect_user_input(spec: UserInputSpec, prompts: PromptSurface) -> str | None:
    """Run one prompt round-trip for ``spec``.

    Returns the collected value, or ``None`` when the user dismissed the
    prompt or the input type is unknown. Unknown types are reported once
    through the error surface; there is no retry loop here.
    """
    kind = spec.kind
    handler = INPUT_HANDLERS.get(kind) if kind is not None else None
    if handler is None:
        logger.info("Unknown user input type %r", spec.type)
        prompts.show_error_message(f"Unknown user input type: {spec.type}")
        return None
    return handler.collect(spec, prompts)
