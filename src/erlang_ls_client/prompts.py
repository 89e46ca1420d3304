from __future__ import annotations

from pathlib import Path
from typing import Callable, Protocol

import typer

Validator = Callable[[str], "str | None"]


class PromptSurface(Protocol):
    """Interactive primitives the middleware consumes but does not own."""

    def show_input_box(self, *, placeholder: str, validate: Validator) -> str | None:
        """Return the submitted text, or ``None`` when the prompt is dismissed.

        Implementations must refuse to return a value for which ``validate``
        yields an error message.
        """
        ...

    def show_open_dialog(
        self,
        *,
        can_select_files: bool,
        can_select_folders: bool,
        can_select_many: bool,
    ) -> list[Path] | None: ...

    def show_error_message(self, message: str) -> None: ...


class TerminalPrompts:
    """Prompt surface backed by typer prompts on the controlling terminal."""

    def __init__(self, *, err: bool = True) -> None:
        self.err = err

    def show_input_box(self, *, placeholder: str, validate: Validator) -> str | None:
        def _value_proc(raw: str) -> str:
            error = validate(raw)
            if error is not None:
                raise typer.BadParameter(error)
            return raw

        try:
            return typer.prompt(placeholder, value_proc=_value_proc, err=self.err)
        except typer.Abort:
            return None

    def show_open_dialog(
        self,
        *,
        can_select_files: bool = True,
        can_select_folders: bool = False,
        can_select_many: bool = False,
    ) -> list[Path] | None:
        def _value_proc(raw: str) -> str:
            if not raw.strip():
                return ""
            path = Path(raw.strip()).expanduser()
            if not path.exists():
                raise typer.BadParameter(f"No such file: {path}")
            if path.is_dir() and not can_select_folders:
                raise typer.BadParameter(f"Not a file: {path}")
            if path.is_file() and not can_select_files:
                raise typer.BadParameter(f"Not a folder: {path}")
            return str(path.resolve())

        label = "File" if can_select_files else "Folder"
        try:
            raw = typer.prompt(
                f"{label} (leave empty to cancel)",
                default="",
                show_default=False,
                value_proc=_value_proc,
                err=self.err,
            )
        except typer.Abort:
            return None
        if not raw:
            return None
        # One path per prompt, even when many are allowed.
        return [Path(raw)]

    def show_error_message(self, message: str) -> None:
        typer.secho(message, err=True, fg=typer.colors.RED)
