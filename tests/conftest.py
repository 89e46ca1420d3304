from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))


import pytest

DISMISS = object()


@dataclass
class ScriptedPrompts:
    """Prompt surface that replays typed entries.

    Like an editor input box, entries rejected by the validator are never
    returned; the next entry is tried instead. Running out of entries, or
    reaching ``DISMISS``, dismisses the prompt.
    """

    entries: list[object] = field(default_factory=list)
    selection: list[Path] | None = None
    input_boxes: list[dict[str, object]] = field(default_factory=list)
    rejected: list[tuple[str, str]] = field(default_factory=list)
    dialogs: list[dict[str, bool]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def show_input_box(
        self, *, placeholder: str, validate: Callable[[str], str | None]
    ) -> str | None:
        self.input_boxes.append({"placeholder": placeholder})
        while self.entries:
            entry = self.entries.pop(0)
            if entry is DISMISS:
                return None
            assert isinstance(entry, str)
            error = validate(entry)
            if error is None:
                return entry
            self.rejected.append((entry, error))
        return None

    def show_open_dialog(
        self,
        *,
        can_select_files: bool,
        can_select_folders: bool,
        can_select_many: bool,
    ) -> list[Path] | None:
        self.dialogs.append(
            {
                "can_select_files": can_select_files,
                "can_select_folders": can_select_folders,
                "can_select_many": can_select_many,
            }
        )
        return self.selection

    def show_error_message(self, message: str) -> None:
        self.errors.append(message)


@pytest.fixture
def scripted_prompts():
    def _make(
        *entries: object, selection: list[Path] | None = None
    ) -> ScriptedPrompts:
        return ScriptedPrompts(entries=list(entries), selection=selection)

    return _make


@pytest.fixture
def dismiss() -> object:
    return DISMISS


@pytest.fixture
def recording_forward():
    calls: list[tuple[str, list[object]]] = []

    def _forward(command: str, arguments: list[object]) -> dict[str, object]:
        calls.append((command, arguments))
        return {"ok": True}

    _forward.calls = calls  # type: ignore[attr-defined]
    return _forward
