from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel


class LaunchSpecDTO(BaseModel):
    command: str
    args: List[str]
    transport: str = "stdio"


class LivenessReportDTO(BaseModel):
    ok: bool
    returncode: Optional[int] = None
    output: str = ""


class ExecuteCommandResponseDTO(BaseModel):
    outcome: str
    command: str
    arguments: List[Any] = []
    result: Any = None
