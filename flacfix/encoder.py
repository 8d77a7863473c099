from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from .models import EncoderFailure


class OutputMode(str, Enum):
    QUIET = "quiet"
    PASS_THROUGH = "pass-through"
    CAPTURE_ON_FAILURE = "capture-on-failure"


def _streams(mode: OutputMode) -> Tuple[Optional[int], Optional[int]]:
    if mode is OutputMode.PASS_THROUGH:
        return None, None
    if mode is OutputMode.QUIET:
        return subprocess.DEVNULL, subprocess.DEVNULL
    return subprocess.DEVNULL, subprocess.PIPE


@dataclass
class Encoder:
    """External transcoder invoked as ``<command...> <source> <destination>``."""

    command: List[str] = field(default_factory=lambda: ["opusenc"])
    output_mode: OutputMode = OutputMode.CAPTURE_ON_FAILURE

    @property
    def executable(self) -> str:
        return self.command[0]

    def available(self) -> bool:
        return shutil.which(self.executable) is not None

    def encode(self, source: Path, destination: Path) -> None:
        stdout, stderr = _streams(self.output_mode)
        args = [*self.command, str(source), str(destination)]
        try:
            proc = subprocess.run(
                args,
                stdin=subprocess.DEVNULL,
                stdout=stdout,
                stderr=stderr,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as exc:
            raise EncoderFailure(source, None, str(exc)) from exc
        if proc.returncode != 0:
            raise EncoderFailure(source, proc.returncode, proc.stderr or "")
