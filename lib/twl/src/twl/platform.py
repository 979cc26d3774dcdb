"""Target operating systems and their script conventions."""

from __future__ import annotations

import sys
from enum import Enum
from typing import Tuple


class TargetOS(str, Enum):
    """Operating system a collection is written for."""

    MACOS = "macos"
    LINUX = "linux"
    WINDOWS = "windows"

    @classmethod
    def current(cls) -> "TargetOS":
        """Return the TargetOS of the running system.

        Raises:
            ValueError: If the running system is not supported.
        """
        if sys.platform == "darwin":
            return cls.MACOS
        if sys.platform.startswith("linux"):
            return cls.LINUX
        if sys.platform in ("win32", "cygwin"):
            return cls.WINDOWS
        raise ValueError(f"Unsupported operating system: {sys.platform}")

    @property
    def comment_prefix(self) -> str:
        return "::" if self is TargetOS.WINDOWS else "#"

    @property
    def line_ending(self) -> str:
        return "\r\n" if self is TargetOS.WINDOWS else "\n"

    @property
    def shebang(self) -> str:
        return "@echo off" if self is TargetOS.WINDOWS else "#!/usr/bin/env bash"

    @property
    def file_extension(self) -> str:
        return "bat" if self is TargetOS.WINDOWS else "sh"

    @property
    def interpreter(self) -> Tuple[str, ...]:
        """Command prefix used to execute a script file for this OS."""
        if self is TargetOS.WINDOWS:
            return ("cmd.exe", "/c")
        return ("bash",)

    def __str__(self) -> str:
        return self.value
