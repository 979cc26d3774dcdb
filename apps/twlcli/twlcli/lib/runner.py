"""Executes assembled scripts on the local machine."""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from typing import Sequence

from twl.platform import TargetOS

log = logging.getLogger(__name__)


class ScriptRunner:
    """Run a script through the target OS interpreter.

    The script is written to a temp file and executed with the
    interpreter command, e.g. `bash /tmp/twl_xxx.sh`. The file is removed
    afterwards whatever the outcome.
    """

    def __init__(self, target: TargetOS, interpreter: Sequence[str] | None = None):
        self.target = target
        self.interpreter = tuple(interpreter) if interpreter else target.interpreter

    def run(self, script: str, extension: str | None = None) -> int:
        """Execute `script` and return its exit status."""
        suffix = f".{extension or self.target.file_extension}"
        # newline="" keeps the script's own line endings
        with tempfile.NamedTemporaryFile(
            mode="w",
            suffix=suffix,
            delete=False,
            prefix="twl_",
            encoding="utf-8",
            newline="",
        ) as f:
            f.write(script)
            script_path = f.name

        try:
            if self.target is not TargetOS.WINDOWS:
                os.chmod(script_path, 0o755)
            cmd = [*self.interpreter, script_path]
            log.info("Running %s", " ".join(cmd))
            result = subprocess.run(cmd)
            return result.returncode
        finally:
            os.unlink(script_path)
