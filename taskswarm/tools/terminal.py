"""
Allowlisted command execution for ``terminalExec`` tool calls
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from taskswarm.config import get_workspace_dir, load_command_allowlist

logger = logging.getLogger(__name__)

MAX_OUTPUT_CHARS = 32_000


class CommandRejected(ValueError):
    """The command, an argument or the working directory is not permitted."""


@dataclass
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str

    def to_dict(self) -> Dict[str, Any]:
        return {"exitCode": self.exit_code, "stdout": self.stdout, "stderr": self.stderr}


def _cap_output(raw: bytes) -> str:
    text = raw.decode("utf-8", errors="replace")
    if len(text) > MAX_OUTPUT_CHARS:
        return text[:MAX_OUTPUT_CHARS] + "\n[output truncated]"
    return text


class CommandExecutor:
    """Runs external commands without a shell, restricted to an allowlist."""

    def __init__(
        self,
        allowlist: Iterable[Mapping[str, Any]] = (),
        workspace_dir: Optional[Path] = None,
    ):
        self._patterns: Dict[str, List[re.Pattern]] = {}
        self.set_allowlist(allowlist)
        self.workspace_dir = Path(workspace_dir).resolve() if workspace_dir else None

    @classmethod
    def from_env(cls) -> "CommandExecutor":
        return cls(load_command_allowlist(), get_workspace_dir())

    def set_allowlist(self, entries: Iterable[Mapping[str, Any]]) -> None:
        compiled: Dict[str, List[re.Pattern]] = {}
        for entry in entries:
            compiled[entry["command"]] = [re.compile(p) for p in entry.get("argsRegex") or []]
        self._patterns = compiled

    @property
    def allowed_commands(self) -> List[str]:
        return list(self._patterns)

    def validate(self, command: str, args: List[str]) -> Tuple[bool, Optional[str]]:
        if command not in self._patterns:
            return False, f"Command not allowlisted: {command}"

        patterns = self._patterns[command]
        if not patterns:
            if args:
                return False, f"Arguments not allowed for {command}"
            return True, None

        for arg in args:
            if not any(p.search(arg) for p in patterns):
                return False, f"Argument not allowed for {command}: {arg}"
        return True, None

    async def execute(
        self, command: str, args: Optional[List[str]] = None, cwd: Optional[str] = None
    ) -> CommandResult:
        args = list(args or [])
        ok, error = self.validate(command, args)
        if not ok:
            raise CommandRejected(error or "Command not allowed")

        resolved_cwd = self._resolve_cwd(cwd)
        logger.info(f"Executing {command} {args} (cwd={resolved_cwd})")

        process = await asyncio.create_subprocess_exec(
            command,
            *args,
            cwd=str(resolved_cwd) if resolved_cwd else None,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        exit_code = process.returncode if process.returncode is not None else -1
        return CommandResult(exit_code=exit_code, stdout=_cap_output(stdout), stderr=_cap_output(stderr))

    def _resolve_cwd(self, cwd: Optional[str]) -> Optional[Path]:
        if not cwd:
            return self.workspace_dir
        target = Path(cwd).expanduser().resolve()
        if self.workspace_dir is None:
            return target
        if target == self.workspace_dir or self.workspace_dir in target.parents:
            return target
        raise CommandRejected("cwd must be inside the workspace directory")
