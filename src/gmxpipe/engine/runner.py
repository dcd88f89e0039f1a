"""
Uniform wrapper around external tool invocations (``gmx``, ``xmgrace``).

Every call returns a :class:`ToolResult`; nothing here raises on a non-zero
exit. Whether a failure stops the pipeline is decided by the caller.
"""
from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND = 127


@dataclass
class ToolResult:
    """Outcome of one external command."""

    argv: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0
    skipped: bool = False
    log_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command(self) -> str:
        return " ".join(self.argv)

    def to_dict(self) -> Dict[str, object]:
        return {
            "command": self.command,
            "returncode": self.returncode,
            "duration_sec": round(self.duration, 3),
            "skipped": self.skipped,
            "log": str(self.log_path) if self.log_path else None,
        }


@dataclass
class CommandRunner:
    """Run commands one at a time in ``workdir`` and log each of them."""

    workdir: Path = Path(".")
    env: Optional[Dict[str, str]] = None
    log_dir: Optional[Path] = None
    dry_run: bool = False
    history: List[ToolResult] = field(default_factory=list)

    def _log_path(self, log_name: Optional[str]) -> Optional[Path]:
        if self.log_dir is None:
            return None
        name = log_name or "command"
        return Path(self.log_dir) / f"{len(self.history) + 1:02d}-{name}.log"

    def _write_log(self, path: Optional[Path], res: ToolResult, stdin_text: Optional[str]) -> None:
        if path is None:
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            "CMD: " + res.command + "\nRC: " + str(res.returncode)
            + ("\n--- STDIN ---\n" + stdin_text if stdin_text else "")
            + "\n--- STDOUT ---\n" + res.stdout + "\n--- STDERR ---\n" + res.stderr + "\n",
            encoding="utf-8",
        )

    def run(
        self,
        argv: Sequence[str],
        stdin: Optional[Sequence[str]] = None,
        log_name: Optional[str] = None,
        interactive: bool = False,
    ) -> ToolResult:
        """Run ``argv`` to completion.

        ``stdin`` holds the answers for the tool's prompts, one per line.
        ``interactive`` hands the terminal to the tool instead (no capture).
        """
        argv = [str(a) for a in argv]
        stdin_text = "\n".join(stdin) + "\n" if stdin is not None else None
        log_path = self._log_path(log_name)
        logger.info("Running: %s", " ".join(argv))

        if self.dry_run:
            res = ToolResult(argv=argv, returncode=0, skipped=True, log_path=log_path)
            logger.info("[dry-run] skipped: %s", res.command)
            self._write_log(log_path, res, stdin_text)
            self.history.append(res)
            return res

        start = time.time()
        try:
            if interactive and stdin_text is None:
                proc = subprocess.run(argv, cwd=str(self.workdir), env=self.env)
                stdout, stderr = "", ""
            else:
                proc = subprocess.run(
                    argv,
                    cwd=str(self.workdir),
                    env=self.env,
                    input=stdin_text,
                    stdin=subprocess.DEVNULL if stdin_text is None else None,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    capture_output=True,
                )
                stdout, stderr = proc.stdout or "", proc.stderr or ""
            rc = proc.returncode
        except FileNotFoundError:
            rc, stdout, stderr = COMMAND_NOT_FOUND, "", f"{argv[0]}: command not found"
        except PermissionError as exc:
            rc, stdout, stderr = 126, "", f"{argv[0]}: {exc}"

        res = ToolResult(
            argv=argv,
            returncode=rc,
            stdout=stdout,
            stderr=stderr,
            duration=time.time() - start,
            log_path=log_path,
        )
        self._write_log(log_path, res, stdin_text)
        self.history.append(res)
        if res.ok:
            logger.info("Finished in %.1fs: %s", res.duration, res.command)
        else:
            logger.error("Command failed (%d): %s", res.returncode, res.command)
        return res
