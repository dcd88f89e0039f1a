"""Toolchain utilities: GROMACS environment sourcing and binary lookup."""
import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, Mapping, Optional

from ..errors import EnvironmentSetupError

logger = logging.getLogger(__name__)


def source_environment(gmxrc: Optional[str], base_env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Return the process environment after sourcing ``gmxrc``.

    ``None`` means the caller's environment already provides GROMACS and it is
    returned unchanged.
    """
    env = dict(base_env if base_env is not None else os.environ)
    if not gmxrc:
        return env

    path = Path(gmxrc)
    if not path.is_file():
        raise EnvironmentSetupError(f"GROMACS environment could not be sourced: {path} not found")

    bash = shutil.which("bash", path=env.get("PATH"))
    if not bash:
        raise EnvironmentSetupError("GROMACS environment could not be sourced: bash not found on PATH")

    res = subprocess.run(
        [bash, "-c", 'source "$1" >/dev/null 2>&1 && env -0', "gmxpipe", str(path)],
        capture_output=True,
        env=env,
    )
    if res.returncode != 0:
        raise EnvironmentSetupError(
            f"GROMACS environment could not be sourced from {path} (rc={res.returncode})"
        )

    sourced: Dict[str, str] = {}
    for entry in res.stdout.split(b"\0"):
        if not entry or b"=" not in entry:
            continue
        key, _, value = entry.partition(b"=")
        sourced[key.decode(errors="replace")] = value.decode(errors="replace")
    logger.info("Sourced GROMACS environment from %s", path)
    return sourced


def find_tool(name: str, env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Check if an external binary is available on PATH, return path or None."""
    path = (env or os.environ).get("PATH")
    return shutil.which(name, path=path)


def require_tool(name: str, env: Optional[Mapping[str, str]] = None) -> str:
    found = find_tool(name, env)
    if not found:
        raise EnvironmentSetupError(f"{name} not found on PATH. Source GMXRC or add GROMACS to PATH.")
    return found
