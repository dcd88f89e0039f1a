"""Default simulation-parameter (.mdp) files shipped with the package."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .settings import PipelineConfig

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"

# config.inputs.mdp attribute -> bundled template
TEMPLATES = {
    "ions": "ions.mdp",
    "em": "EM.mdp",
    "nvt": "NVT.mdp",
    "npt": "NPT.mdp",
    "md": "MD.mdp",
}
DEFAULT_RUN_TIME_TOKEN = "md_run_time"


def write_templates(config: PipelineConfig, overwrite: bool = False) -> List[Path]:
    """Copy the bundled .mdp files into the working directory.

    Existing files are kept unless ``overwrite`` is set. Returns the files written.
    """
    config.workdir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for attr, template in TEMPLATES.items():
        dest = config.path(getattr(config.inputs.mdp, attr))
        if dest.exists() and not overwrite:
            logger.info("Keeping existing %s", dest)
            continue
        text = (TEMPLATE_DIR / template).read_text()
        if attr == "md" and config.system.run_time_token != DEFAULT_RUN_TIME_TOKEN:
            text = text.replace(DEFAULT_RUN_TIME_TOKEN, config.system.run_time_token)
        dest.write_text(text)
        written.append(dest)
        logger.info("Wrote %s", dest)
    return written
