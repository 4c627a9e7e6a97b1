"""Locate ``depcycle.toml``.

``DEPCYCLE_CONFIG`` names the file outright. Otherwise the nearest
``depcycle.toml`` in the start directory or any ancestor wins, so running
from a subdirectory of a project picks up the project's file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

CONFIG_FILENAME = "depcycle.toml"
CONFIG_ENV_VAR = "DEPCYCLE_CONFIG"

logger = logging.getLogger(__name__)


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file that applies to *start* (default: cwd), if any."""
    if override := os.environ.get(CONFIG_ENV_VAR):
        path = Path(override)
        if path.is_file():
            return path
        logger.warning("%s points to a missing file: %s", CONFIG_ENV_VAR, path)
        return None

    here = (start or Path.cwd()).resolve()
    return next(
        (d / CONFIG_FILENAME for d in (here, *here.parents) if (d / CONFIG_FILENAME).is_file()),
        None,
    )
