# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for Revisar.

The one-time setup before a command does real work:
  1. Validate the environment (Python version)
  2. Set deterministic seeds
  3. Initialize the logger
  4. Ensure the standard directories exist
"""

import os
import random
from pathlib import Path

from revisar.config.schema import GlobalConfig
from revisar.logging.logger import get_logger
from revisar.runtime.environment import check_minimum_python, get_system_info
from revisar.utils.paths import ensure_directory, resolve_project_root


def set_deterministic_seed(seed: int) -> None:
    """
    Lock down the sources of randomness we depend on.

    Clustering itself is deterministic; the seed only pins Python's
    `random` module and hash randomization for any child processes.
    """
    random.seed(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)


def _ensure_project_directories(project_root: Path, config: GlobalConfig) -> None:
    dirs = config.directories
    ensure_directory(project_root / dirs.data)
    ensure_directory(project_root / dirs.logs)


def bootstrap(config: GlobalConfig, project_root: Path | None = None) -> None:
    """
    Run the full bootstrap sequence. Called once at the start of every
    CLI command that has a config.

    Without an explicit project_root the nearest pyproject.toml decides.
    A relative log_file is placed under the project root.
    """
    check_minimum_python()
    set_deterministic_seed(config.seed)

    if project_root is None:
        try:
            project_root = resolve_project_root()
        except RuntimeError:
            project_root = None

    log_file = None
    if config.log_file is not None:
        log_file = Path(config.log_file)
        if project_root is not None and not log_file.is_absolute():
            log_file = project_root / log_file

    logger = get_logger("revisar.runtime", log_level=config.log_level, log_file=log_file)

    system_info = get_system_info()
    logger.info(
        "Revisar bootstrap complete",
        extra={
            "seed": config.seed,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "git_version": system_info.git_version,
        },
    )

    if project_root is None:
        logger.warning("Could not resolve project root, skipping directory creation")
        return
    _ensure_project_directories(project_root, config)
