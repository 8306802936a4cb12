from __future__ import annotations

import logging
import sys
from pathlib import Path


def _ensure_repo_root_on_path() -> None:
    """Ensure the repository root (parent of this package) is on ``sys.path``.

    Running ``python hanzi_trainer/__main__.py`` directly leaves the package
    undiscoverable; inserting its parent directory makes the imports resolve.
    """
    repo_root_str = str(Path(__file__).resolve().parent.parent)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


try:
    # Works when executed as a module: python -m hanzi_trainer
    from .app import run  # type: ignore[attr-defined]
    from .config import TrainerConfig  # type: ignore[attr-defined]
except ImportError:
    # Works when executed as a script (IDE "Run Python File", absolute path, etc.)
    _ensure_repo_root_on_path()
    from hanzi_trainer.app import run  # type: ignore[attr-defined]
    from hanzi_trainer.config import TrainerConfig  # type: ignore[attr-defined]


def main() -> int:
    """Entry point for running the trainer from the command line."""
    config = TrainerConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    return run(config=config)


if __name__ == "__main__":
    raise SystemExit(main())
