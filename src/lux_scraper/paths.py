from __future__ import annotations

import os
from pathlib import Path


def project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def data_root(root_override: Path | None = None) -> Path:
    if root_override is not None:
        return root_override
    env_root = os.environ.get("LUX_DATA_ROOT")
    if env_root:
        return Path(env_root)
    return project_root() / "data"


def ensure_data_dirs(root: Path) -> None:
    (root / "logs").mkdir(parents=True, exist_ok=True)
    (root / "failures").mkdir(parents=True, exist_ok=True)
