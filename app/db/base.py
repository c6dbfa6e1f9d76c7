"""ORM nexus. Auto-discover models."""

from __future__ import annotations

import importlib
import os
import logging
from pathlib import Path

from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base mold."""
    pass


def discover_feature_models() -> int:
    """Import every ``app.features.*.models`` module so Base.metadata is populated."""
    if os.getenv("SKIP_MODEL_DISCOVERY", "false").lower() == "true":
        logger.info("Skip sweep (env flag).")
        return 0

    root = Path(__file__).resolve().parent.parent  # app/
    features_dir = root / "features"
    if not features_dir.is_dir():
        logger.warning("No features dir: %s", features_dir)
        return 0

    # Feature folders are namespace packages, so walk files instead of pkgutil.
    discovered = 0
    for path in sorted(features_dir.rglob("models.py")):
        rel = path.relative_to(root).with_suffix("")
        importlib.import_module(".".join(("app",) + rel.parts))
        discovered += 1
    logger.debug("Discovered %d model modules", discovered)
    return discovered


def list_models() -> list[str]:
    """List model names."""
    return sorted(
        cls.__name__
        for cls in Base.registry._class_registry.values()
        if hasattr(cls, "__table__")
    )
