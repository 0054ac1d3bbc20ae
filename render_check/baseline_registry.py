"""Baseline registry — records approved reference images and promotes captures."""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
import time
from pathlib import Path

from PIL import Image

from render_check.models.baseline import BaselineEntry, BaselineRegistry

logger = logging.getLogger(__name__)


def _sha256(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


class BaselineMismatchError(ValueError):
    """Raised when the baseline on disk is not the one that was approved."""


class BaselineRegistryManager:
    """Manages the baseline image and its JSON registry."""

    def __init__(self, registry_path: Path, page: str):
        self.registry_path = registry_path
        self.page = page

    def load(self) -> BaselineRegistry:
        """Load registry from disk, or create a new one."""
        if self.registry_path.exists():
            try:
                with open(self.registry_path) as f:
                    data = json.load(f)
                return BaselineRegistry(**data)
            except Exception as e:
                logger.warning("Failed to load baseline registry: %s. Creating new.", e)
        return BaselineRegistry(page=self.page)

    def save(self, registry: BaselineRegistry) -> None:
        """Persist registry to disk."""
        self.registry_path.parent.mkdir(parents=True, exist_ok=True)
        registry.last_updated = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        with open(self.registry_path, "w") as f:
            json.dump(registry.model_dump(), f, indent=2)
        logger.debug("Saved baseline registry to %s", self.registry_path)

    def _key(self, width: int, height: int) -> str:
        return f"{self.page}@{width}x{height}"

    def get_baseline(self, registry: BaselineRegistry, width: int, height: int) -> BaselineEntry | None:
        entry = registry.baselines.get(self._key(width, height))
        if entry is None:
            return None
        if not (self.registry_path.parent / entry.image_path).exists():
            logger.warning("Baseline image missing for %s", self._key(width, height))
            return None
        return entry

    def verify(self, registry: BaselineRegistry, baseline_path: Path) -> bool:
        """Check that the baseline on disk is the one that was approved.

        Baselines that were never registered are accepted as-is.
        """
        if not baseline_path.exists():
            return False
        with Image.open(baseline_path) as img:
            width, height = img.size
        entry = self.get_baseline(registry, width, height)
        if entry is None:
            return True
        if entry.image_hash != _sha256(baseline_path):
            logger.warning(
                "Baseline %s changed since it was approved at %s",
                baseline_path, entry.approved_at,
            )
            return False
        return True

    def approve(
        self,
        registry: BaselineRegistry,
        capture_path: Path,
        baseline_path: Path,
        run_id: str = "",
    ) -> BaselineEntry:
        """Copy a capture over the baseline and register it."""
        if not capture_path.exists():
            raise FileNotFoundError(f"No capture to approve: {capture_path}")

        baseline_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(capture_path, baseline_path)
        with Image.open(baseline_path) as img:
            width, height = img.size

        try:
            rel_path = str(baseline_path.resolve().relative_to(self.registry_path.parent.resolve()))
        except ValueError:
            rel_path = str(baseline_path.resolve())

        entry = BaselineEntry(
            image_path=rel_path,
            width=width,
            height=height,
            image_hash=_sha256(baseline_path),
            approved_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            source_run_id=run_id,
        )
        registry.baselines[self._key(width, height)] = entry
        logger.info("Approved baseline for %s (%dx%d)", self.page, width, height)
        return entry
