"""Baseline registry data structures."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BaselineEntry(BaseModel):
    image_path: str  # relative to the registry file's directory
    width: int
    height: int
    image_hash: str  # SHA-256 hex digest
    approved_at: str  # ISO timestamp
    source_run_id: str = ""


class BaselineRegistry(BaseModel):
    page: str
    last_updated: str = ""
    baselines: dict[str, BaselineEntry] = Field(default_factory=dict)
    # key format: "{page}@{width}x{height}"
