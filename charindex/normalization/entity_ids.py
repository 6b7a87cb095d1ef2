"""Stable entity identifiers."""

from __future__ import annotations

import re

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def generate_entity_id(canonical_name: str) -> str:
    """Derive an id from a canonical name: `"Mr. Dursley"` -> `"mr_dursley"`."""
    return _NON_ALNUM_RE.sub("_", canonical_name.lower()).strip("_")
