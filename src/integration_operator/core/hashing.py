"""
Deterministic hashing for drift detection.

The monitor action stores a digest on every Integration status. When the
digest recomputed from the current inputs differs from the stored one, the
Integration is reset and goes through kit selection again.

Manifesto:
    - **Deterministic:** same inputs always produce the same digest
    - **Canonical:** mappings are serialized with sorted keys
    - **Order-independent where asked:** unordered inputs are sorted first

Architecture:
    ::

        compute_digest(part, part, ...)
            │  each part → canonical JSON (sort_keys, compact)
            ▼
        sha256( part₁ \\x00 part₂ \\x00 ... )
            │
            ▼
        "v" + urlsafe base64 (no padding)

Examples:
    >>> compute_digest({"b": 1, "a": 2}) == compute_digest({"a": 2, "b": 1})
    True
    >>> compute_digest(["x", "y"]) == compute_digest(["y", "x"])
    False
    >>> compute_digest(sorted_values(["y", "x"])) == compute_digest(sorted_values(["x", "y"]))
    True

Tags:
    hashing, digest, change-detection, integration-operator
"""

from __future__ import annotations

import base64
import hashlib
import json
from collections.abc import Iterable
from typing import Any


def canonical_json(value: Any) -> str:
    """Serialize a value to compact JSON with sorted keys."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def sorted_values(values: Iterable[str]) -> list[str]:
    """Return ``values`` sorted, for inputs whose order carries no meaning."""
    return sorted(values)


def compute_digest(*parts: Any) -> str:
    """
    Compute a digest over an ordered sequence of JSON-serializable parts.

    Args:
        *parts: Values to hash, each serialized with ``canonical_json``

    Returns:
        ``"v"`` followed by the unpadded url-safe base64 of the SHA-256
    """
    hasher = hashlib.sha256()
    for part in parts:
        hasher.update(canonical_json(part).encode())
        hasher.update(b"\x00")
    encoded = base64.urlsafe_b64encode(hasher.digest()).decode().rstrip("=")
    return "v" + encoded


__all__ = ["canonical_json", "sorted_values", "compute_digest"]
