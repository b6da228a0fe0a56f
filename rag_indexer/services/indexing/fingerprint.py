"""Content fingerprints for change detection.

A fingerprint is only ever compared for equality against the one stored at
the last successful write; it is not an integrity or security mechanism.
"""

from __future__ import annotations

import hashlib


def fingerprint(text: str) -> str:
    """Return the SHA-256 hex digest (64 characters) of *text*."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
