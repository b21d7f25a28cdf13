"""Content hashes for the manifest and for CSP / SRI attributes.

Digests are recomputed on every call; the stylesheet keeps growing while
fonts are processed, so nothing is cached.
"""

from __future__ import annotations

import base64
from pathlib import Path

from fontpack.tools import Digester, Sha256Digester

HASH_ALGORITHM = "sha256"

_DEFAULT_DIGESTER = Sha256Digester()


def hash_hex(path: Path, digester: Digester = _DEFAULT_DIGESTER) -> str:
    """Lowercase hex digest of ``path``, as used for the manifest checksum."""
    return digester.digest(path).hex()


def hash_base64(path: Path, digester: Digester = _DEFAULT_DIGESTER) -> str:
    """Standard base64 digest of ``path``, as used in CSP and SRI values."""
    return base64.b64encode(digester.digest(path)).decode("ascii")


def csp_source(b64_digest: str) -> str:
    """Render a hash source expression, e.g. ``sha256-AbC...=``."""
    return f"{HASH_ALGORITHM}-{b64_digest}"
