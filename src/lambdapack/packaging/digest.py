"""Content digests used as cache keys and deployment checksums."""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ContentDigest:
    """SHA-256 of an artifact in the encodings callers need.

    ``hex`` is the cache key: lowercase hex is safe in every filesystem and URL.
    ``base64`` is the standard encoding deployment platforms compare against
    (for example a Lambda ``source_code_hash``). ``md5`` is an extra checksum
    some upload APIs still require.
    """

    hex: str
    base64: str
    urlsafe: str
    md5: str

    def __str__(self) -> str:
        return self.hex


def compute_digest(data: bytes) -> ContentDigest:
    sha = hashlib.sha256(data).digest()
    return ContentDigest(
        hex=sha.hex(),
        base64=base64.b64encode(sha).decode("ascii"),
        urlsafe=base64.urlsafe_b64encode(sha).decode("ascii").rstrip("="),
        md5=hashlib.md5(data, usedforsecurity=False).hexdigest(),
    )
