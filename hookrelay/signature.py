# =============================================================================
# HOOKRELAY - PAYLOAD SIGNATURES
# =============================================================================
"""
Payload Signatures

Computes and checks the HMAC signature GitHub sends along with every
webhook delivery:

    X-Hub-Signature:     sha1=<hex hmac-sha1 of raw body>
    X-Hub-Signature-256: sha256=<hex hmac-sha256 of raw body>

Comparison is constant-time to prevent timing attacks.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Dict, Union

Data = Union[str, bytes, bytearray]


# Supported algorithms and the header each one is delivered in
SIGNATURE_HEADERS: Dict[str, str] = {
    "sha1": "X-Hub-Signature",
    "sha256": "X-Hub-Signature-256",
}

DEFAULT_ALGORITHM = "sha1"


def _to_bytes(data: Data) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def signature_header(algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Return the request header that carries signatures for ``algorithm``."""
    try:
        return SIGNATURE_HEADERS[algorithm]
    except KeyError:
        raise ValueError(f"Unsupported signature algorithm: {algorithm!r}") from None


def sign(secret: str, data: Data, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """
    Sign a payload.

    Args:
        secret: Shared webhook secret
        data: Raw body (str is encoded as UTF-8)
        algorithm: "sha1" or "sha256"

    Returns:
        Signature string, e.g. "sha1=0a1b..."
    """
    signature_header(algorithm)
    digest = hmac.new(
        _to_bytes(secret),
        _to_bytes(data),
        getattr(hashlib, algorithm),
    ).hexdigest()
    return f"{algorithm}={digest}"


def verify(
    secret: str,
    signature: Data,
    data: Data,
    algorithm: str = DEFAULT_ALGORITHM,
) -> bool:
    """
    Check a provided signature against the payload.

    Signatures of different lengths compare as not equal.
    """
    expected = sign(secret, data, algorithm)
    return hmac.compare_digest(_to_bytes(signature), expected.encode("ascii"))


__all__ = [
    "sign",
    "verify",
    "signature_header",
    "SIGNATURE_HEADERS",
    "DEFAULT_ALGORITHM",
]
