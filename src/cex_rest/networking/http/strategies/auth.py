"""
Params Digest (Request Signer)

Computes the signature of a canonical request. The generic contract is
HMAC over the canonical pairs rendered as ``k1=v1&k2=v2`` with the body
appended verbatim for body-carrying methods.

The keyed HMAC object is created once at construction and copied for each
digest, so a signer is immutable afterwards and safe to share between
concurrent calls.
"""

import base64
import binascii
import hashlib
import hmac
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union
from urllib.parse import quote

from cex_rest.exceptions import InvalidKey
from ..structs import CanonicalPair, HTTPMethod

_ALGORITHMS = {
    "sha256": hashlib.sha256,
    "sha384": hashlib.sha384,
    "sha512": hashlib.sha512,
}


def render_pairs(pairs: Sequence[CanonicalPair], url_encode: bool = False) -> str:
    """Join canonical pairs as ``key=value`` with ``&`` in their given order."""
    if url_encode:
        return "&".join(f"{quote(k, safe='')}={quote(v, safe='')}" for k, v in pairs)
    return "&".join(f"{k}={v}" for k, v in pairs)


class ParamsDigest(ABC):
    """Pluggable signer consumed by the canonical request builder."""

    @abstractmethod
    def digest(self, canonical_pairs: Sequence[CanonicalPair], body: Optional[str] = None) -> str:
        pass

    def sign(self, method: HTTPMethod, canonical_pairs: Sequence[CanonicalPair],
             body: Optional[str] = None) -> str:
        """Apply the method policy: only body-carrying methods sign their body."""
        return self.digest(canonical_pairs, body if method.carries_body else None)


class HmacParamsDigest(ParamsDigest):
    """
    HMAC signer over the rendered canonical query.

    Args:
        secret: Raw key material (str is UTF-8 encoded)
        algorithm: sha256, sha384 or sha512
        output: 'hex' or 'base64' encoding of the MAC
        url_encode: Percent-encode keys and values before signing
    """

    def __init__(self, secret: Union[str, bytes], algorithm: str = "sha256",
                 output: str = "hex", url_encode: bool = False):
        if algorithm not in _ALGORITHMS:
            raise InvalidKey(f"Unsupported HMAC algorithm: {algorithm}")
        if output not in ("hex", "base64"):
            raise InvalidKey(f"Unsupported signature encoding: {output}")

        key = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)
        if not key:
            raise InvalidKey("HMAC secret is empty")

        try:
            self._mac = hmac.new(key, digestmod=_ALGORITHMS[algorithm])
        except (TypeError, ValueError) as e:
            raise InvalidKey(f"Cannot initialize HMAC-{algorithm}: {e}") from e

        self.algorithm = algorithm
        self.output = output
        self.url_encode = url_encode

    @classmethod
    def from_base64(cls, secret_b64: str, algorithm: str = "sha256",
                    output: str = "hex", url_encode: bool = False) -> 'HmacParamsDigest':
        try:
            key = base64.b64decode(secret_b64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidKey(f"Secret is not valid base64: {e}") from e
        return cls(key, algorithm, output, url_encode)

    def signing_input(self, canonical_pairs: Sequence[CanonicalPair], body: Optional[str] = None) -> str:
        payload = render_pairs(canonical_pairs, self.url_encode)
        if body:
            payload += body
        return payload

    def digest(self, canonical_pairs: Sequence[CanonicalPair], body: Optional[str] = None) -> str:
        mac = self._mac.copy()
        mac.update(self.signing_input(canonical_pairs, body).encode("utf-8"))
        if self.output == "base64":
            return base64.b64encode(mac.digest()).decode("ascii")
        return mac.hexdigest()

    def __repr__(self):
        return f"HmacParamsDigest(algorithm={self.algorithm!r}, output={self.output!r})"
