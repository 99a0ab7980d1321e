"""
Secret Primitives — Password digests and random token generation.

- hash: PBKDF2-HMAC-SHA256(plaintext, configured salt) → hex digest
- gen_token: URL-safe random string (reset tokens, scratch tokens)
- gen_key: base32 random string (two-factor shared key)

The ``digest`` and ``matches`` coroutines run the KDF in the default
executor, off the event loop.

Security Note:
    Never log plaintext, digests or generated tokens.
    Digests are deterministic for a given salt so they can be compared
    against stored values; the salt is service-wide configuration.
"""
import hmac
import base64
import asyncio
import secrets

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .conf import PrimitivesConfig

DIGEST_LENGTH = 32  # SHA-256
TOKEN_BYTES = 32
KEY_BYTES = 20  # 160-bit, the usual size for TOTP shared secrets


class SecretPrimitives:
    """Hashing and random-token capability used by the Credential Manager."""

    def __init__(self, config: PrimitivesConfig):
        self._salt = config.salt
        self._iterations = config.iterations

    def hash(self, plaintext: str) -> str:
        """Derive a deterministic one-way digest of a secret.

        Args:
            plaintext: password or token to digest.

        Returns:
            Hex-encoded digest.
        """
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=DIGEST_LENGTH,
            salt=self._salt,
            iterations=self._iterations,
        )
        return kdf.derive(plaintext.encode("utf-8")).hex()

    def verify(self, plaintext: str, digest: str) -> bool:
        """Constant-time comparison of ``hash(plaintext)`` against a digest."""
        return self.equals(self.hash(plaintext), digest)

    async def digest(self, plaintext: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.hash, plaintext)

    async def matches(self, plaintext: str, digest: str) -> bool:
        """Non-blocking ``verify``."""
        return self.equals(await self.digest(plaintext), digest)

    @staticmethod
    def equals(left: str, right: str) -> bool:
        return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))

    @staticmethod
    def gen_token() -> str:
        return secrets.token_urlsafe(TOKEN_BYTES)

    @staticmethod
    def gen_key() -> str:
        raw = secrets.token_bytes(KEY_BYTES)
        return base64.b32encode(raw).decode("ascii")
