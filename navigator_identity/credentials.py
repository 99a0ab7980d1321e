"""
CredentialManager — password and two-factor lifecycle of a user.

Provides the public API of the Credential Manager:
- ``verify_password(userid, password)`` — check a password against its hash
- ``reset_password(userid)`` — issue a reset token (latest wins)
- ``create_password(userid, new_password, old_password, token)`` — set or
  rotate a password, authorized by one of three proofs
- ``verify_token(userid, tfa_token)`` — check a two-factor scratch token
- ``create_token(userid)`` — issue a new two-factor key and scratch tokens

Security Note:
    Never log passwords, digests, reset tokens or scratch tokens.
    Only log user IDs and operation names.
"""
import logging
from typing import Optional
from dataclasses import dataclass, field

from .conf import SCRATCH_TOKEN_COUNT, CredentialsConfig
from .exceptions import Unauthorized
from .primitives import SecretPrimitives
from .storage import AttributeStore

logger = logging.getLogger("navigator.identity")


@dataclass
class TfaEnrollment:
    """Result of ``create_token``: the only time plaintext tokens are seen."""
    key: str
    scratch_tokens: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"key": self.key, "scratch_tokens": list(self.scratch_tokens)}


class CredentialManager:
    """Password, reset-token and two-factor state of users.

    Every operation is a short sequence of awaited round trips to the
    attribute store; there is no in-process state besides configuration.
    """

    def __init__(
        self,
        store: AttributeStore,
        primitives: SecretPrimitives,
        config: Optional[CredentialsConfig] = None,
    ):
        self._store = store
        self._primitives = primitives
        self._config = config or CredentialsConfig()

    # ------------------------------------------------------------------
    # Record lookups
    # ------------------------------------------------------------------

    async def _fetch(self, table, userid: str, projection: list[str]) -> Optional[dict]:
        rows = await self._store.get(
            table, {"userid": userid}, projection=projection, limit=1,
        )
        if not rows:
            return None
        return rows[0]

    async def _password_hash(self, userid: str) -> Optional[str]:
        """Return the stored password hash, None when no live record exists."""
        record = await self._fetch(
            self._config.passwords, userid, ["pass_hash", "deleted"],
        )
        if record is None or record.get("deleted"):
            return None
        return record.get("pass_hash")

    async def _reset_token(self, userid: str) -> Optional[str]:
        record = await self._fetch(
            self._config.reset_tokens, userid, ["reset_token"],
        )
        return record.get("reset_token") if record else None

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    async def verify_password(self, userid: str, password: str) -> None:
        """Check ``password`` against the stored hash.

        Raises:
            Unauthorized: no password set, or the password does not match.
        """
        pass_hash = await self._password_hash(userid)
        if pass_hash is None or not await self._primitives.matches(password, pass_hash):
            logger.debug("Password verification failed: user=%s", userid)
            raise Unauthorized()

    async def reset_password(self, userid: str) -> str:
        """Issue a fresh reset token for ``userid``.

        Any previously issued token is overwritten and stops working.

        Returns:
            The reset token.
        """
        token = self._primitives.gen_token()
        await self._store.put(
            self._config.reset_tokens,
            {"userid": userid, "reset_token": token},
        )
        logger.info("Password reset requested: user=%s", userid)
        return token

    async def _authorize_password_change(
        self,
        userid: str,
        old_password: Optional[str],
        token: Optional[str],
    ) -> str:
        """Return the proof that allows the change, or raise Unauthorized."""
        pass_hash = await self._password_hash(userid)
        if pass_hash is None:
            return "first_time"
        if old_password is not None and await self._primitives.matches(
            old_password, pass_hash
        ):
            return "old_password"
        if token is not None:
            reset_token = await self._reset_token(userid)
            if reset_token is not None and self._primitives.equals(token, reset_token):
                return "reset_token"
        raise Unauthorized()

    async def create_password(
        self,
        userid: str,
        new_password: str,
        old_password: Optional[str] = None,
        token: Optional[str] = None,
    ) -> None:
        """Set or rotate the password of ``userid``.

        Allowed when no password is set yet, when ``old_password`` matches
        the stored hash, or when ``token`` matches the outstanding reset
        token, checked in that order.

        Raises:
            Unauthorized: none of the proofs holds; nothing is written.
        """
        try:
            proof = await self._authorize_password_change(
                userid, old_password, token,
            )
        except Unauthorized:
            logger.debug("Password change refused: user=%s", userid)
            raise
        await self._store.put(
            self._config.passwords,
            {
                "userid": userid,
                "pass_hash": await self._primitives.digest(new_password),
                "deleted": False,
            },
        )
        logger.info("Password set: user=%s proof=%s", userid, proof)

    # ------------------------------------------------------------------
    # Two-factor
    # ------------------------------------------------------------------

    async def verify_token(self, userid: str, tfa_token: str) -> None:
        """Check a scratch token against the enrolled set.

        Raises:
            Unauthorized: no enrollment, or the token is not in the set.
        """
        record = await self._fetch(self._config.tfa, userid, ["key", "tokens"])
        tokens = list(record.get("tokens") or []) if record else []
        digest = await self._primitives.digest(tfa_token)
        if digest not in tokens:
            logger.debug("Scratch token verification failed: user=%s", userid)
            raise Unauthorized()
        if self._config.consume_scratch_tokens:
            tokens.remove(digest)
            await self._store.put(
                self._config.tfa,
                {"userid": userid, "key": record["key"], "tokens": tokens},
            )
            logger.info(
                "Scratch token consumed: user=%s remaining=%d",
                userid, len(tokens),
            )

    async def create_token(self, userid: str) -> TfaEnrollment:
        """Enroll ``userid`` in two-factor, replacing any previous enrollment.

        Returns:
            The new key and the plaintext scratch tokens.
        """
        key = self._primitives.gen_key()
        scratch_tokens: list[str] = []
        while len(scratch_tokens) < SCRATCH_TOKEN_COUNT:
            token = self._primitives.gen_token()
            if token not in scratch_tokens:
                scratch_tokens.append(token)
        await self._store.put(
            self._config.tfa,
            {
                "userid": userid,
                "key": key,
                "tokens": [
                    await self._primitives.digest(t) for t in scratch_tokens
                ],
            },
        )
        logger.info("Two-factor enrollment created: user=%s", userid)
        return TfaEnrollment(key=key, scratch_tokens=scratch_tokens)
