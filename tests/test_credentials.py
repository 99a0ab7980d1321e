"""
Tests for CredentialManager.

Tests cover:
- First-time password set and verification
- Rotation with the old password
- Reset tokens: latest wins, bypass of the old password
- Refused changes leave the stored hash unchanged
- Two-factor enrollment and scratch-token verification
"""
import pytest

from navigator_identity.conf import CredentialsConfig
from navigator_identity.credentials import CredentialManager, TfaEnrollment
from navigator_identity.exceptions import Unauthorized


async def stored_hash(store, config, userid):
    rows = await store.get(config.credentials.passwords, {'userid': userid})
    return rows[0]['pass_hash'] if rows else None


# --- Passwords ---

class TestPasswords:
    """Tests for password verification and rotation."""

    @pytest.mark.asyncio
    async def test_verify_without_password(self, credentials):
        """Test that a user without a password cannot verify."""
        with pytest.raises(Unauthorized):
            await credentials.verify_password('alice', 'secret')

    @pytest.mark.asyncio
    async def test_first_time_set(self, credentials):
        """Test first-time set followed by verification."""
        await credentials.create_password('alice', 'secret')
        await credentials.verify_password('alice', 'secret')

    @pytest.mark.asyncio
    async def test_wrong_password(self, credentials):
        """Test that a different password is refused."""
        await credentials.create_password('alice', 'secret')
        with pytest.raises(Unauthorized):
            await credentials.verify_password('alice', 'not-the-secret')

    @pytest.mark.asyncio
    async def test_password_is_stored_hashed(self, credentials, store, config, primitives):
        """Test that only the digest is persisted."""
        await credentials.create_password('alice', 'secret')
        digest = await stored_hash(store, config, 'alice')
        assert digest != 'secret'
        assert digest == primitives.hash('secret')

    @pytest.mark.asyncio
    async def test_rotation_with_old_password(self, credentials):
        """Test rotation authorized by the current password."""
        await credentials.create_password('alice', 'secret')
        await credentials.create_password('alice', 'new-secret', old_password='secret')
        await credentials.verify_password('alice', 'new-secret')
        with pytest.raises(Unauthorized):
            await credentials.verify_password('alice', 'secret')

    @pytest.mark.asyncio
    async def test_rotation_without_proof(self, credentials, store, config):
        """Test that a change without proof is refused and writes nothing."""
        await credentials.create_password('alice', 'secret')
        before = await stored_hash(store, config, 'alice')
        with pytest.raises(Unauthorized):
            await credentials.create_password('alice', 'hijack')
        with pytest.raises(Unauthorized):
            await credentials.create_password(
                'alice', 'hijack', old_password='wrong', token='wrong',
            )
        assert await stored_hash(store, config, 'alice') == before
        await credentials.verify_password('alice', 'secret')

    @pytest.mark.asyncio
    async def test_users_are_independent(self, credentials):
        """Test that passwords are kept per userid."""
        await credentials.create_password('alice', 'secret')
        await credentials.create_password('bob', 'other')
        with pytest.raises(Unauthorized):
            await credentials.verify_password('bob', 'secret')

    @pytest.mark.asyncio
    async def test_deleted_record_counts_as_absent(self, credentials, store, config):
        """Test that a record flagged deleted allows a first-time set."""
        await credentials.create_password('alice', 'secret')
        await store.put(
            config.credentials.passwords, {'userid': 'alice', 'deleted': True},
        )
        with pytest.raises(Unauthorized):
            await credentials.verify_password('alice', 'secret')
        await credentials.create_password('alice', 'fresh')
        await credentials.verify_password('alice', 'fresh')


# --- Reset Tokens ---

class TestResetTokens:
    """Tests for the reset-token bypass path."""

    @pytest.mark.asyncio
    async def test_reset_returns_token(self, credentials):
        """Test that a reset returns a non-empty opaque token."""
        token = await credentials.reset_password('alice')
        assert isinstance(token, str)
        assert token

    @pytest.mark.asyncio
    async def test_reset_bypasses_old_password(self, credentials):
        """Test that the reset token replaces the old password as proof."""
        await credentials.create_password('alice', 'forgotten')
        token = await credentials.reset_password('alice')
        await credentials.create_password('alice', 'recovered', token=token)
        await credentials.verify_password('alice', 'recovered')

    @pytest.mark.asyncio
    async def test_new_reset_invalidates_previous_token(self, credentials):
        """Test latest-wins: a fresh reset overwrites the outstanding token."""
        await credentials.create_password('alice', 'secret')
        first = await credentials.reset_password('alice')
        second = await credentials.reset_password('alice')
        assert first != second
        with pytest.raises(Unauthorized):
            await credentials.create_password('alice', 'other', token=first)
        await credentials.create_password('alice', 'other', token=second)
        await credentials.verify_password('alice', 'other')

    @pytest.mark.asyncio
    async def test_token_of_another_user(self, credentials):
        """Test that a token only works for the user it was issued to."""
        await credentials.create_password('alice', 'secret')
        token = await credentials.reset_password('bob')
        with pytest.raises(Unauthorized):
            await credentials.create_password('alice', 'other', token=token)

    @pytest.mark.asyncio
    async def test_token_is_not_invalidated_by_use(self, credentials):
        """Test that using a token does not consume it."""
        await credentials.create_password('alice', 'secret')
        token = await credentials.reset_password('alice')
        await credentials.create_password('alice', 'one', token=token)
        await credentials.create_password('alice', 'two', token=token)
        await credentials.verify_password('alice', 'two')


# --- Two-Factor ---

class TestTwoFactor:
    """Tests for scratch-token issuance and verification."""

    @pytest.mark.asyncio
    async def test_create_token(self, credentials):
        """Test that enrollment returns a key and five distinct tokens."""
        enrollment = await credentials.create_token('alice')
        assert isinstance(enrollment, TfaEnrollment)
        assert enrollment.key
        assert len(enrollment.scratch_tokens) == 5
        assert len(set(enrollment.scratch_tokens)) == 5

    @pytest.mark.asyncio
    async def test_verify_each_token(self, credentials):
        """Test that every issued token verifies."""
        enrollment = await credentials.create_token('alice')
        for token in enrollment.scratch_tokens:
            await credentials.verify_token('alice', token)

    @pytest.mark.asyncio
    async def test_verify_unknown_token(self, credentials):
        """Test that strings outside the set are refused."""
        enrollment = await credentials.create_token('alice')
        with pytest.raises(Unauthorized):
            await credentials.verify_token('alice', 'not-a-token')
        with pytest.raises(Unauthorized):
            await credentials.verify_token('alice', enrollment.key)

    @pytest.mark.asyncio
    async def test_verify_without_enrollment(self, credentials):
        """Test that a user without enrollment is refused."""
        with pytest.raises(Unauthorized):
            await credentials.verify_token('alice', 'anything')

    @pytest.mark.asyncio
    async def test_reenrollment_replaces_tokens(self, credentials):
        """Test that a new enrollment replaces key and tokens wholesale."""
        first = await credentials.create_token('alice')
        second = await credentials.create_token('alice')
        assert first.key != second.key
        with pytest.raises(Unauthorized):
            await credentials.verify_token('alice', first.scratch_tokens[0])
        await credentials.verify_token('alice', second.scratch_tokens[0])

    @pytest.mark.asyncio
    async def test_tokens_are_stored_hashed(self, credentials, store, config):
        """Test that plaintext scratch tokens are not persisted."""
        enrollment = await credentials.create_token('alice')
        rows = await store.get(config.credentials.tfa, {'userid': 'alice'})
        stored = rows[0]['tokens']
        assert len(stored) == 5
        assert not set(stored) & set(enrollment.scratch_tokens)
        assert rows[0]['key'] == enrollment.key

    @pytest.mark.asyncio
    async def test_tokens_are_reusable_by_default(self, credentials):
        """Test membership-only verification."""
        enrollment = await credentials.create_token('alice')
        token = enrollment.scratch_tokens[2]
        await credentials.verify_token('alice', token)
        await credentials.verify_token('alice', token)

    @pytest.mark.asyncio
    async def test_consume_scratch_tokens(self, store, primitives, config):
        """Test single-use scratch tokens when enabled."""
        cfg = CredentialsConfig(
            passwords=config.credentials.passwords,
            reset_tokens=config.credentials.reset_tokens,
            tfa=config.credentials.tfa,
            consume_scratch_tokens=True,
        )
        manager = CredentialManager(store, primitives, cfg)
        enrollment = await manager.create_token('alice')
        token = enrollment.scratch_tokens[0]
        await manager.verify_token('alice', token)
        with pytest.raises(Unauthorized):
            await manager.verify_token('alice', token)
        for other in enrollment.scratch_tokens[1:]:
            await manager.verify_token('alice', other)

