"""
Identity Configuration — Table schemas and validated settings.

Reads settings from environment variables:
    IDENTITY_STORE_URL = <base url of the table service>
    IDENTITY_STORE_TIMEOUT = <seconds>
    IDENTITY_SESSION_TTL = <seconds>
    IDENTITY_HASH_SALT = <base64-encoded salt, at least 16 bytes>
    IDENTITY_HASH_ITERATIONS = <integer>
    IDENTITY_CONSUME_SCRATCH_TOKENS = <true|false>
    IDENTITY_{PASSWORD,RESET,TFA,SESSION}_TABLE = <table name override>

Security Note:
    Never log the hash salt. Only log table names and numeric settings.
"""
import os
import base64
import logging
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("navigator.identity")

# Pinned revision marker for session rows: keeps one logical row per key
# on stores that version rows by a range key.
FIXED_TID = '11111111-1111-1111-1111-111111111111'

DEFAULT_SESSION_TTL = 86400
SCRATCH_TOKEN_COUNT = 5

_ATTRIBUTE_TYPES = ('string', 'blob', 'boolean', 'timeuuid', 'set<string>')


class RetentionPolicy(BaseModel):
    """How long the store keeps a row after its last write."""

    type: Literal['ttl', 'latest'] = 'latest'
    ttl: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def validate_ttl(self) -> "RetentionPolicy":
        """A ttl policy requires a ttl value."""
        if self.type == 'ttl' and self.ttl is None:
            raise ValueError("ttl retention policy requires a ttl value")
        return self


class IndexEntry(BaseModel):
    attribute: str
    type: Literal['hash', 'range']
    order: Literal['asc', 'desc'] = 'asc'


class TableSchema(BaseModel):
    """Declaration of one table in the attribute store."""

    table: str
    version: int = 1
    attributes: dict[str, str]
    index: list[IndexEntry]
    retention_policy: RetentionPolicy = Field(default_factory=RetentionPolicy)

    @field_validator("attributes")
    @classmethod
    def validate_attributes(cls, v: dict[str, str]) -> dict[str, str]:
        for name, kind in v.items():
            if kind not in _ATTRIBUTE_TYPES:
                raise ValueError(
                    f"Unsupported type {kind!r} for attribute {name!r}"
                )
        return v

    @model_validator(mode="after")
    def validate_index(self) -> "TableSchema":
        """Index must have a hash key and reference declared attributes."""
        if not any(entry.type == 'hash' for entry in self.index):
            raise ValueError(f"Table {self.table} has no hash key")
        for entry in self.index:
            if entry.attribute not in self.attributes:
                raise ValueError(
                    f"Index attribute {entry.attribute!r} is not declared "
                    f"in table {self.table}"
                )
        return self

    @property
    def key_attributes(self) -> list[str]:
        """Attribute names that identify a row, hash key first."""
        hashes = [e.attribute for e in self.index if e.type == 'hash']
        ranges = [e.attribute for e in self.index if e.type == 'range']
        return hashes + ranges

    @property
    def ttl(self) -> Optional[int]:
        if self.retention_policy.type == 'ttl':
            return self.retention_policy.ttl
        return None

    def row_key(self, attributes: dict) -> tuple:
        """Build the identity tuple of a row.

        Raises:
            KeyError: if an index attribute is missing.
        """
        return tuple(attributes[name] for name in self.key_attributes)


def password_table(name: str = 'auth_passwords') -> TableSchema:
    return TableSchema(
        table=name,
        attributes={
            'userid': 'string',
            'pass_hash': 'string',
            'deleted': 'boolean',
        },
        index=[IndexEntry(attribute='userid', type='hash')],
    )


def reset_table(name: str = 'auth_reset_tokens') -> TableSchema:
    return TableSchema(
        table=name,
        attributes={
            'userid': 'string',
            'reset_token': 'string',
        },
        index=[IndexEntry(attribute='userid', type='hash')],
    )


def tfa_table(name: str = 'auth_tfa') -> TableSchema:
    return TableSchema(
        table=name,
        attributes={
            'userid': 'string',
            'key': 'string',
            'tokens': 'set<string>',
        },
        index=[IndexEntry(attribute='userid', type='hash')],
    )


def session_table(
    name: str = 'auth_sessions',
    ttl: int = DEFAULT_SESSION_TTL
) -> TableSchema:
    return TableSchema(
        table=name,
        attributes={
            'key': 'string',
            'tid': 'timeuuid',
            'value': 'blob',
            'deleted': 'boolean',
        },
        index=[
            IndexEntry(attribute='key', type='hash'),
            IndexEntry(attribute='tid', type='range', order='desc'),
        ],
        retention_policy=RetentionPolicy(type='ttl', ttl=ttl),
    )


class CredentialsConfig(BaseModel):
    """Settings of the Credential Manager."""

    passwords: TableSchema = Field(default_factory=password_table)
    reset_tokens: TableSchema = Field(default_factory=reset_table)
    tfa: TableSchema = Field(default_factory=tfa_table)
    consume_scratch_tokens: bool = False


class SessionsConfig(BaseModel):
    """Settings of the Session Store."""

    table: TableSchema = Field(default_factory=session_table)
    revision_marker: str = FIXED_TID

    @field_validator("table")
    @classmethod
    def validate_session_table(cls, v: TableSchema) -> TableSchema:
        for name in ('key', 'value', 'deleted'):
            if name not in v.attributes:
                raise ValueError(
                    f"Session table {v.table} must declare attribute {name!r}"
                )
        return v


class StoreConfig(BaseModel):
    """Where the attribute store lives.

    An empty ``url`` selects the in-process memory store.
    """

    url: Optional[str] = None
    timeout: float = Field(default=10.0, gt=0)


class PrimitivesConfig(BaseModel):
    salt: bytes
    iterations: int = Field(default=100_000, ge=1000)

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("salt")
    @classmethod
    def validate_salt(cls, v: bytes) -> bytes:
        if len(v) < 16:
            raise ValueError(
                f"hash salt must be at least 16 bytes, got {len(v)}"
            )
        return v


class IdentityConfig(BaseModel):
    """Validated configuration, built once at service start."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    primitives: PrimitivesConfig
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    sessions: SessionsConfig = Field(default_factory=SessionsConfig)

    @property
    def tables(self) -> list[TableSchema]:
        return [
            self.credentials.passwords,
            self.credentials.reset_tokens,
            self.credentials.tfa,
            self.sessions.table,
        ]

    @classmethod
    def from_env(cls) -> "IdentityConfig":
        """Create IdentityConfig by loading values from environment.

        Raises:
            RuntimeError: If IDENTITY_HASH_SALT is not set.
        """
        raw_salt = os.environ.get("IDENTITY_HASH_SALT")
        if raw_salt is None:
            raise RuntimeError(
                "IDENTITY_HASH_SALT environment variable is not set"
            )
        salt = base64.b64decode(raw_salt)
        primitives = PrimitivesConfig(
            salt=salt,
            iterations=int(os.environ.get("IDENTITY_HASH_ITERATIONS", 100_000)),
        )
        store = StoreConfig(
            url=os.environ.get("IDENTITY_STORE_URL") or None,
            timeout=float(os.environ.get("IDENTITY_STORE_TIMEOUT", 10.0)),
        )
        consume = os.environ.get(
            "IDENTITY_CONSUME_SCRATCH_TOKENS", ""
        ).lower() in ("1", "true", "yes")
        credentials = CredentialsConfig(
            passwords=password_table(
                os.environ.get("IDENTITY_PASSWORD_TABLE", "auth_passwords")
            ),
            reset_tokens=reset_table(
                os.environ.get("IDENTITY_RESET_TABLE", "auth_reset_tokens")
            ),
            tfa=tfa_table(
                os.environ.get("IDENTITY_TFA_TABLE", "auth_tfa")
            ),
            consume_scratch_tokens=consume,
        )
        sessions = SessionsConfig(
            table=session_table(
                os.environ.get("IDENTITY_SESSION_TABLE", "auth_sessions"),
                ttl=int(
                    os.environ.get("IDENTITY_SESSION_TTL", DEFAULT_SESSION_TTL)
                ),
            )
        )
        logger.debug(
            "Identity config loaded: store=%s session_ttl=%s",
            store.url or "memory", sessions.table.ttl,
        )
        return cls(
            store=store,
            primitives=primitives,
            credentials=credentials,
            sessions=sessions,
        )
