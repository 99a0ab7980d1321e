"""Navigator Identity.

User credentials, two-factor scratch tokens and ephemeral sessions stored
on a keyed attribute store.
"""
from .version import __version__
from .conf import IdentityConfig, CredentialsConfig, SessionsConfig, TableSchema
from .exceptions import (
    IdentityError,
    Unauthorized,
    NotFound,
    StoreUnavailable,
    BadRequest,
)
from .primitives import SecretPrimitives
from .credentials import CredentialManager, TfaEnrollment
from .sessions import SessionStore
from .service import IdentityService, setup_identity, create_app

__all__ = [
    "__version__",
    "IdentityConfig",
    "CredentialsConfig",
    "SessionsConfig",
    "TableSchema",
    "IdentityError",
    "Unauthorized",
    "NotFound",
    "StoreUnavailable",
    "BadRequest",
    "SecretPrimitives",
    "CredentialManager",
    "TfaEnrollment",
    "SessionStore",
    "IdentityService",
    "setup_identity",
    "create_app",
]
