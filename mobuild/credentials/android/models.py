"""Android credential records returned by the GraphQL API.

Field names are snake_case; the camelCase names used on the wire are
accepted through aliases, so ``Model.model_validate(payload)`` works on raw
GraphQL fragments.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class KeystoreType(str, Enum):
    JKS = "JKS"
    PKCS12 = "PKCS12"
    UNKNOWN = "UNKNOWN"


class FcmVersion(str, Enum):
    LEGACY = "LEGACY"
    V1 = "V1"


class Account(_Record):
    id: str
    name: str


class AppLookupKey(_Record):
    """Identifies the app whose Android credentials are being managed."""

    account: Account
    project_name: str
    android_application_identifier: str


class App(_Record):
    id: str
    full_name: str | None = None


class Keystore(_Record):
    """Account-owned signing key. Secrets are write-only and never read back."""

    id: str
    type: KeystoreType = KeystoreType.UNKNOWN
    key_alias: str
    md5_certificate_fingerprint: str | None = None
    sha1_certificate_fingerprint: str | None = None
    sha256_certificate_fingerprint: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class KeystoreWithType(_Record):
    """Keystore material as uploaded by the user."""

    keystore: str = Field(..., description="Base64-encoded keystore file")
    keystore_password: str
    key_alias: str
    key_password: str | None = None
    type: KeystoreType = KeystoreType.JKS


class FcmCredential(_Record):
    id: str
    credential: str | None = None
    version: FcmVersion
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BuildCredentials(_Record):
    id: str
    name: str
    is_default: bool = False
    is_legacy: bool = False
    android_keystore: Keystore | None = None


class AppCredentials(_Record):
    """Android credentials of one app: FCM key plus build credentials."""

    id: str
    application_identifier: str | None = None
    is_legacy: bool = False
    android_fcm: FcmCredential | None = None
    android_app_build_credentials_list: tuple[BuildCredentials, ...] = ()


def format_project_full_name(key: AppLookupKey) -> str:
    """Return the ``@account/project`` name used to look up the app."""
    return f"@{key.account.name}/{key.project_name}"
