"""Android credentials resolution and build-credentials selection.

CredentialsResolver finds (or lazily creates) the AppCredentials record of an
app. BuildCredentialsSelector manages the named build credentials inside it
and keeps at most one of them marked default.

Every operation awaits its remote calls one after another. Nothing guards
against overlapping calls from independent callers: two concurrent
fetch-or-create calls can leave two AppCredentials records, and two concurrent
first writes can leave two defaults. Readers use the first match.
"""

import logging

from mobuild.credentials.android.models import (
    Account,
    AppCredentials,
    AppLookupKey,
    BuildCredentials,
    FcmCredential,
    FcmVersion,
    Keystore,
    KeystoreWithType,
    format_project_full_name,
)
from mobuild.graphql import mutations, queries
from mobuild.graphql.client import GraphqlClient

logger = logging.getLogger(__name__)


class ConflictError(Exception):
    """Raised when a second default build credentials set would be created."""


def find_default(
    build_credentials_list: list[BuildCredentials] | tuple[BuildCredentials, ...],
) -> BuildCredentials | None:
    """Return the first entry marked default, or None."""
    for build_credentials in build_credentials_list:
        if build_credentials.is_default:
            return build_credentials
    return None


def find_by_name(
    build_credentials_list: list[BuildCredentials] | tuple[BuildCredentials, ...],
    name: str,
) -> BuildCredentials | None:
    """Return the first entry with the given name, or None."""
    for build_credentials in build_credentials_list:
        if build_credentials.name == name:
            return build_credentials
    return None


class CredentialsResolver:
    """Fetches or creates the AppCredentials record of an app."""

    def __init__(self, client: GraphqlClient):
        self.client = client

    async def fetch_common_credentials(
        self, key: AppLookupKey, *, legacy: bool = False,
    ) -> AppCredentials | None:
        """Fetch the app's credentials, or None if there are none.

        With ``legacy=True`` the single legacy record of the app is selected
        instead of the one matching the application identifier.
        """
        project_full_name = format_project_full_name(key)
        if legacy:
            return await queries.android_app_credentials_by_application_identifier(
                self.client, project_full_name, legacy_only=True,
            )
        return await queries.android_app_credentials_by_application_identifier(
            self.client,
            project_full_name,
            application_identifier=key.android_application_identifier,
            legacy_only=False,
        )

    async def fetch_legacy_build_credentials(
        self, key: AppLookupKey,
    ) -> BuildCredentials | None:
        legacy = await self.fetch_common_credentials(key, legacy=True)
        if legacy is None or not legacy.android_app_build_credentials_list:
            return None
        return legacy.android_app_build_credentials_list[0]

    async def fetch_or_create_credentials(self, key: AppLookupKey) -> AppCredentials:
        """Fetch the app's credentials, creating an empty record if missing."""
        existing = await self.fetch_common_credentials(key)
        if existing is not None:
            return existing

        app = await queries.app_by_full_name(self.client, format_project_full_name(key))
        created = await mutations.create_android_app_credentials(
            self.client, app.id, key.android_application_identifier,
        )
        logger.info(
            "created android app credentials id=%s app=%s identifier=%s",
            created.id, app.id, key.android_application_identifier,
        )
        return created

    async def set_fcm(
        self, app_credentials: AppCredentials, fcm_id: str,
    ) -> AppCredentials:
        return await mutations.set_fcm(self.client, app_credentials.id, fcm_id)


class BuildCredentialsSelector:
    """Finds, creates and updates named build credentials of an app."""

    def __init__(self, resolver: CredentialsResolver):
        self.resolver = resolver

    @property
    def client(self) -> GraphqlClient:
        return self.resolver.client

    async def list_build_credentials(self, key: AppLookupKey) -> list[BuildCredentials]:
        app_credentials = await self.resolver.fetch_common_credentials(key)
        if app_credentials is None:
            return []
        return list(app_credentials.android_app_build_credentials_list)

    async def get_default(self, key: AppLookupKey) -> BuildCredentials | None:
        return find_default(await self.list_build_credentials(key))

    async def get_by_name(self, key: AppLookupKey, name: str) -> BuildCredentials | None:
        return find_by_name(await self.list_build_credentials(key), name)

    async def create(
        self,
        key: AppLookupKey,
        *,
        name: str,
        is_default: bool,
        keystore_id: str,
    ) -> BuildCredentials:
        """Create build credentials, creating the parent record if needed.

        Raises:
            ConflictError: ``is_default`` is set and a default already exists.
        """
        app_credentials = await self.resolver.fetch_or_create_credentials(key)
        return await self._create_in(
            app_credentials, name=name, is_default=is_default, keystore_id=keystore_id,
        )

    async def update_keystore(
        self, build_credentials: BuildCredentials, keystore_id: str,
    ) -> BuildCredentials:
        return await mutations.set_keystore(self.client, build_credentials.id, keystore_id)

    async def create_or_update_by_name(
        self, key: AppLookupKey, name: str, *, keystore_id: str,
    ) -> BuildCredentials:
        """Point the build credentials called ``name`` at ``keystore_id``.

        An existing entry only gets its keystore replaced. A new entry becomes
        the default when the app has no default yet.
        """
        app_credentials = await self.resolver.fetch_or_create_credentials(key)
        build_credentials_list = app_credentials.android_app_build_credentials_list

        existing = find_by_name(build_credentials_list, name)
        if existing is not None:
            return await self.update_keystore(existing, keystore_id)

        return await self._create_in(
            app_credentials,
            name=name,
            is_default=find_default(build_credentials_list) is None,
            keystore_id=keystore_id,
        )

    async def _create_in(
        self,
        app_credentials: AppCredentials,
        *,
        name: str,
        is_default: bool,
        keystore_id: str,
    ) -> BuildCredentials:
        existing_default = find_default(app_credentials.android_app_build_credentials_list)
        if is_default and existing_default is not None:
            raise ConflictError(
                "Cannot create new default Android build credentials. "
                f"A set of default credentials exists already ({existing_default.name})."
            )

        created = await mutations.create_android_app_build_credentials(
            self.client,
            app_credentials.id,
            name=name,
            is_default=is_default,
            keystore_id=keystore_id,
        )
        logger.info(
            "created android build credentials id=%s name=%s default=%s",
            created.id, created.name, created.is_default,
        )
        return created


async def create_keystore(
    client: GraphqlClient, account: Account, keystore: KeystoreWithType,
) -> Keystore:
    return await mutations.create_android_keystore(client, account.id, keystore)


async def delete_keystore(client: GraphqlClient, keystore_id: str) -> None:
    await mutations.delete_android_keystore(client, keystore_id)


async def create_fcm(
    client: GraphqlClient, account: Account, fcm_api_key: str, version: FcmVersion,
) -> FcmCredential:
    return await mutations.create_android_fcm(client, account.id, fcm_api_key, version)


async def delete_fcm(client: GraphqlClient, fcm_id: str) -> None:
    await mutations.delete_android_fcm(client, fcm_id)
