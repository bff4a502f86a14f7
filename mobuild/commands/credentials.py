"""Credentials commands: Android build credentials, keystores and FCM keys.

Handles:
- credentials android list | default | legacy
- credentials android create <name> --keystore-id <id> [--default]
- credentials android set-keystore <name> --keystore-id <id>
- credentials android set-fcm --fcm-id <id>
- keystore create --keystore-file <path> --alias <alias> --keystore-password <pw>
- keystore delete <id>
- fcm create --api-key <key> [--version LEGACY|V1]
- fcm delete <id>
"""

import base64
import logging
import os

from mobuild.credentials.android.api import (
    BuildCredentialsSelector,
    CredentialsResolver,
    create_fcm,
    create_keystore,
    delete_fcm,
    delete_keystore,
)
from mobuild.credentials.android.models import (
    Account,
    AppLookupKey,
    BuildCredentials,
    FcmVersion,
    KeystoreType,
    KeystoreWithType,
)
from mobuild.graphql.client import GraphqlClient

logger = logging.getLogger(__name__)


def account_from_config(config: dict) -> Account:
    return Account.model_validate(config["account"])


def lookup_key_from_config(config: dict) -> AppLookupKey:
    """Build the app lookup key from the ``account`` and ``project`` sections."""
    project = config.get("project", {})
    for field in ("name", "android_application_identifier"):
        if not project.get(field):
            raise ValueError(f"'project.{field}' is required for Android credentials")
    return AppLookupKey(
        account=account_from_config(config),
        project_name=project["name"],
        android_application_identifier=project["android_application_identifier"],
    )


def format_build_credentials(build_credentials: BuildCredentials) -> str:
    keystore = build_credentials.android_keystore
    keystore_desc = (
        f"keystore={keystore.id} alias={keystore.key_alias} type={keystore.type.value}"
        if keystore else "keystore=none"
    )
    default = " (default)" if build_credentials.is_default else ""
    return f"{build_credentials.name}{default} id={build_credentials.id} {keystore_desc}"


def _read_keystore_file(path: str) -> str:
    if not os.path.isfile(path):
        raise ValueError(f"File not found: {path}")
    with open(path, "rb") as f:
        return base64.b64encode(f.read()).decode("ascii")


async def execute_android(args, client: GraphqlClient, config: dict) -> int:
    key = lookup_key_from_config(config)
    resolver = CredentialsResolver(client)
    selector = BuildCredentialsSelector(resolver)

    if args.action == "list":
        build_credentials_list = await selector.list_build_credentials(key)
        if not build_credentials_list:
            print(f"No Android build credentials for {key.android_application_identifier}")
        for build_credentials in build_credentials_list:
            print(format_build_credentials(build_credentials))
        return 0

    if args.action == "default":
        default = await selector.get_default(key)
        if default is None:
            print("No default Android build credentials")
            return 1
        print(format_build_credentials(default))
        return 0

    if args.action == "legacy":
        legacy = await resolver.fetch_legacy_build_credentials(key)
        if legacy is None:
            print("No legacy Android build credentials")
            return 1
        print(format_build_credentials(legacy))
        return 0

    if args.action == "create":
        created = await selector.create(
            key, name=args.name, is_default=args.default, keystore_id=args.keystore_id,
        )
        print(format_build_credentials(created))
        return 0

    if args.action == "set-keystore":
        result = await selector.create_or_update_by_name(
            key, args.name, keystore_id=args.keystore_id,
        )
        print(format_build_credentials(result))
        return 0

    if args.action == "set-fcm":
        app_credentials = await resolver.fetch_or_create_credentials(key)
        updated = await resolver.set_fcm(app_credentials, args.fcm_id)
        fcm = updated.android_fcm
        print(f"FCM key {fcm.id if fcm else args.fcm_id} assigned to {updated.id}")
        return 0

    raise ValueError(f"Unknown action: {args.action}")


async def execute_keystore(args, client: GraphqlClient, config: dict) -> int:
    if args.action == "create":
        keystore = KeystoreWithType(
            keystore=_read_keystore_file(args.keystore_file),
            keystore_password=args.keystore_password,
            key_alias=args.alias,
            key_password=args.key_password,
            type=KeystoreType(args.type),
        )
        created = await create_keystore(client, account_from_config(config), keystore)
        logger.info("keystore created id=%s alias=%s", created.id, created.key_alias)
        print(f"Keystore {created.id} created (alias {created.key_alias})")
        return 0

    if args.action == "delete":
        await delete_keystore(client, args.id)
        logger.info("keystore deleted id=%s", args.id)
        print(f"Keystore {args.id} deleted")
        return 0

    raise ValueError(f"Unknown action: {args.action}")


async def execute_fcm(args, client: GraphqlClient, config: dict) -> int:
    if args.action == "create":
        created = await create_fcm(
            client, account_from_config(config), args.api_key, FcmVersion(args.version),
        )
        logger.info("fcm created id=%s version=%s", created.id, created.version.value)
        print(f"FCM key {created.id} created")
        return 0

    if args.action == "delete":
        await delete_fcm(client, args.id)
        logger.info("fcm deleted id=%s", args.id)
        print(f"FCM key {args.id} deleted")
        return 0

    raise ValueError(f"Unknown action: {args.action}")
