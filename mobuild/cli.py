"""mobuild command line.

Usage:
    mobuild --config ~/.mobuild.json5 branch list
    mobuild --config ~/.mobuild.json5 credentials android list
    mobuild --config ~/.mobuild.json5 credentials android set-keystore release --keystore-id K
    mobuild --config ~/.mobuild.json5 keystore create --keystore-file app.jks --alias key0 \\
        --keystore-password ...
"""

import argparse
import asyncio
import logging
import sys

from mobuild.commands import branch, credentials
from mobuild.core.config import ConfigError, load_config
from mobuild.core.masking import MaskingFormatter, collect_secrets, mask_value
from mobuild.credentials.android.api import ConflictError
from mobuild.credentials.android.models import FcmVersion, KeystoreType
from mobuild.graphql.client import GraphqlClient, GraphqlError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(secrets: set[str], *, verbose: bool = False) -> None:
    """Configure logging with secret masking."""
    handler = logging.StreamHandler()
    handler.setFormatter(MaskingFormatter(LOG_FORMAT, secrets))
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mobuild", description="mobuild - mobile build credentials and branches",
    )
    parser.add_argument("--config", required=True, help="Path to config file (JSON5)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    branch_parser = commands.add_parser("branch", help="Work with update branches")
    branch_actions = branch_parser.add_subparsers(dest="action", required=True)
    branch_list = branch_actions.add_parser("list", help="List all branches on this project")
    branch_list.add_argument("--json", action="store_true", help="Return output as JSON")
    branch_list.set_defaults(handler=branch.execute)

    creds_parser = commands.add_parser("credentials", help="Work with app credentials")
    platforms = creds_parser.add_subparsers(dest="platform", required=True)
    android = platforms.add_parser("android", help="Android build credentials")
    android.set_defaults(handler=credentials.execute_android)
    android_actions = android.add_subparsers(dest="action", required=True)
    android_actions.add_parser("list", help="List build credentials")
    android_actions.add_parser("default", help="Show the default build credentials")
    android_actions.add_parser("legacy", help="Show the legacy build credentials")
    create = android_actions.add_parser("create", help="Create build credentials")
    create.add_argument("name")
    create.add_argument("--keystore-id", required=True)
    create.add_argument("--default", action="store_true", help="Mark as default")
    set_keystore = android_actions.add_parser(
        "set-keystore", help="Create or update build credentials by name",
    )
    set_keystore.add_argument("name")
    set_keystore.add_argument("--keystore-id", required=True)
    set_fcm = android_actions.add_parser("set-fcm", help="Assign an FCM key to the app")
    set_fcm.add_argument("--fcm-id", required=True)

    keystore = commands.add_parser("keystore", help="Work with Android keystores")
    keystore.set_defaults(handler=credentials.execute_keystore)
    keystore_actions = keystore.add_subparsers(dest="action", required=True)
    keystore_create = keystore_actions.add_parser("create", help="Upload a keystore")
    keystore_create.add_argument("--keystore-file", required=True)
    keystore_create.add_argument("--alias", required=True)
    keystore_create.add_argument("--keystore-password", required=True)
    keystore_create.add_argument("--key-password")
    keystore_create.add_argument(
        "--type", default=KeystoreType.JKS.value,
        choices=[KeystoreType.JKS.value, KeystoreType.PKCS12.value],
    )
    keystore_delete = keystore_actions.add_parser("delete", help="Delete a keystore")
    keystore_delete.add_argument("id")

    fcm = commands.add_parser("fcm", help="Work with FCM keys")
    fcm.set_defaults(handler=credentials.execute_fcm)
    fcm_actions = fcm.add_subparsers(dest="action", required=True)
    fcm_create = fcm_actions.add_parser("create", help="Upload an FCM key")
    fcm_create.add_argument("--api-key", required=True)
    fcm_create.add_argument(
        "--version", default=FcmVersion.LEGACY.value, choices=[v.value for v in FcmVersion],
    )
    fcm_delete = fcm_actions.add_parser("delete", help="Delete an FCM key")
    fcm_delete.add_argument("id")

    return parser


async def run(args: argparse.Namespace, config: dict) -> int:
    """Dispatch a parsed command. Returns exit code."""
    timeout = config.get("timeouts", {}).get("http", 30)
    logger.debug("api=%s token=%s", config["api_url"], mask_value(config["token"]))

    async with GraphqlClient(config["api_url"], config["token"], timeout=timeout) as client:
        try:
            return await args.handler(args, client, config)
        except (ConflictError, GraphqlError, ConnectionError, ValueError) as e:
            logger.debug("command %s failed", args.command, exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            return 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    secrets = collect_secrets(config)
    secrets |= collect_secrets(vars(args))
    setup_logging(secrets, verbose=args.verbose)

    return asyncio.run(run(args, config))


if __name__ == "__main__":
    sys.exit(main())
