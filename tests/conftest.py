import itertools
import re

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from mobuild.credentials.android.models import Account, AppLookupKey
from mobuild.graphql.client import GraphqlClient

_OPERATION_RE = re.compile(r"^\s*(?:query|mutation)\s+(\w+)")

TIMESTAMP = "2024-05-01T12:00:00Z"


class FakeBackend:
    """In-memory stand-in for the GraphQL API.

    Dispatches on the operation name and records every request.
    """

    def __init__(self):
        self.apps = {"@acme/myapp": {"id": "app-1", "fullName": "@acme/myapp"}}
        self.app_credentials = []
        self.build_credentials = {}
        self.keystores = {
            kid: {
                "id": kid,
                "type": "JKS",
                "keyAlias": f"alias-{kid}",
                "createdAt": TIMESTAMP,
                "updatedAt": TIMESTAMP,
            }
            for kid in ("k1", "k2", "k3")
        }
        self.fcms = {}
        self.branches = {}
        self.requests = []
        self.fail = {}
        self.empty = set()
        self._ids = itertools.count(1)

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    # -- seeding helpers ---------------------------------------------------

    def add_app_credentials(self, application_identifier=None, *, is_legacy=False, app_id="app-1"):
        record = {
            "id": self.next_id("ac"),
            "appId": app_id,
            "applicationIdentifier": application_identifier,
            "isLegacy": is_legacy,
            "fcmId": None,
            "buildCredentialsIds": [],
        }
        self.app_credentials.append(record)
        return record

    def add_build_credentials(self, app_credentials, name, *, is_default=False, keystore_id="k1"):
        record = {
            "id": self.next_id("bc"),
            "name": name,
            "isDefault": is_default,
            "isLegacy": app_credentials["isLegacy"],
            "keystoreId": keystore_id,
        }
        self.build_credentials[record["id"]] = record
        app_credentials["buildCredentialsIds"].append(record["id"])
        return record

    def operations(self) -> list[str]:
        return [r["operation"] for r in self.requests]

    # -- serialisation -----------------------------------------------------

    def _build_credentials_json(self, bc_id):
        record = self.build_credentials[bc_id]
        keystore = self.keystores.get(record["keystoreId"])
        return {
            "id": record["id"],
            "name": record["name"],
            "isDefault": record["isDefault"],
            "isLegacy": record["isLegacy"],
            "androidKeystore": keystore,
        }

    def _app_credentials_json(self, record):
        return {
            "id": record["id"],
            "applicationIdentifier": record["applicationIdentifier"],
            "isLegacy": record["isLegacy"],
            "androidFcm": self.fcms.get(record["fcmId"]),
            "androidAppBuildCredentialsList": [
                self._build_credentials_json(i) for i in record["buildCredentialsIds"]
            ],
        }

    # -- handlers ----------------------------------------------------------

    def handle(self, operation: str, v: dict) -> dict:
        if operation == "AppByFullNameQuery":
            return {"app": {"byFullName": self.apps.get(v["fullName"])}}

        if operation == "CommonAndroidAppCredentialsByApplicationIdentifierQuery":
            app = self.apps.get(v["projectFullName"])
            if app is None:
                return {"app": {"byFullName": None}}
            records = [r for r in self.app_credentials if r["appId"] == app["id"]]
            if v.get("legacyOnly"):
                records = [r for r in records if r["isLegacy"]]
            if v.get("applicationIdentifier") is not None:
                records = [
                    r for r in records
                    if r["applicationIdentifier"] == v["applicationIdentifier"]
                ]
            return {"app": {"byFullName": {
                "id": app["id"],
                "androidAppCredentials": [self._app_credentials_json(r) for r in records],
            }}}

        if operation == "CreateAndroidAppCredentialsMutation":
            record = self.add_app_credentials(v["applicationIdentifier"], app_id=v["appId"])
            return {"androidAppCredentials": {
                "createAndroidAppCredentials": self._app_credentials_json(record),
            }}

        if operation == "SetFcmMutation":
            record = next(r for r in self.app_credentials if r["id"] == v["androidAppCredentialsId"])
            record["fcmId"] = v["fcmId"]
            return {"androidAppCredentials": {"setFcm": self._app_credentials_json(record)}}

        if operation == "CreateAndroidAppBuildCredentialsMutation":
            parent = next(
                r for r in self.app_credentials if r["id"] == v["androidAppCredentialsId"]
            )
            fields = v["androidAppBuildCredentialsInput"]
            record = self.add_build_credentials(
                parent, fields["name"],
                is_default=fields["isDefault"], keystore_id=fields["keystoreId"],
            )
            return {"androidAppBuildCredentials": {
                "createAndroidAppBuildCredentials": self._build_credentials_json(record["id"]),
            }}

        if operation == "SetKeystoreMutation":
            record = self.build_credentials[v["androidAppBuildCredentialsId"]]
            record["keystoreId"] = v["keystoreId"]
            return {"androidAppBuildCredentials": {
                "setKeystore": self._build_credentials_json(record["id"]),
            }}

        if operation == "CreateAndroidKeystoreMutation":
            fields = v["androidKeystoreInput"]
            kid = self.next_id("ks")
            self.keystores[kid] = {
                "id": kid,
                "type": fields["type"],
                "keyAlias": fields["keyAlias"],
                "createdAt": TIMESTAMP,
                "updatedAt": TIMESTAMP,
            }
            return {"androidKeystore": {"createAndroidKeystore": self.keystores[kid]}}

        if operation == "DeleteAndroidKeystoreMutation":
            self.keystores.pop(v["androidKeystoreId"])
            return {"androidKeystore": {"deleteAndroidKeystore": {"id": v["androidKeystoreId"]}}}

        if operation == "CreateAndroidFcmMutation":
            fields = v["androidFcmInput"]
            fid = self.next_id("fcm")
            self.fcms[fid] = {
                "id": fid,
                "credential": fields["credential"],
                "version": fields["version"],
                "createdAt": TIMESTAMP,
                "updatedAt": TIMESTAMP,
            }
            return {"androidFcm": {"createAndroidFcm": self.fcms[fid]}}

        if operation == "DeleteAndroidFcmMutation":
            self.fcms.pop(v["androidFcmId"])
            return {"androidFcm": {"deleteAndroidFcm": {"id": v["androidFcmId"]}}}

        if operation == "BranchesByAppQuery":
            if v["appId"] not in self.branches:
                return {"app": {"byId": None}}
            return {"app": {"byId": {
                "id": v["appId"],
                "updateBranches": self.branches[v["appId"]][:v["limit"]],
            }}}

        raise AssertionError(f"unexpected operation {operation}")

    def make_app(self) -> web.Application:
        app = web.Application()

        async def handle(request):
            data = await request.json()
            m = _OPERATION_RE.match(data.get("query", ""))
            operation = m.group(1) if m else ""
            variables = data.get("variables", {})
            self.requests.append({
                "operation": operation,
                "variables": variables,
                "headers": dict(request.headers),
            })
            if operation in self.empty:
                return web.json_response({"data": None})
            if operation in self.fail:
                return web.json_response({"errors": [{"message": self.fail[operation]}]})
            return web.json_response({"data": self.handle(operation, variables)})

        app.router.add_post("/graphql", handle)
        return app


@pytest.fixture
async def backend():
    """Fake GraphQL API server. Yields (server, FakeBackend)."""
    fake = FakeBackend()
    async with TestServer(fake.make_app()) as server:
        yield server, fake


@pytest.fixture
def api_url(backend):
    server, _ = backend
    return str(server.make_url("/graphql"))


@pytest.fixture
async def client(api_url):
    async with GraphqlClient(api_url, "tok_session") as c:
        yield c


@pytest.fixture
def lookup_key():
    return AppLookupKey(
        account=Account(id="acct-1", name="acme"),
        project_name="myapp",
        android_application_identifier="com.acme.myapp",
    )
