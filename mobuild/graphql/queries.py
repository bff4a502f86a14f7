from mobuild.credentials.android.models import App, AppCredentials
from mobuild.graphql.client import GraphqlClient, GraphqlError
from mobuild.graphql.fragments import COMMON_ANDROID_APP_CREDENTIALS

APP_BY_FULL_NAME = """
query AppByFullNameQuery($fullName: String!) {
    app {
        byFullName(fullName: $fullName) {
            id
            fullName
        }
    }
}
"""

ANDROID_APP_CREDENTIALS_BY_APPLICATION_IDENTIFIER = """
query CommonAndroidAppCredentialsByApplicationIdentifierQuery(
    $projectFullName: String!
    $applicationIdentifier: String
    $legacyOnly: Boolean
) {
    app {
        byFullName(fullName: $projectFullName) {
            id
            androidAppCredentials(
                filter: {applicationIdentifier: $applicationIdentifier, legacyOnly: $legacyOnly}
            ) {
                ...CommonAndroidAppCredentialsFragment
            }
        }
    }
}
""" + COMMON_ANDROID_APP_CREDENTIALS


async def app_by_full_name(client: GraphqlClient, full_name: str) -> App:
    """Get an app by its ``@account/project`` name.

    Raises:
        GraphqlError: If the app does not exist.
    """
    data = await client.query(APP_BY_FULL_NAME, {"fullName": full_name})
    app = (data.get("app") or {}).get("byFullName")
    if not app:
        raise GraphqlError(f"App {full_name} not found")
    return App.model_validate(app)


async def android_app_credentials_by_application_identifier(
    client: GraphqlClient,
    project_full_name: str,
    *,
    application_identifier: str | None = None,
    legacy_only: bool = False,
) -> AppCredentials | None:
    """Get the first Android credentials record matching the filter, or None."""
    variables = {"projectFullName": project_full_name, "legacyOnly": legacy_only}
    if application_identifier is not None:
        variables["applicationIdentifier"] = application_identifier
    data = await client.query(
        ANDROID_APP_CREDENTIALS_BY_APPLICATION_IDENTIFIER, variables,
    )
    app = (data.get("app") or {}).get("byFullName")
    if not app:
        raise GraphqlError(f"App {project_full_name} not found")
    records = app.get("androidAppCredentials") or []
    if not records:
        return None
    return AppCredentials.model_validate(records[0])
