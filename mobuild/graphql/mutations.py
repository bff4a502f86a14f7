from mobuild.credentials.android.models import (
    AppCredentials,
    BuildCredentials,
    FcmCredential,
    FcmVersion,
    Keystore,
    KeystoreWithType,
)
from mobuild.graphql.client import GraphqlClient, GraphqlError
from mobuild.graphql.fragments import (
    ANDROID_APP_BUILD_CREDENTIALS,
    ANDROID_FCM,
    ANDROID_KEYSTORE,
    COMMON_ANDROID_APP_CREDENTIALS,
)

CREATE_ANDROID_APP_CREDENTIALS = """
mutation CreateAndroidAppCredentialsMutation(
    $androidAppCredentialsInput: AndroidAppCredentialsInput!
    $appId: ID!
    $applicationIdentifier: String!
) {
    androidAppCredentials {
        createAndroidAppCredentials(
            androidAppCredentialsInput: $androidAppCredentialsInput
            appId: $appId
            applicationIdentifier: $applicationIdentifier
        ) {
            ...CommonAndroidAppCredentialsFragment
        }
    }
}
""" + COMMON_ANDROID_APP_CREDENTIALS

SET_FCM = """
mutation SetFcmMutation($androidAppCredentialsId: ID!, $fcmId: ID!) {
    androidAppCredentials {
        setFcm(id: $androidAppCredentialsId, fcmId: $fcmId) {
            ...CommonAndroidAppCredentialsFragment
        }
    }
}
""" + COMMON_ANDROID_APP_CREDENTIALS

CREATE_ANDROID_APP_BUILD_CREDENTIALS = """
mutation CreateAndroidAppBuildCredentialsMutation(
    $androidAppBuildCredentialsInput: AndroidAppBuildCredentialsInput!
    $androidAppCredentialsId: ID!
) {
    androidAppBuildCredentials {
        createAndroidAppBuildCredentials(
            androidAppBuildCredentialsInput: $androidAppBuildCredentialsInput
            androidAppCredentialsId: $androidAppCredentialsId
        ) {
            ...AndroidAppBuildCredentialsFragment
        }
    }
}
""" + ANDROID_APP_BUILD_CREDENTIALS

SET_KEYSTORE = """
mutation SetKeystoreMutation($androidAppBuildCredentialsId: ID!, $keystoreId: ID!) {
    androidAppBuildCredentials {
        setKeystore(id: $androidAppBuildCredentialsId, keystoreId: $keystoreId) {
            ...AndroidAppBuildCredentialsFragment
        }
    }
}
""" + ANDROID_APP_BUILD_CREDENTIALS

CREATE_ANDROID_KEYSTORE = """
mutation CreateAndroidKeystoreMutation(
    $androidKeystoreInput: AndroidKeystoreInput!
    $accountId: ID!
) {
    androidKeystore {
        createAndroidKeystore(androidKeystoreInput: $androidKeystoreInput, accountId: $accountId) {
            ...AndroidKeystoreFragment
        }
    }
}
""" + ANDROID_KEYSTORE

DELETE_ANDROID_KEYSTORE = """
mutation DeleteAndroidKeystoreMutation($androidKeystoreId: ID!) {
    androidKeystore {
        deleteAndroidKeystore(id: $androidKeystoreId) {
            id
        }
    }
}
"""

CREATE_ANDROID_FCM = """
mutation CreateAndroidFcmMutation($androidFcmInput: AndroidFcmInput!, $accountId: ID!) {
    androidFcm {
        createAndroidFcm(androidFcmInput: $androidFcmInput, accountId: $accountId) {
            ...AndroidFcmFragment
        }
    }
}
""" + ANDROID_FCM

DELETE_ANDROID_FCM = """
mutation DeleteAndroidFcmMutation($androidFcmId: ID!) {
    androidFcm {
        deleteAndroidFcm(id: $androidFcmId) {
            id
        }
    }
}
"""


def _payload(data: dict, namespace: str, field: str) -> dict:
    """Return ``data[namespace][field]``, raising if the API left it empty."""
    payload = (data.get(namespace) or {}).get(field)
    if not payload:
        raise GraphqlError(f"Empty response for {namespace}.{field}")
    return payload


async def create_android_app_credentials(
    client: GraphqlClient, app_id: str, application_identifier: str,
) -> AppCredentials:
    data = await client.query(
        CREATE_ANDROID_APP_CREDENTIALS,
        {
            "androidAppCredentialsInput": {},
            "appId": app_id,
            "applicationIdentifier": application_identifier,
        },
    )
    return AppCredentials.model_validate(
        _payload(data, "androidAppCredentials", "createAndroidAppCredentials"),
    )


async def set_fcm(
    client: GraphqlClient, app_credentials_id: str, fcm_id: str,
) -> AppCredentials:
    data = await client.query(
        SET_FCM, {"androidAppCredentialsId": app_credentials_id, "fcmId": fcm_id},
    )
    return AppCredentials.model_validate(_payload(data, "androidAppCredentials", "setFcm"))


async def create_android_app_build_credentials(
    client: GraphqlClient,
    app_credentials_id: str,
    *,
    name: str,
    is_default: bool,
    keystore_id: str,
) -> BuildCredentials:
    data = await client.query(
        CREATE_ANDROID_APP_BUILD_CREDENTIALS,
        {
            "androidAppBuildCredentialsInput": {
                "name": name,
                "isDefault": is_default,
                "keystoreId": keystore_id,
            },
            "androidAppCredentialsId": app_credentials_id,
        },
    )
    return BuildCredentials.model_validate(
        _payload(data, "androidAppBuildCredentials", "createAndroidAppBuildCredentials"),
    )


async def set_keystore(
    client: GraphqlClient, build_credentials_id: str, keystore_id: str,
) -> BuildCredentials:
    data = await client.query(
        SET_KEYSTORE,
        {"androidAppBuildCredentialsId": build_credentials_id, "keystoreId": keystore_id},
    )
    return BuildCredentials.model_validate(
        _payload(data, "androidAppBuildCredentials", "setKeystore"),
    )


async def create_android_keystore(
    client: GraphqlClient, account_id: str, keystore: KeystoreWithType,
) -> Keystore:
    data = await client.query(
        CREATE_ANDROID_KEYSTORE,
        {
            "androidKeystoreInput": {
                "base64EncodedKeystore": keystore.keystore,
                "keystorePassword": keystore.keystore_password,
                "keyAlias": keystore.key_alias,
                "keyPassword": keystore.key_password,
                "type": keystore.type.value,
            },
            "accountId": account_id,
        },
    )
    return Keystore.model_validate(_payload(data, "androidKeystore", "createAndroidKeystore"))


async def delete_android_keystore(client: GraphqlClient, keystore_id: str) -> None:
    await client.query(DELETE_ANDROID_KEYSTORE, {"androidKeystoreId": keystore_id})


async def create_android_fcm(
    client: GraphqlClient, account_id: str, credential: str, version: FcmVersion,
) -> FcmCredential:
    data = await client.query(
        CREATE_ANDROID_FCM,
        {
            "androidFcmInput": {"credential": credential, "version": version.value},
            "accountId": account_id,
        },
    )
    return FcmCredential.model_validate(_payload(data, "androidFcm", "createAndroidFcm"))


async def delete_android_fcm(client: GraphqlClient, fcm_id: str) -> None:
    await client.query(DELETE_ANDROID_FCM, {"androidFcmId": fcm_id})
