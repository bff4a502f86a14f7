"""Shared GraphQL fragments for Android credentials."""

ANDROID_KEYSTORE = """
fragment AndroidKeystoreFragment on AndroidKeystore {
    id
    type
    keyAlias
    md5CertificateFingerprint
    sha1CertificateFingerprint
    sha256CertificateFingerprint
    createdAt
    updatedAt
}
"""

ANDROID_FCM = """
fragment AndroidFcmFragment on AndroidFcm {
    id
    credential
    version
    createdAt
    updatedAt
}
"""

ANDROID_APP_BUILD_CREDENTIALS = """
fragment AndroidAppBuildCredentialsFragment on AndroidAppBuildCredentials {
    id
    name
    isDefault
    isLegacy
    androidKeystore {
        ...AndroidKeystoreFragment
    }
}
""" + ANDROID_KEYSTORE

COMMON_ANDROID_APP_CREDENTIALS = """
fragment CommonAndroidAppCredentialsFragment on AndroidAppCredentials {
    id
    applicationIdentifier
    isLegacy
    androidFcm {
        ...AndroidFcmFragment
    }
    androidAppBuildCredentialsList {
        ...AndroidAppBuildCredentialsFragment
    }
}
""" + ANDROID_FCM + ANDROID_APP_BUILD_CREDENTIALS
