"""Secret masking for log output.

Collects secret values (session token, keystore passwords, FCM keys) and
replaces them with '***' in log messages.
"""

import logging

SECRET_KEYS = frozenset({
    "token",
    "keystore_password",
    "key_password",
    "api_key",
    "password",
})


def collect_secrets(config: dict) -> set[str]:
    """Recursively collect secret values from config.

    Walks the config tree and collects string values whose keys are
    in SECRET_KEYS.
    """
    secrets = set()
    _walk(config, secrets)
    return secrets


def _walk(obj, secrets: set[str]) -> None:
    if isinstance(obj, dict):
        for key, value in obj.items():
            if key in SECRET_KEYS and isinstance(value, str) and value:
                secrets.add(value)
            else:
                _walk(value, secrets)
    elif isinstance(obj, list):
        for item in obj:
            _walk(item, secrets)


def mask_value(value: str, visible_prefix: int = 4) -> str:
    """Mask a secret, keeping the first few characters visible.

    Example: mask_value("AAAAbbbbcccc") -> "AAAA***"
    """
    if len(value) <= visible_prefix:
        return "***"
    return value[:visible_prefix] + "***"


def mask_secrets(text: str, secrets: set[str]) -> str:
    """Replace all secret values in text with '***'."""
    for secret in secrets:
        text = text.replace(secret, "***")
    return text


class MaskingFormatter(logging.Formatter):
    """Formatter that masks secrets in log output.

    ``secrets`` is shared by reference, so values added after setup
    (e.g. passwords given on the command line) are masked too.
    """

    def __init__(self, fmt: str, secrets: set[str], **kwargs):
        super().__init__(fmt, **kwargs)
        self.secrets = secrets

    def format(self, record: logging.LogRecord) -> str:
        result = super().format(record)
        if self.secrets:
            return mask_secrets(result, self.secrets)
        return result
