import os
import stat

import json5


class ConfigError(Exception):
    """Raised when config file is invalid."""


def load_config(path: str) -> dict:
    """Load and validate config from a JSON5 file.

    Validates:
    - File exists
    - File permissions are 600 (the file holds the session token)
    - JSON5 is valid
    - api_url, token and account are present
    """
    if not os.path.isfile(path):
        raise ConfigError(f"Config file not found: {path}")

    file_stat = os.stat(path)
    mode = stat.S_IMODE(file_stat.st_mode)
    group_or_other = (
        stat.S_IRGRP | stat.S_IWGRP | stat.S_IXGRP
        | stat.S_IROTH | stat.S_IWOTH | stat.S_IXOTH
    )
    if mode & group_or_other:
        raise ConfigError(
            f"Config file {path} has too-open permissions ({oct(mode)}). "
            f"Run: chmod 600 {path}"
        )

    with open(path) as f:
        try:
            config = json5.load(f)
        except ValueError as e:
            raise ConfigError(f"Invalid JSON5 in {path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError("Config must be a JSON object")

    for field in ("api_url", "token"):
        if not isinstance(config.get(field), str) or not config[field]:
            raise ConfigError(f"'{field}' must be a non-empty string")

    _validate_account(config.get("account"))

    project = config.get("project", {})
    if not isinstance(project, dict):
        raise ConfigError("'project' must be an object")

    timeouts = config.get("timeouts", {})
    if not isinstance(timeouts, dict):
        raise ConfigError("'timeouts' must be an object")
    http_timeout = timeouts.get("http", 30)
    if not isinstance(http_timeout, (int, float)) or http_timeout <= 0:
        raise ConfigError("'timeouts.http' must be a positive number")

    return config


def _validate_account(account) -> None:
    if not isinstance(account, dict):
        raise ConfigError("'account' must be an object")
    for field in ("id", "name"):
        if not account.get(field):
            raise ConfigError(f"'account' missing '{field}'")
