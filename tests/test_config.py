import os

import pytest

from mobuild.core.config import ConfigError, load_config

VALID = (
    '{api_url: "https://api.example.dev/graphql", token: "t", '
    'account: {id: "a1", name: "acme"}, '
    'project: {id: "p1", name: "myapp", android_application_identifier: "com.acme.myapp"}}'
)


def _write(tmp_path, text, mode=0o600):
    f = tmp_path / "c.json5"
    f.write_text(text)
    os.chmod(f, mode)
    return str(f)


class TestLoadConfig:
    def test_valid_config(self, tmp_path):
        config = load_config(_write(tmp_path, VALID))
        assert config["api_url"] == "https://api.example.dev/graphql"
        assert config["account"]["name"] == "acme"
        assert config["project"]["android_application_identifier"] == "com.acme.myapp"

    def test_json5_comments_allowed(self, tmp_path):
        text = "// session\n" + VALID
        assert load_config(_write(tmp_path, text))["token"] == "t"

    def test_file_not_found(self):
        with pytest.raises(ConfigError, match="not found"):
            load_config("/nonexistent/config.json5")

    def test_permissions_too_open_644(self, tmp_path):
        with pytest.raises(ConfigError, match="too-open permissions"):
            load_config(_write(tmp_path, VALID, 0o644))

    def test_permissions_too_open_640(self, tmp_path):
        with pytest.raises(ConfigError, match="too-open permissions"):
            load_config(_write(tmp_path, VALID, 0o640))

    def test_invalid_json5(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid JSON5"):
            load_config(_write(tmp_path, "{not valid json5 at all"))

    def test_config_must_be_object(self, tmp_path):
        with pytest.raises(ConfigError, match="must be a JSON object"):
            load_config(_write(tmp_path, '["array"]'))

    def test_missing_token(self, tmp_path):
        text = '{api_url: "https://x/graphql", account: {id: "a", name: "b"}}'
        with pytest.raises(ConfigError, match="'token'"):
            load_config(_write(tmp_path, text))

    def test_missing_api_url(self, tmp_path):
        text = '{token: "t", account: {id: "a", name: "b"}}'
        with pytest.raises(ConfigError, match="'api_url'"):
            load_config(_write(tmp_path, text))

    def test_account_must_be_object(self, tmp_path):
        text = '{api_url: "https://x/graphql", token: "t", account: "acme"}'
        with pytest.raises(ConfigError, match="'account' must be an object"):
            load_config(_write(tmp_path, text))

    def test_account_missing_name(self, tmp_path):
        text = '{api_url: "https://x/graphql", token: "t", account: {id: "a"}}'
        with pytest.raises(ConfigError, match="missing 'name'"):
            load_config(_write(tmp_path, text))

    def test_project_must_be_object(self, tmp_path):
        text = '{api_url: "https://x/graphql", token: "t", account: {id: "a", name: "b"}, project: 1}'
        with pytest.raises(ConfigError, match="'project' must be an object"):
            load_config(_write(tmp_path, text))

    def test_project_section_optional(self, tmp_path):
        text = '{api_url: "https://x/graphql", token: "t", account: {id: "a", name: "b"}}'
        assert "project" not in load_config(_write(tmp_path, text))

    def test_bad_http_timeout(self, tmp_path):
        text = (
            '{api_url: "https://x/graphql", token: "t", account: {id: "a", name: "b"}, '
            'timeouts: {http: 0}}'
        )
        with pytest.raises(ConfigError, match="timeouts.http"):
            load_config(_write(tmp_path, text))
