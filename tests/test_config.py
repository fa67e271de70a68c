"""Tests for source configuration loading."""

import os
import tempfile

import pytest

from nugetfu.config import (
    SourceConfig,
    build_sources,
    load_config,
    load_sources,
    parse_nuget_config,
    parse_yaml_config,
)
from nugetfu.constants import Constants
from nugetfu.exceptions import ConfigError

NUGET_CONFIG = """<?xml version="1.0" encoding="utf-8"?>
<configuration>
  <packageSources>
    <add key="nuget.org" value="https://www.nuget.org/api/v2/" />
    <add key="My Feed" value="https://pkgs.example/feed/v2/" />
    <add key="local" value="%USERPROFILE%\\packages" />
  </packageSources>
  <disabledPackageSources>
    <add key="local" value="true" />
  </disabledPackageSources>
  <packageSourceCredentials>
    <My_x0020_Feed>
      <add key="Username" value="builder" />
      <add key="ClearTextPassword" value="%FEED_TOKEN%" />
    </My_x0020_Feed>
  </packageSourceCredentials>
</configuration>
"""

YAML_CONFIG = """
sources:
  - name: nuget.org
    path: https://www.nuget.org/api/v2/
  - name: local
    path: $HOME/packages
    enabled: false
  - name: private
    path: https://pkgs.example/feed/v2/
    username: builder
    password: ${FEED_TOKEN}
"""


class TestParseNugetConfig:
    """Test NuGet.config parsing."""

    def test_sources_in_document_order(self):
        configs = parse_nuget_config(NUGET_CONFIG)
        assert [c.name for c in configs] == ["nuget.org", "My Feed", "local"]

    def test_disabled_and_credentials(self):
        """Credentials are matched through the encoded element name."""
        by_name = {c.name: c for c in parse_nuget_config(NUGET_CONFIG)}
        assert not by_name["local"].enabled
        assert by_name["nuget.org"].enabled
        assert by_name["My Feed"].username == "builder"
        assert by_name["My Feed"].password == "%FEED_TOKEN%"
        assert by_name["nuget.org"].password is None

    def test_invalid_xml(self):
        with pytest.raises(ConfigError):
            parse_nuget_config("<configuration>")


class TestParseYamlConfig:
    """Test YAML configuration parsing."""

    def test_sources(self):
        configs = parse_yaml_config(YAML_CONFIG)
        assert configs[0] == SourceConfig("nuget.org", "https://www.nuget.org/api/v2/")
        assert configs[1].enabled is False
        assert configs[2].username == "builder"
        assert configs[2].password == "${FEED_TOKEN}"

    def test_empty_document(self):
        assert parse_yaml_config("") == []

    @pytest.mark.parametrize(
        "text",
        ["sources: [", "- just\n- a list", "sources: nope", "sources:\n  - name: missing-path"],
    )
    def test_invalid(self, text):
        with pytest.raises(ConfigError):
            parse_yaml_config(text)


class TestLoadConfig:
    """Test locating and loading configuration files."""

    def test_missing_default_uses_nuget_org(self, monkeypatch, tmp_path):
        monkeypatch.delenv(Constants.ENV_CONFIG_PATH, raising=False)
        monkeypatch.chdir(tmp_path)
        configs = load_config()
        assert [(c.name, c.path) for c in configs] == [
            (Constants.DEFAULT_SOURCE_NAME, Constants.DEFAULT_SOURCE_URL)
        ]

    def test_missing_explicit_path_is_error(self):
        with pytest.raises(ConfigError):
            load_config("/nonexistent/NuGet.config")

    def test_env_var_points_to_yaml(self, monkeypatch):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "sources.yml")
            with open(path, "w", encoding="utf-8") as f:
                f.write(YAML_CONFIG)
            monkeypatch.setenv(Constants.ENV_CONFIG_PATH, path)
            assert len(load_config()) == 3

    def test_xml_with_bom(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "NuGet.config")
            with open(path, "w", encoding="utf-8-sig") as f:
                f.write(NUGET_CONFIG.replace('<?xml version="1.0" encoding="utf-8"?>\n', ""))
            sources = load_sources(path)
        assert [s.name for s in sources] == ["nuget.org", "My Feed", "local"]
        assert sources[0].is_local is False
        assert sources[2].is_local is True
        assert sources[2].enabled is False


class TestBuildSources:
    """Test turning descriptors into sources."""

    def test_builds_fresh_sources(self, monkeypatch):
        monkeypatch.setenv("FEED_TOKEN", "t0ken")
        configs = [SourceConfig("private", "https://pkgs.example/feed/v2/", "builder", "$FEED_TOKEN")]
        first = build_sources(configs)
        second = build_sources(configs)
        assert first[0] is not second[0]
        assert first[0].username == "builder"
        assert first[0].password == "t0ken"
