import pytest
from pydantic import ValidationError

from dynaflags.errors import ConfigError
from dynaflags.settings import (
    CLIConfig,
    RuntimeSettings,
    env_prefix,
    find_config_file,
    load_config,
)


def test_default_config():
    config = CLIConfig()

    assert config.log_level == "info"
    assert config.log_format == "text"
    assert config.plugins == []
    assert config.disabled_plugins == []


def test_config_validation():
    assert CLIConfig(log_level="VERBOSE").log_level == "verbose"

    with pytest.raises(ValidationError):
        CLIConfig(log_level="shouting")

    with pytest.raises(ValidationError):
        CLIConfig(log_format="xml")


def test_config_from_file(tmp_path):
    path = tmp_path / "cli.yaml"
    path.write_text("log_format: json\nplugins:\n  - pkg.plugin\n")

    config = CLIConfig.from_file(path)

    assert config.log_format == "json"
    assert config.plugins == ["pkg.plugin"]


def test_empty_config_file(tmp_path):
    path = tmp_path / "cli.yaml"
    path.write_text("")

    assert CLIConfig.from_file(path) == CLIConfig()


@pytest.mark.parametrize("content", ["log_level: [unclosed", "- just\n- a list\n", "log_format: xml\n"])
def test_bad_config_files(tmp_path, content):
    path = tmp_path / "cli.yaml"
    path.write_text(content)

    with pytest.raises(ConfigError):
        CLIConfig.from_file(path)


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        CLIConfig.from_file(tmp_path / "absent.yaml")


def test_env_settings_use_prefix(monkeypatch):
    monkeypatch.setenv("MYCLI_LOG_LEVEL", "debug")
    monkeypatch.setenv("MYCLI_PLUGINS", "one.plugin, two.plugin,")

    settings = RuntimeSettings(_env_prefix="MYCLI_")

    assert settings.log_level == "debug"
    assert settings.plugin_list() == ["one.plugin", "two.plugin"]


def test_environment_wins_over_file():
    base = CLIConfig(log_level="error", log_format="json", plugins=["one.plugin"])
    settings = RuntimeSettings(_env_prefix="NOPE_", log_level="trace", plugins="one.plugin,two.plugin")

    config = settings.to_config(base)

    assert config.log_level == "trace"
    assert config.log_format == "json"
    assert config.plugins == ["one.plugin", "two.plugin"]
    assert base.plugins == ["one.plugin"]


def test_invalid_environment_value():
    with pytest.raises(ConfigError):
        RuntimeSettings(_env_prefix="NOPE_", log_format="xml").to_config()


class TestConfigLookup:
    @pytest.fixture(autouse=True)
    def workdir(self, tmp_path, monkeypatch, home):
        work = tmp_path / "work"
        work.mkdir()
        monkeypatch.chdir(work)
        return work

    def test_nothing_found(self):
        assert find_config_file("mycli") is None
        assert load_config("mycli", settings=RuntimeSettings(_env_prefix="NOPE_")) == CLIConfig()

    def test_user_config(self, home):
        user = home / ".mycli" / "mycli.yaml"
        user.parent.mkdir()
        user.write_text("log_level: warn\n")

        assert find_config_file("mycli") == user
        assert load_config("mycli", settings=RuntimeSettings(_env_prefix="NOPE_")).log_level == "warn"

    def test_local_config_beats_user_config(self, home, workdir):
        user = home / ".mycli" / "mycli.yaml"
        user.parent.mkdir()
        user.write_text("log_level: warn\n")
        (workdir / "mycli.yaml").write_text("log_level: debug\n")

        assert load_config("mycli", settings=RuntimeSettings(_env_prefix="NOPE_")).log_level == "debug"

    def test_explicit_path_wins(self, tmp_path, workdir):
        (workdir / "mycli.yaml").write_text("log_level: debug\n")
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("log_level: error\n")

        config = load_config("mycli", explicit, RuntimeSettings(_env_prefix="NOPE_"))

        assert config.log_level == "error"


def test_env_prefix():
    assert env_prefix("my-cli") == "MY_CLI"
