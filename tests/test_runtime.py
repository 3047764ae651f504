import logging

import pytest

from dynaflags.errors import AliasConflictError, ConfigError, FlagValidationError
from dynaflags.plugins import Plugin
from dynaflags.runtime import CLIRuntime, init_runtime
from dynaflags.settings import RuntimeSettings
from dynaflags.standard_flags import StandardFlagsPlugin


class OutputPlugin(Plugin):
    name = "output"

    def on_plugin_load(self, event):
        event.registry.register("build", event.name, {"output": {"alias": "o"}})


class ClashPlugin(Plugin):
    name = "clash"

    def on_plugin_load(self, event):
        event.registry.register("build", event.name, {"out": {"alias": "o"}})


def test_runtime_defaults(tmp_path, home):
    runtime = CLIRuntime(name="my-cli", version="2.0.0", orig_cwd=tmp_path)

    assert runtime.base_cwd == tmp_path
    assert runtime.log_cwd == "."
    assert runtime.log_dir == home / ".my-cli" / "logs"
    assert runtime.name_version == "my-cli (2.0.0)"
    assert runtime.env_prefix == "MY_CLI"


def test_change_cwd_outside_original(runtime, tmp_path):
    outside = tmp_path.parent

    assert runtime.change_cwd("..") == outside.resolve()
    assert runtime.log_cwd == str(outside.resolve())


def test_change_cwd_missing(runtime):
    with pytest.raises(FlagValidationError, match="does not exist"):
        runtime.change_cwd("nowhere")


class TestInitRuntime:
    @pytest.fixture(autouse=True)
    def workdir(self, tmp_path, monkeypatch, home):
        work = tmp_path / "work"
        work.mkdir()
        monkeypatch.chdir(work)
        return work

    def test_loads_standard_and_given_plugins(self, workdir):
        runtime = init_runtime(
            "testcli",
            "1.2.3",
            plugins=[OutputPlugin()],
            standard_commands=["build"],
            settings=RuntimeSettings(_env_prefix="TESTCLI_"),
        )

        assert runtime.orig_cwd == workdir
        assert runtime.plugins.names() == [StandardFlagsPlugin.name, "output"]
        assert set(runtime.registry.resolve("build")) == {
            "cwd",
            "loglevel",
            "metafile",
            "no-color",
            "noop",
            "output",
        }

    def test_conflicting_plugins_abort_startup(self):
        with pytest.raises(AliasConflictError):
            init_runtime(
                "testcli",
                "1.2.3",
                plugins=[OutputPlugin(), ClashPlugin()],
                settings=RuntimeSettings(_env_prefix="TESTCLI_"),
            )

    def test_config_file_plugins_and_logging(self, workdir, tmp_path, monkeypatch):
        (tmp_path / "cfgplugin_for_runtime.py").write_text(
            "def on_plugin_load(event):\n"
            "    event.registry.register('build', event.name, {'from-config': {}})\n"
        )
        (workdir / "testcli.yaml").write_text(
            "log_level: debug\nplugins:\n  - cfgplugin_for_runtime\n"
        )
        monkeypatch.syspath_prepend(str(tmp_path))

        runtime = init_runtime("testcli", "1.2.3", settings=RuntimeSettings(_env_prefix="TESTCLI_"))

        assert runtime.config.log_level == "debug"
        assert logging.getLogger().level == logging.DEBUG
        assert runtime.registry.owner("build", "from-config") == "cfgplugin_for_runtime"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TESTCLI_LOG_LEVEL", "warn")
        monkeypatch.setenv("TESTCLI_LOG_DIR", str(tmp_path / "elsewhere"))

        runtime = init_runtime("testcli", "1.2.3")

        assert runtime.config.log_level == "warn"
        assert runtime.log_dir == tmp_path / "elsewhere"
        assert logging.getLogger().level == logging.WARNING

    def test_disabled_plugins_from_config(self, workdir):
        (workdir / "testcli.yaml").write_text("disabled_plugins: [output]\n")

        runtime = init_runtime(
            "testcli", "1.2.3", plugins=[OutputPlugin()], settings=RuntimeSettings(_env_prefix="TESTCLI_")
        )

        assert runtime.plugins.names() == []

    def test_bad_config_fails(self, workdir):
        (workdir / "testcli.yaml").write_text("log_level: shouting\n")

        with pytest.raises(ConfigError):
            init_runtime("testcli", "1.2.3", settings=RuntimeSettings(_env_prefix="TESTCLI_"))
