"""Tests for configuration loading and input resolution."""

import dataclasses

import pytest

from azreview_core.config import (
    ConfigurationError,
    InputResolver,
    MissingInputError,
    load_config,
    resolve_run_config,
)


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["model"] == "gpt-3.5-turbo"
    assert config["aoi_endpoint"] is None
    assert config["use_azure_openai"] is False
    assert config["support_self_signed_certificate"] is False


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".azreview.yml"
    cfg.write_text("model: gpt-4o\nsupport_self_signed_certificate: true\n")
    config = load_config(config_path=str(cfg))
    assert config["model"] == "gpt-4o"
    assert config["support_self_signed_certificate"] is True


def test_overrides_beat_config_file(tmp_path):
    cfg = tmp_path / ".azreview.yml"
    cfg.write_text("model: gpt-4o\n")
    config = load_config(config_path=str(cfg), overrides={"model": "gpt-4o-mini"})
    assert config["model"] == "gpt-4o-mini"


def test_none_overrides_ignored(tmp_path):
    cfg = tmp_path / ".azreview.yml"
    cfg.write_text("model: gpt-4o\n")
    config = load_config(config_path=str(cfg), overrides={"model": None})
    assert config["model"] == "gpt-4o"


def test_empty_config_file(tmp_path):
    cfg = tmp_path / ".azreview.yml"
    cfg.write_text("")
    config = load_config(config_path=str(cfg))
    assert config["model"] == "gpt-3.5-turbo"


class TestInputResolver:
    def test_task_input_wins(self):
        resolver = InputResolver(environ={"INPUT_API_KEY": "from-task", "API_KEY": "from-env"})
        assert resolver.get("api_key") == "from-task"

    def test_falls_back_to_environment(self):
        resolver = InputResolver(environ={"API_KEY": "from-env"})
        assert resolver.get("api_key") == "from-env"

    def test_environment_name_replaces_dots(self):
        resolver = InputResolver(environ={"SYSTEM_ACCESSTOKEN": "tok"})
        assert resolver.get("system.accesstoken") == "tok"

    def test_empty_task_input_falls_through(self):
        resolver = InputResolver(environ={"INPUT_MODEL": "", "MODEL": "gpt-4o"})
        assert resolver.get("model") == "gpt-4o"

    def test_falls_back_to_defaults(self):
        resolver = InputResolver(defaults={"model": "gpt-4o"}, environ={})
        assert resolver.get("model") == "gpt-4o"

    def test_missing_optional_returns_empty_string(self):
        assert InputResolver(environ={}).get("aoi_endpoint") == ""

    def test_missing_required_raises(self):
        with pytest.raises(MissingInputError, match="api_key"):
            InputResolver(environ={}).get("api_key", required=True)

    def test_custom_task_input_source(self):
        resolver = InputResolver(environ={}, task_input=lambda name: {"model": "injected"}.get(name))
        assert resolver.get("model") == "injected"

    def test_bool_from_task_input(self):
        resolver = InputResolver(environ={"INPUT_SUPPORT_SELF_SIGNED_CERTIFICATE": "true"})
        assert resolver.get_bool("support_self_signed_certificate") is True

    def test_bool_from_environment(self):
        resolver = InputResolver(environ={"SUPPORT_SELF_SIGNED_CERTIFICATE": "True"})
        assert resolver.get_bool("support_self_signed_certificate") is True

    def test_bool_false_strings(self):
        resolver = InputResolver(environ={"USE_AZURE_OPENAI": "false"})
        assert resolver.get_bool("use_azure_openai") is False

    def test_bool_from_yaml_default(self):
        resolver = InputResolver(defaults={"use_azure_openai": True}, environ={})
        assert resolver.get_bool("use_azure_openai") is True

    def test_missing_bool_is_false(self):
        assert InputResolver(environ={}).get_bool("use_azure_openai") is False


class TestResolveRunConfig:
    def test_full_configuration(self):
        environ = {
            "INPUT_API_KEY": "key",
            "INPUT_AOI_ENDPOINT": "https://example.openai.azure.com/chat",
            "INPUT_MODEL": "gpt-4o",
            "INPUT_WORKING_DIR": "/src",
            "SYSTEM_PULLREQUEST_TARGETBRANCH": "refs/heads/main",
        }
        config = resolve_run_config(InputResolver(environ=environ))
        assert config.api_key == "key"
        assert config.aoi_endpoint == "https://example.openai.azure.com/chat"
        assert config.model == "gpt-4o"
        assert config.working_dir == "/src"
        assert config.target_branch == "origin/main"
        assert config.use_azure_openai is False

    def test_missing_api_key(self):
        with pytest.raises(MissingInputError):
            resolve_run_config(InputResolver(environ={}))

    def test_managed_mode_requires_endpoint(self):
        environ = {"INPUT_API_KEY": "key", "INPUT_USE_AZURE_OPENAI": "true"}
        with pytest.raises(ConfigurationError, match="aoi_endpoint"):
            resolve_run_config(InputResolver(environ=environ))

    def test_working_dir_falls_back_to_pipeline_variable(self):
        environ = {"INPUT_API_KEY": "key", "SYSTEM_DEFAULTWORKINGDIRECTORY": "/agent/_work/1/s"}
        config = resolve_run_config(InputResolver(environ=environ))
        assert config.working_dir == "/agent/_work/1/s"

    def test_default_model(self):
        config = resolve_run_config(InputResolver(environ={"INPUT_API_KEY": "key"}))
        assert config.model == "gpt-3.5-turbo"
        assert config.aoi_endpoint is None
        assert config.target_branch is None

    def test_run_config_is_immutable(self):
        config = resolve_run_config(InputResolver(environ={"INPUT_API_KEY": "key"}))
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.api_key = "other"
