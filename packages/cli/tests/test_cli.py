"""Tests for the CLI entry point."""

from click.testing import CliRunner

from azreview_cli.cli import main
from azreview_core.pipelines import TaskResult
from azreview_core.reviewer import ReviewSummary


def _patch_run(mocker, summary):
    mocker.patch("azreview_cli.cli._configure_logging")
    return mocker.patch("azreview_cli.commands.review.run_review", return_value=summary)


class TestReviewCommand:
    def test_success_reports_result(self, mocker):
        _patch_run(
            mocker,
            ReviewSummary(TaskResult.SUCCEEDED, "Pull Request reviewed.", reviewed_files=["a.py"], commented_files=["a.py"]),
        )

        result = CliRunner().invoke(main, ["review"])

        assert result.exit_code == 0
        assert "##vso[task.complete result=Succeeded;]Pull Request reviewed." in result.output
        assert "1 file(s) reviewed" in result.output

    def test_skipped_exits_zero(self, mocker):
        _patch_run(mocker, ReviewSummary(TaskResult.SKIPPED, "Not a PR build."))

        result = CliRunner().invoke(main, ["review"])

        assert result.exit_code == 0
        assert "result=Skipped;" in result.output

    def test_failure_exits_non_zero(self, mocker):
        _patch_run(mocker, ReviewSummary(TaskResult.FAILED, "Input required and not supplied: api_key"))

        result = CliRunner().invoke(main, ["review"])

        assert result.exit_code == 1
        assert "##vso[task.complete result=Failed;]Input required and not supplied: api_key" in result.output

    def test_cli_options_feed_defaults_layer(self, mocker, tmp_path):
        mock_run = _patch_run(mocker, ReviewSummary(TaskResult.SUCCEEDED, "ok"))
        cfg = tmp_path / "cfg.yml"
        cfg.write_text("model: gpt-4o\nsupport_self_signed_certificate: true\n")

        CliRunner().invoke(main, ["--config", str(cfg), "review", "--working-dir", "/work"])

        resolver = mock_run.call_args.args[0]
        assert resolver.defaults["model"] == "gpt-4o"
        assert resolver.defaults["working_dir"] == "/work"
        assert resolver.defaults["support_self_signed_certificate"] is True

    def test_model_option_overrides_config_file(self, mocker, tmp_path):
        mock_run = _patch_run(mocker, ReviewSummary(TaskResult.SUCCEEDED, "ok"))
        cfg = tmp_path / "cfg.yml"
        cfg.write_text("model: gpt-4o\n")

        CliRunner().invoke(main, ["--config", str(cfg), "review", "--model", "gpt-4o-mini"])

        assert mock_run.call_args.args[0].defaults["model"] == "gpt-4o-mini"

    def test_config_path_from_env(self, mocker, tmp_path):
        mock_run = _patch_run(mocker, ReviewSummary(TaskResult.SUCCEEDED, "ok"))
        cfg = tmp_path / "cfg.yml"
        cfg.write_text("model: from-env-file\n")

        CliRunner().invoke(main, ["review"], env={"AZREVIEW_CONFIG": str(cfg)})

        assert mock_run.call_args.args[0].defaults["model"] == "from-env-file"


def test_version_option():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "azreview" in result.output


def test_config_option_only_on_group():
    result = CliRunner().invoke(main, ["review", "--config", "other.yml"])
    assert result.exit_code != 0
    assert "No such option" in result.output
