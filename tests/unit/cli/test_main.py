"""Tests for the command line interface."""

import json

import pytest

from sentiment_crawler.cli.main import cli, main
from sentiment_crawler.version import __version__


@pytest.mark.cli
class TestCLIOptions:
    """Test help, version and option parsing."""

    @pytest.mark.parametrize("flag", ["-help", "--help", "-h"])
    def test_help(self, cli_runner, flag):
        result = cli_runner.invoke(cli, [flag])

        assert result.exit_code == 0
        assert "-url" in result.output
        assert "-outputDir" in result.output
        assert "-outputFormat" in result.output
        assert "turtle" in result.output

    def test_version(self, cli_runner):
        result = cli_runner.invoke(cli, ["-version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_unknown_option(self, cli_runner):
        result = cli_runner.invoke(cli, ["-bogus"])
        assert result.exit_code == 2

    def test_option_without_value(self, cli_runner):
        result = cli_runner.invoke(cli, ["-url"])
        assert result.exit_code == 2

    def test_long_option_aliases(self, cli_runner, haspart_html, temp_dir):
        result = cli_runner.invoke(cli, [
            "--url", str(haspart_html),
            "--output-dir", str(temp_dir),
            "--output-format", "nquads",
        ])

        assert result.exit_code == 0
        assert "Selected NQuadsWriter as output writer." in result.output


@pytest.mark.cli
class TestCLIRun:
    """Test running an extraction from the command line."""

    def test_success(self, cli_runner, haspart_html, temp_dir):
        result = cli_runner.invoke(cli, ["-url", str(haspart_html), "-outputDir", str(temp_dir)])

        assert result.exit_code == 0
        assert "Selected TurtleWriter as output writer." in result.output
        assert "Successfully wrote file to:" in result.output
        assert "schema:hasPart" in (temp_dir / "sentiment.txt").read_text(encoding="utf-8")

    def test_file_uri(self, cli_runner, haspart_html, temp_dir):
        result = cli_runner.invoke(cli, ["-url", haspart_html.as_uri(), "-outputDir", str(temp_dir)])

        assert result.exit_code == 0
        assert (temp_dir / "sentiment.txt").exists()

    def test_default_output_dir_is_cwd(self, cli_runner, haspart_html, tmp_path):
        with cli_runner.isolated_filesystem(temp_dir=tmp_path) as cwd:
            result = cli_runner.invoke(cli, ["-url", str(haspart_html)])

            assert result.exit_code == 0
            assert (tmp_path / cwd / "sentiment.txt").exists()

    def test_json_format(self, cli_runner, haspart_html, temp_dir):
        result = cli_runner.invoke(cli, [
            "-url", str(haspart_html), "-outputDir", str(temp_dir), "-outputFormat", "json"
        ])

        assert result.exit_code == 0
        assert "Selected JSONWriter as output writer." in result.output
        data = json.loads((temp_dir / "sentiment.txt").read_text(encoding="utf-8"))
        assert len(data["quads"]) == 1

    def test_unknown_format_defaults_to_turtle(self, cli_runner, haspart_html, temp_dir):
        result = cli_runner.invoke(cli, [
            "-url", str(haspart_html), "-outputDir", str(temp_dir), "-outputFormat", "yaml"
        ])

        assert result.exit_code == 0
        assert "No output writer found for type: yaml" in result.output
        assert "Defaulting to TurtleWriter output serialization" in result.output
        assert "Selected TurtleWriter as output writer." in result.output

    def test_whitespace_format_is_reported(self, cli_runner, haspart_html, temp_dir):
        result = cli_runner.invoke(cli, [
            "-url", str(haspart_html), "-outputDir", str(temp_dir), "-outputFormat", " "
        ])

        assert result.exit_code == 0
        assert "No output writer found for type:" in result.output
        assert "Defaulting to TurtleWriter output serialization" in result.output
        assert "schema:hasPart" in (temp_dir / "sentiment.txt").read_text(encoding="utf-8")

    def test_missing_url(self, cli_runner, temp_dir):
        result = cli_runner.invoke(cli, ["-outputDir", str(temp_dir)])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "-url" in result.output
        assert not (temp_dir / "sentiment.txt").exists()

    def test_malformed_url(self, cli_runner, temp_dir):
        result = cli_runner.invoke(cli, ["-url", "not a url", "-outputDir", str(temp_dir)])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert not (temp_dir / "sentiment.txt").exists()

    def test_unsupported_document(self, cli_runner, plain_text, temp_dir):
        result = cli_runner.invoke(cli, ["-url", str(plain_text), "-outputDir", str(temp_dir)])

        assert result.exit_code == 1
        assert not (temp_dir / "sentiment.txt").exists()

    def test_missing_output_dir(self, cli_runner, haspart_html, temp_dir):
        result = cli_runner.invoke(cli, ["-url", str(haspart_html), "-outputDir", str(temp_dir / "missing")])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_verbose_shows_summary(self, cli_runner, haspart_html, temp_dir):
        result = cli_runner.invoke(cli, ["-url", str(haspart_html), "-outputDir", str(temp_dir), "-verbose"])

        assert result.exit_code == 0
        assert "Extraction Summary" in result.output

    def test_quiet(self, cli_runner, haspart_html, temp_dir):
        result = cli_runner.invoke(cli, ["-url", str(haspart_html), "-outputDir", str(temp_dir), "-quiet"])

        assert result.exit_code == 0
        assert "Selected" not in result.output
        assert (temp_dir / "sentiment.txt").exists()


@pytest.mark.cli
class TestCLIConfiguration:
    def test_config_file(self, cli_runner, haspart_html, temp_dir, temp_config_file):
        result = cli_runner.invoke(cli, [
            "-url", str(haspart_html), "-outputDir", str(temp_dir), "-config", str(temp_config_file)
        ])

        assert result.exit_code == 0
        assert "Selected NTriplesWriter as output writer." in result.output

    def test_missing_config_file(self, cli_runner, haspart_html, temp_dir):
        result = cli_runner.invoke(cli, [
            "-url", str(haspart_html), "-outputDir", str(temp_dir), "-config", str(temp_dir / "nope.yaml")
        ])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_invalid_config_file(self, cli_runner, haspart_html, temp_dir):
        config_file = temp_dir / "bad.yaml"
        config_file.write_text("output:\n  default_format: yaml\n")

        result = cli_runner.invoke(cli, [
            "-url", str(haspart_html), "-outputDir", str(temp_dir), "-config", str(config_file)
        ])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_environment_default_format(self, cli_runner, haspart_html, temp_dir, monkeypatch):
        monkeypatch.setenv("SENTIMENT_CRAWLER_OUTPUT__DEFAULT_FORMAT", "json")

        result = cli_runner.invoke(cli, ["-url", str(haspart_html), "-outputDir", str(temp_dir)])

        assert result.exit_code == 0
        assert "Selected JSONWriter as output writer." in result.output

    def test_explicit_format_beats_configured_default(self, cli_runner, haspart_html, temp_dir, monkeypatch):
        monkeypatch.setenv("SENTIMENT_CRAWLER_OUTPUT__DEFAULT_FORMAT", "json")

        result = cli_runner.invoke(cli, [
            "-url", str(haspart_html), "-outputDir", str(temp_dir), "-outputFormat", "trix"
        ])

        assert "Selected TriXWriter as output writer." in result.output


@pytest.mark.cli
class TestMainFunction:
    """Test the exit codes returned by main()."""

    def test_success(self, haspart_html, temp_dir):
        assert main(["-url", str(haspart_html), "-outputDir", str(temp_dir), "-quiet"]) == 0
        assert (temp_dir / "sentiment.txt").exists()

    def test_help(self):
        assert main(["-help"]) == 0

    def test_version(self):
        assert main(["-version"]) == 0

    def test_usage_error(self):
        assert main(["-bogus"]) == 2

    def test_run_failure(self, temp_dir):
        assert main(["-url", "ftp://example.org/x", "-outputDir", str(temp_dir)]) == 1
        assert not (temp_dir / "sentiment.txt").exists()
