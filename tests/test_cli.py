import json
from pathlib import Path
from unittest.mock import patch, MagicMock

import click
import pytest
from click.testing import CliRunner

from raml_prerender.cli import main, _plan_outputs
from raml_prerender.prerender.pipeline import BatchResult, DocumentFailure

FIXTURES = Path(__file__).parent / "fixtures"


class TestPlanOutputs:
    def test_single_source_writes_to_output(self):
        assert _plan_outputs((Path("a.raml"),), Path("out.json")) == [(Path("a.raml"), Path("out.json"))]

    def test_several_sources_write_into_directory(self):
        jobs = _plan_outputs((Path("x/a.raml"), Path("b.raml")), Path("out"))
        assert jobs == [(Path("x/a.raml"), Path("out/a.json")), (Path("b.raml"), Path("out/b.json"))]

    def test_colliding_names_rejected(self):
        with pytest.raises(click.UsageError, match="both be written"):
            _plan_outputs((Path("x/a.raml"), Path("y/a.raml")), Path("out"))

    def test_render_colliding_names_exits_without_writing(self, tmp_path):
        (tmp_path / "x").mkdir()
        (tmp_path / "y").mkdir()
        for sub in ("x", "y"):
            (tmp_path / sub / "api.raml").write_text("#%RAML 1.0\ntitle: t\n")
        runner = CliRunner()
        result = runner.invoke(main, [
            "render", str(tmp_path / "x" / "api.raml"), str(tmp_path / "y" / "api.raml"), "-o", str(tmp_path / "out"),
        ])

        assert result.exit_code == 2
        assert "both be written" in result.output
        assert not (tmp_path / "out").exists()


class TestCliRender:
    def test_render_single_file(self, tmp_path):
        output = tmp_path / "simple.json"
        runner = CliRunner()
        result = runner.invoke(main, ["render", str(FIXTURES / "simple.raml"), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "All done." in result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["title"] == "Pet Store"

    def test_render_pretty_print(self, tmp_path):
        output = tmp_path / "simple.json"
        runner = CliRunner()
        result = runner.invoke(main, [
            "render", str(FIXTURES / "simple.raml"), "-o", str(output), "--pretty-print", "2",
        ])

        assert result.exit_code == 0, result.output
        assert output.read_text(encoding="utf-8").startswith('{\n  "title"')

    def test_render_validation_error_fails(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["render", str(FIXTURES / "invalid.raml"), "-o", str(tmp_path / "x.json")])

        assert result.exit_code == 1
        assert "Missing required property 'title'" in result.output
        assert not (tmp_path / "x.json").exists()

    def test_render_no_validate_continues(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "render", str(FIXTURES / "invalid.raml"), "-o", str(tmp_path / "x.json"), "--no-validate",
        ])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "x.json").exists()

    @patch("raml_prerender.cli.Prerenderer")
    def test_render_passes_options(self, MockPrerenderer, tmp_path):
        mock = MagicMock()
        mock.process_batch.return_value = BatchResult()
        MockPrerenderer.return_value = mock

        runner = CliRunner()
        result = runner.invoke(main, [
            "render", str(FIXTURES / "simple.raml"), str(FIXTURES / "yamlschema.raml"),
            "-o", str(tmp_path), "--pretty-print", "4", "--no-validate",
        ])

        assert result.exit_code == 0, result.output
        options = MockPrerenderer.call_args.kwargs["options"]
        assert options.pretty_print == 4
        assert options.validate_raml is False
        jobs = mock.process_batch.call_args.args[0]
        assert [dest.name for _, dest in jobs] == ["simple.json", "yamlschema.json"]

    @patch("raml_prerender.cli.Prerenderer")
    def test_render_reports_failing_source(self, MockPrerenderer, tmp_path):
        mock = MagicMock()
        mock.process_batch.return_value = BatchResult(
            failure=DocumentFailure(source="simple.raml", message="Error formatting simple.raml boom"),
        )
        MockPrerenderer.return_value = mock

        runner = CliRunner()
        result = runner.invoke(main, ["render", str(FIXTURES / "simple.raml"), "-o", str(tmp_path / "x.json")])

        assert result.exit_code == 1
        assert "simple.raml: Error formatting simple.raml boom" in result.output


class TestCliBuild:
    def _write_config(self, tmp_path: Path, body: str) -> Path:
        config = tmp_path / "raml-prerender.yaml"
        config.write_text(body, encoding="utf-8")
        return config

    def test_build_runs_target(self, tmp_path):
        config = self._write_config(tmp_path, (
            "targets:\n"
            "  default_options:\n"
            f"    cwd: {FIXTURES.as_posix()}\n"
            "    src: ['sample1/*.raml']\n"
            "    dest: tmp/\n"
        ))

        runner = CliRunner()
        result = runner.invoke(main, ["build", "-c", str(config)])

        assert result.exit_code == 0, result.output
        output = tmp_path / "tmp" / "sample1" / "ex-section.json"
        data = json.loads(output.read_text(encoding="utf-8"))
        assert [r["relativeUri"] for r in data["resources"]] == ["/sections", "/sections/{sectionId}"]

    def test_build_unknown_target(self, tmp_path):
        config = self._write_config(tmp_path, "targets: {}\n")
        runner = CliRunner()
        result = runner.invoke(main, ["build", "-c", str(config), "nope"])

        assert result.exit_code != 0
        assert "Unknown target(s): nope" in result.output

    def test_build_stops_at_first_failing_target(self, tmp_path):
        config = self._write_config(tmp_path, (
            "targets:\n"
            "  broken:\n"
            f"    cwd: {FIXTURES.as_posix()}\n"
            "    src: ['invalid.raml']\n"
            "    dest: out/\n"
            "  good:\n"
            f"    cwd: {FIXTURES.as_posix()}\n"
            "    src: ['simple.raml']\n"
            "    dest: out/\n"
        ))

        runner = CliRunner()
        result = runner.invoke(main, ["build", "-c", str(config)])

        assert result.exit_code == 1
        assert "invalid.raml" in result.output
        assert not (tmp_path / "out" / "simple.json").exists()

    def test_build_invalid_config(self, tmp_path):
        config = self._write_config(tmp_path, "targets:\n  docs:\n    dest: out/\n")
        runner = CliRunner()
        result = runner.invoke(main, ["build", "-c", str(config)])

        assert result.exit_code == 1
        assert "Invalid config" in result.output
