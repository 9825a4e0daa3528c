from pathlib import Path

import pytest
from pydantic import ValidationError

from raml_prerender.config import PrerenderConfig, PrerenderOptions, Target, load_config
from raml_prerender.loader.base import Diagnostic, LoadedApi


class TestDiagnostic:
    def test_describe_error(self):
        d = Diagnostic(is_warning=False, path="api.raml", line=7, message="Bad", document_version="RAML08")
        assert d.describe() == "Error RAML08 (api.raml:7) Bad"

    def test_describe_warning(self):
        d = Diagnostic(is_warning=True, path="api.raml", line=2, message="Odd", document_version="RAML10")
        assert d.describe() == "Warning RAML10 (api.raml:2) Odd"


class TestLoadedApi:
    def test_first_error_skips_warnings(self):
        warning = Diagnostic(is_warning=True, path="p", line=1, message="w", document_version="RAML10")
        error = Diagnostic(is_warning=False, path="p", line=2, message="e", document_version="RAML10")
        api = LoadedApi(path="p", raml_version="RAML10", data={}, diagnostics=[warning, error])
        assert api.first_error() is error

    def test_no_errors(self):
        assert LoadedApi(path="p", raml_version="RAML10", data={}).first_error() is None


class TestPrerenderOptions:
    def test_defaults(self):
        options = PrerenderOptions()
        assert options.pretty_print is None
        assert options.validate_raml is True

    def test_config_file_keys(self):
        options = PrerenderOptions.model_validate({"prettyPrint": 2, "validate": False})
        assert options.pretty_print == 2
        assert options.validate_raml is False

    def test_negative_indent_rejected(self):
        with pytest.raises(ValidationError):
            PrerenderOptions(pretty_print=-1)


class TestTarget:
    def test_expand_maps_sources_to_destinations(self, tmp_path):
        (tmp_path / "raml" / "v1").mkdir(parents=True)
        (tmp_path / "raml" / "v1" / "b.raml").write_text("")
        (tmp_path / "raml" / "v1" / "a.raml").write_text("")
        target = Target(cwd=Path("raml"), src=["v1/*.raml"], dest=Path("out"))

        jobs = target.expand(tmp_path)

        assert jobs == [
            (tmp_path / "raml" / "v1" / "a.raml", tmp_path / "out" / "v1" / "a.json"),
            (tmp_path / "raml" / "v1" / "b.raml", tmp_path / "out" / "v1" / "b.json"),
        ]

    def test_unmatched_pattern_warns(self, tmp_path, caplog):
        assert Target(src=["*.raml"], dest=Path("out")).expand(tmp_path) == []
        assert "matched no files" in caplog.text


class TestLoadConfig:
    def test_target_options_override_globals(self, tmp_path):
        config_file = tmp_path / "raml-prerender.yaml"
        config_file.write_text(
            "options:\n  validate: false\n  prettyPrint: 4\n"
            "targets:\n  docs:\n    src: ['*.raml']\n    dest: out\n    options:\n      prettyPrint: 2\n"
        )

        config = load_config(config_file)

        assert isinstance(config, PrerenderConfig)
        options = config.target_options("docs")
        assert options.pretty_print == 2
        assert options.validate_raml is False

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / "raml-prerender.yaml"
        config_file.write_text("")
        assert load_config(config_file).targets == {}
