"""
Tests for the settings layer.
"""

import re

import pytest
from pydantic import ValidationError

from readcore.config import Config, ExtractionSettings, LoggingConfig, ParserSettings, ReaderableSettings
from readcore.extractor import patterns


@pytest.mark.unit
class TestDefaults:
    """Defaults mirror the engine's own defaults."""

    def test_extraction_defaults(self):
        settings = ExtractionSettings()
        assert settings.max_elems_to_parse == 0
        assert settings.nb_top_candidates == 5
        assert settings.char_threshold == 500
        assert settings.classes_to_preserve == []
        assert settings.allowed_video_regex == patterns.VIDEOS.pattern

    def test_readerable_defaults(self):
        settings = ReaderableSettings()
        assert settings.min_content_length == 140
        assert settings.min_score == 20.0

    def test_config_nests_sections(self):
        config = Config()
        assert config.project_name == "ReadCore"
        assert isinstance(config.parser, ParserSettings)
        assert config.logging.log_level == "INFO"


@pytest.mark.unit
class TestValidation:
    """Field validators reject unusable values."""

    def test_negative_ceiling_rejected(self):
        with pytest.raises(ValidationError):
            ExtractionSettings(max_elems_to_parse=-1)
        with pytest.raises(ValidationError):
            ParserSettings(max_elems=-5)

    def test_bad_video_regex_rejected(self):
        with pytest.raises(ValidationError):
            ExtractionSettings(allowed_video_regex="")
        with pytest.raises(ValidationError):
            ExtractionSettings(allowed_video_regex="(unclosed")

    def test_bad_readerable_pattern_rejected(self):
        with pytest.raises(ValidationError):
            ReaderableSettings(unlikely_patterns=["[oops"])

    def test_top_candidates_must_be_positive(self):
        with pytest.raises(ValidationError):
            ExtractionSettings(nb_top_candidates=0)

    def test_log_level_normalized(self):
        assert LoggingConfig(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            LoggingConfig(log_level="chatty")

    def test_log_file_parent_created(self, tmp_path):
        target = tmp_path / "logs" / "nested" / "readcore.log"
        config = LoggingConfig(log_file=target)
        assert config.log_file == str(target)
        assert target.parent.is_dir()


@pytest.mark.unit
class TestEngineOptions:
    """``ExtractionSettings.engine_options`` feeds ``Readability``."""

    def test_regex_compiled_case_insensitive(self):
        options = ExtractionSettings(allowed_video_regex=r"videos\.example").engine_options()
        regex = options["allowed_video_regex"]
        assert isinstance(regex, re.Pattern)
        assert regex.search("https://VIDEOS.example/embed")

    def test_classes_become_tuple(self):
        options = ExtractionSettings(classes_to_preserve=["keep", "me"]).engine_options()
        assert options["classes_to_preserve"] == ("keep", "me")
        assert set(options) == {
            "debug",
            "max_elems_to_parse",
            "nb_top_candidates",
            "char_threshold",
            "classes_to_preserve",
            "keep_classes",
            "disable_json_ld",
            "allowed_video_regex",
            "link_density_modifier",
        }


@pytest.mark.unit
class TestSources:
    """Environment variables and YAML files."""

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("READCORE_EXTRACTION__CHAR_THRESHOLD", "250")
        monkeypatch.setenv("READCORE_READERABLE__MIN_SCORE", "5.5")
        config = Config()
        assert config.extraction.char_threshold == 250
        assert config.readerable.min_score == 5.5

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "readcore.yaml"
        path.write_text(
            "project_name: Clipper\n"
            "extraction:\n"
            "  char_threshold: 100\n"
            "  keep_classes: true\n"
            "readerable:\n"
            "  min_content_length: 80\n",
            encoding="utf-8",
        )
        config = Config.from_yaml(path)
        assert config.project_name == "Clipper"
        assert config.extraction.char_threshold == 100
        assert config.extraction.keep_classes is True
        assert config.readerable.min_content_length == 80

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert Config.from_yaml(path).extraction.char_threshold == 500

    def test_missing_yaml(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config.from_yaml(tmp_path / "absent.yaml")


@pytest.mark.unit
class TestParserOptions:
    """``ParserSettings.parser_options`` feeds ``parse_markup``."""

    def test_ceiling_applied(self):
        from readcore.exceptions import DocumentTooLarge
        from readcore.parser import parse_markup

        settings = ParserSettings(max_elems=2)
        result = parse_markup("<div><p>a</p><p>b</p></div>", **settings.parser_options())
        assert result.fatal

        strict = ParserSettings(max_elems=2, raise_on_fatal=True)
        with pytest.raises(DocumentTooLarge):
            parse_markup("<div><p>a</p><p>b</p></div>", **strict.parser_options())
