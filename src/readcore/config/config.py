"""
Configuration management for ReadCore using Pydantic.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from readcore.extractor import patterns

# --- Setup Logging ---
log = logging.getLogger(__name__)

# --- Nested Configuration Models ---


class ParserSettings(BaseModel):
    """Configuration for the markup parser."""

    max_elems: int = Field(default=0, description="Element ceiling while parsing; 0 disables it.")
    raise_on_fatal: bool = Field(default=False, description="Raise instead of returning a fatal ParseResult.")

    @field_validator("max_elems")
    @classmethod
    def validate_max_elems(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_elems must not be negative")
        return v

    def parser_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``parse_markup``."""
        return {"max_elems": self.max_elems, "raise_on_fatal": self.raise_on_fatal}


class ReaderableSettings(BaseModel):
    """Thresholds for the readerable pre-check."""

    min_content_length: int = Field(default=140, ge=0, description="Characters a node needs before it counts.")
    min_score: float = Field(default=20.0, ge=0.0, description="Accumulated score that marks a page readerable.")
    unlikely_patterns: List[str] = Field(default_factory=list, description="Extra unlikely class/id patterns.")
    likely_patterns: List[str] = Field(default_factory=list, description="Extra likely class/id patterns.")

    @field_validator("unlikely_patterns", "likely_patterns")
    @classmethod
    def validate_patterns(cls, v: List[str]) -> List[str]:
        """Ensure every extra pattern compiles."""
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid pattern {pattern!r}: {e}") from e
        return v


class ExtractionSettings(BaseModel):
    """Configuration for the extraction engine."""

    max_elems_to_parse: int = Field(default=0, description="Abort when the document has more elements; 0 disables.")
    nb_top_candidates: int = Field(default=5, ge=1, description="Number of top candidates kept while scoring.")
    char_threshold: int = Field(default=500, ge=0, description="Characters an attempt must yield to be accepted.")
    classes_to_preserve: List[str] = Field(default_factory=list, description="Class tokens kept in the output.")
    keep_classes: bool = Field(default=False, description="Skip class stripping entirely.")
    disable_json_ld: bool = Field(default=False, description="Ignore schema.org JSON-LD metadata.")
    allowed_video_regex: str = Field(
        default=patterns.VIDEOS.pattern,
        description="Embeds whose attributes match this pattern survive cleanup.",
    )
    link_density_modifier: float = Field(default=0.0, description="Added to the link density cut-offs.")
    debug: bool = False

    @field_validator("max_elems_to_parse")
    @classmethod
    def validate_max_elems(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_elems_to_parse must not be negative")
        return v

    @field_validator("allowed_video_regex")
    @classmethod
    def validate_video_regex(cls, v: str) -> str:
        """Ensure the video allow-list is a non-empty, valid pattern."""
        if not v:
            raise ValueError("allowed_video_regex must not be empty")
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"allowed_video_regex does not compile: {e}") from e
        return v

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``Readability``."""
        return {
            "debug": self.debug,
            "max_elems_to_parse": self.max_elems_to_parse,
            "nb_top_candidates": self.nb_top_candidates,
            "char_threshold": self.char_threshold,
            "classes_to_preserve": tuple(self.classes_to_preserve),
            "keep_classes": self.keep_classes,
            "disable_json_ld": self.disable_json_ld,
            "allowed_video_regex": re.compile(self.allowed_video_regex, re.IGNORECASE),
            "link_density_modifier": self.link_density_modifier,
        }


class LoggingConfig(BaseModel):
    """Configuration for structured logging."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: Optional[str] = Field(default=None, description="Path to log file. If None, logs to console.")
    renderer: Literal["console", "json"] = Field(default="console", description="Output format for console logs.")
    max_markup_chars: int = Field(default=500, ge=0, description="Clip markup in trace events; 0 keeps it whole.")

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        if v.upper() not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError(f"unknown log level: {v}")
        return v.upper()

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "ReadCore"
    parser: ParserSettings = Field(default_factory=ParserSettings)
    readerable: ReaderableSettings = Field(default_factory=ReaderableSettings)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(env_prefix="READCORE_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)
