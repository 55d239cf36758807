"""Build configuration: settings schema and mdsite.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from mdsite.core.render import EXTENSIONS


CONFIG_FILE = "mdsite.yaml"
LOG_LEVELS = "^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$"


class Settings(BaseModel):
    content_dir:    str = Field(default=".",         description="Root directory holding posts, pages, assets and templates")
    output_dir:     str = Field(default="_site",     description="Directory the built site is published to")
    templates_dir:  str = Field(default="templates", description="Template directory, relative to content_dir")
    post_roots:     list[str] = Field(default_factory=lambda: ["posts"], description="Directories of dated posts")
    page_files:     list[str] = Field(default_factory=lambda: ["about.md", "contact.md"], description="Standalone pages")
    asset_roots:    list[str] = Field(default_factory=lambda: ["images", "css"], description="Directories copied verbatim")
    extensions:     list[str] = Field(default_factory=lambda: list(EXTENSIONS), description="Enabled markup extensions")
    strict_links:   bool = Field(default=True, description="Broken internal links fail the page instead of warning")
    fail_on_errors: bool = Field(default=True, description="Exit non-zero when any document fails")
    date_format:    str = Field(default="%d-%m-%Y", description="strftime pattern for date fields")
    field_defaults: dict[str, Any] = Field(default_factory=dict, description="Template field defaults")
    site_title:     str = Field(default="Home", description="Title of the index page")
    recent_limit:   int = Field(default=0, ge=0, description="Posts listed on the index page; 0 = unlimited")
    workers:        int = Field(default=1, ge=1, description="Documents built in parallel")
    timeout:        Optional[float] = Field(default=None, gt=0, description="Seconds allowed for the document phase")
    atomic:         bool = Field(default=True, description="Write to a staging directory and swap into place")
    compress_css:   bool = Field(default=True, description="Compress .css assets while copying")
    log_level:      str = Field(default="WARNING", pattern=LOG_LEVELS, description="Logging level")

    @field_validator("post_roots", "page_files", "asset_roots", "extensions", mode="before")
    @classmethod
    def _split_list(cls, value: Any) -> Any:
        """Accept comma-separated strings (env vars) for list fields."""
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value

    @field_validator("extensions")
    @classmethod
    def _known_extensions(cls, value: list[str]) -> list[str]:
        unknown = sorted(set(value) - set(EXTENSIONS))
        if unknown:
            raise ValueError(f"Unknown markup extension(s): {', '.join(unknown)}")
        return value

    @field_validator("field_defaults", mode="before")
    @classmethod
    def _parse_defaults(cls, value: Any) -> Any:
        """Accept a YAML/JSON mapping string (env vars) for field_defaults."""
        if isinstance(value, str):
            try:
                return yaml.safe_load(value) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"field_defaults is not a mapping: {e}") from e
        return value

    @property
    def content_path(self) -> Path:
        return Path(self.content_dir)

    @property
    def templates_path(self) -> Path:
        return self.content_path / self.templates_dir

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)


def load_config(overrides: dict[str, Any] = None, config_file: str = CONFIG_FILE) -> Settings:
    """Load Settings from mdsite.yaml, then MDSITE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(config_file).exists():
        try:
            data = yaml.safe_load(Path(config_file).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {config_file}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {config_file}: expected a mapping")

    for name in Settings.model_fields:
        if val := os.getenv(f"MDSITE_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
