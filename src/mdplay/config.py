"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:          str = "mdplay"
    parser_config:     str = Field(default="gfm-like",        description="MarkdownIt parser preset name")
    modules_root:      str = Field(default=".",               description="Build tool project root holding generated modules")
    root_category:     str = Field(default="examples",        pattern=r"^[a-z_][a-z0-9_]*$", description="Top-level module category")
    build_out_dir:     str = Field(default="out",             description="Build tool output directory, relative to modules_root")
    build_stage:       str = Field(default="fullLinkJS.dest", description="Build stage directory holding main.js")
    compiler_lang:     str = Field(default="scala",           description="Fence language compiled by the external build")
    preview_token:     str = Field(default="preview",         description="Annotation token requesting a preview")
    preview_preset:    str = Field(default="vanilla",         description="Preset assigned to rewritten preview nodes")
    default_namespace: str = Field(default="default",         pattern=r"^[a-z_][a-z0-9_]*$", description="Namespace used when none can be derived")
    hash_length:       int = Field(default=12, ge=8, le=64,   description="Hex digits kept from the content hash")
    scala_version:     str = "3.3.4"
    scalajs_version:   str = "1.17.0"
    output_dir:        str = Field(default="dist",            description="Directory for exported MD/MDX + sandbox files")
    output_format:     str = Field(default="mdx", pattern="^(md|mdx)$", description="md or mdx")
    staging_dir:       str = Field(default=".mdplay/staging", description="Directory for per-document module manifests")
    workers:           int = Field(default=1, ge=1,           description="Documents processed concurrently")
    transpiler_cmd:    str = Field(default="esbuild",         description="Component-script transpiler executable")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDPLAY_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"MDPLAY_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
