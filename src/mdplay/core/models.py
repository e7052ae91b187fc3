"""Data models for the snippet-to-module and playground pipeline"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class Directive:
    """Closed record parsed from a fence's annotation text."""
    target_file_name: Optional[str] = None
    hidden:           bool = False
    active:           bool = False
    external_ref:     Optional[str] = None
    preview:          bool = False


class FileEntry(BaseModel):
    """One virtual file of a playground."""
    code:   str
    hidden: bool = False
    active: bool = False
    lang:   str = ""


# Virtual absolute path ('/name.ext') -> entry, in insertion order.
FileSet = dict[str, FileEntry]


class PreviewBlock(BaseModel):
    """A qualifying preview snippet and its wrapped module source."""
    content_hash:    str
    sequence_number: int
    namespace:       str
    source_code:     str
    wrapped_code:    str


@dataclass(frozen=True)
class Module:
    """Paths of one generated module; built only by ModuleLayout.module()."""
    namespace:             str
    sequence_number:       int
    module_dir:            Path
    source_path:           Path
    build_descriptor_path: Path
    expected_output_path:  Path


class ArtifactStatus(str, Enum):
    ready   = "ready"
    pending = "pending"     # build has not produced this module's output directory yet
    failed  = "failed"      # output directory exists but holds no main.js


@dataclass(frozen=True)
class Artifact:
    """Point-in-time result of looking up a module's compiled script."""
    module: Module
    status: ArtifactStatus
    script: str

    @property
    def ready(self) -> bool:
        return self.status is ArtifactStatus.ready


class PlaygroundConfig(BaseModel):
    """Immutable sandbox composition switches; update with model_copy()."""
    model_config = ConfigDict(frozen=True)

    support_tailwind:            bool = False
    support_component_framework: bool = False
    include_reset_styles:        bool = True
    include_root_container:      bool = False
    additional_head:             tuple[str, ...] = ()


class PlaygroundPreset(BaseModel):
    model_config = ConfigDict(frozen=True)

    name:        str
    description: str
    config:      PlaygroundConfig


class ModuleRecord(BaseModel):
    """Manifest entry for one generated module (source text omitted)."""
    sequence_number:       int
    content_hash:          str
    module_dir:            str
    source_path:           str
    expected_output_path:  str
    artifact_status:       ArtifactStatus


class DocumentManifest(BaseModel):
    """Per-document record of generated modules, written to the staging dir."""
    slug:      str
    path:      str
    namespace: str
    previews:  list[ModuleRecord] = []
    failed:    list[int] = []       # sequence numbers whose module generation raised


@dataclass
class ParsedDoc:
    """Internal parse result carrying markdown-it tokens; not persisted."""
    path:         Path
    rel_path:     Path         # path relative to the ingested root
    slug:         str
    namespace:    str
    raw_markdown: str          # full file content (includes frontmatter)
    markdown:     str          # body only (frontmatter stripped)
    frontmatter:  dict[str, Any]
    tokens:       list         # markdown-it Token objects


@dataclass
class ProcessedDoc:
    """A document after module generation and tree rewriting."""
    doc:       ParsedDoc
    manifest:  DocumentManifest
    nodes:     list = field(default_factory=list)   # rewritten playground tokens, document order
