"""Virtual file set resolution from fences or serialized form"""

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from mdplay.core.directive import parse_directive, split_info
from mdplay.core.models import FileEntry, FileSet
from mdplay.logging import get_logger


logger = get_logger("files")


def _virtual_path(name: str) -> str:
    return name if name.startswith('/') else f"/{name}"


def read_external(ref: str, base_dir: Path) -> str:
    """Read a referenced file relative to base_dir; missing or unreadable yields '' with a warning.

    Absolute refs and refs resolving outside base_dir are refused the same way.
    """
    path = base_dir / ref
    if Path(ref).is_absolute() or not path.resolve().is_relative_to(base_dir.resolve()):
        logger.warning("Referenced file %s is outside %s; ignored", ref, base_dir)
        return ''
    try:
        return path.read_text(encoding='utf-8').strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Referenced file %s could not be read: %s", path, e)
        return ''


def build_file_set(fences: Iterable, base_dir: Path) -> FileSet:
    """Resolve fence tokens into a FileSet; a later fence overwrites an earlier one at the same path."""
    files: FileSet = {}
    for tok in fences:
        lang, meta = split_info(tok.info)
        directive = parse_directive(meta)
        if not directive.target_file_name:
            continue
        if directive.external_ref:
            code = read_external(directive.external_ref, base_dir)
        else:
            code = tok.content.strip()
        files[_virtual_path(directive.target_file_name)] = FileEntry(
            code=code,
            hidden=directive.hidden,
            active=directive.active,
            lang=lang,
        )
    return files


def parse_file_set(data: Union[str, Mapping]) -> FileSet:
    """Normalize serialized or structured file data into a FileSet.

    Raises ValueError for invalid JSON, a non-mapping payload, or an invalid entry.
    """
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid file set JSON: {e}") from e
    if not isinstance(data, Mapping):
        raise ValueError(f"Invalid file set: expected a mapping, got {type(data).__name__}")

    files: FileSet = {}
    for name, entry in data.items():
        try:
            files[_virtual_path(str(name))] = (
                entry if isinstance(entry, FileEntry) else FileEntry.model_validate(entry)
            )
        except ValidationError as e:
            raise ValueError(f"Invalid file set entry {name!r}: {e}") from e
    return files


def serialize_file_set(files: FileSet) -> str:
    """Compact, deterministic JSON for a FileSet (key order preserved)."""
    return json.dumps(
        {name: entry.model_dump() for name, entry in files.items()},
        separators=(',', ':'),
        ensure_ascii=False,
    )
