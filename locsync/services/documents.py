"""
Document I/O.

Reads JSON / YAML localization files, writes translated trees back in the
same syntax, expands output path patterns and builds the optional
``_translator_metadata`` block.
"""

from __future__ import annotations

import glob
import json
from pathlib import Path
from typing import Any, Iterable

import yaml

from locsync import __version__
from locsync.core.keys import METADATA_KEY
from locsync.core.utils import utc_now
from locsync.i18n.languages import get_language_name


TOOL_NAME = "locsync"

FORMATS = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}

DEFAULT_OUTPUT_PATTERN = "{dir}/{name}.{lang}{ext}"


class DocumentError(Exception):
    """Source document could not be read, parsed or written."""
    pass


class _YamlLoader(yaml.SafeLoader):
    """SafeLoader that leaves dates and timestamps as plain strings."""


_YamlLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


# =============================================================================
# Reading / writing
# =============================================================================


def document_format(path: Path | str) -> str:
    """'json' or 'yaml', from the file suffix."""
    suffix = Path(path).suffix.lower()
    if suffix not in FORMATS:
        raise DocumentError(
            f"Unsupported file type '{suffix or path}'. Expected one of: {', '.join(FORMATS)}"
        )
    return FORMATS[suffix]


def document_id(path: Path | str) -> str:
    """Stable identity of a source file: its absolute, resolved path."""
    return str(Path(path).expanduser().resolve())


def load_document(path: Path | str) -> Any:
    """
    Parse a JSON or YAML document.

    Raises:
        DocumentError: unsupported suffix, unreadable file or invalid syntax
    """
    path = Path(path)
    fmt = document_format(path)

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentError(f"Cannot read {path}: {e}") from e

    try:
        if fmt == "json":
            return json.loads(text)
        return yaml.load(text, Loader=_YamlLoader)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise DocumentError(f"Invalid {fmt.upper()} in {path}: {e}") from e


def dump_document(tree: Any, fmt: str = "json") -> str:
    """Serialize a tree: JSON with 2-space indent, or block-style YAML."""
    if fmt == "yaml":
        return yaml.safe_dump(
            tree,
            allow_unicode=True,
            sort_keys=False,
            default_flow_style=False,
        )
    return json.dumps(tree, indent=2, ensure_ascii=False) + "\n"


def write_document(path: Path | str, tree: Any, fmt: str | None = None) -> Path:
    """Write a tree to disk, creating parent directories."""
    path = Path(path)
    fmt = fmt or document_format(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dump_document(tree, fmt), encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"Cannot write {path}: {e}") from e
    return path


# =============================================================================
# Input / output paths
# =============================================================================


def collect_files(patterns: Iterable[str]) -> list[Path]:
    """
    Expand input arguments into a de-duplicated list of files.

    Arguments with glob characters are expanded (``**`` included); plain
    paths are kept as given so a missing file is reported when it is read.
    """
    files: list[Path] = []
    seen: set[str] = set()

    for pattern in patterns:
        if any(ch in pattern for ch in "*?["):
            matches = sorted(glob.glob(pattern, recursive=True))
        else:
            matches = [pattern]

        for match in matches:
            path = Path(match)
            if path.is_dir():
                continue
            identity = document_id(path)
            if identity not in seen:
                seen.add(identity)
                files.append(path)

    return files


def resolve_output_path(source: Path | str, lang: str, pattern: str | None = None) -> Path:
    """
    Output location for one source file and language.

    Placeholders: {dir} (source directory), {name} (file stem), {lang},
    {ext} (source suffix, with the dot). Without a pattern the output sits
    next to the source as ``<name>.<lang><ext>``.
    """
    source = Path(source)
    template = pattern or DEFAULT_OUTPUT_PATTERN
    try:
        resolved = template.format(
            dir=str(source.parent),
            name=source.stem,
            lang=lang,
            ext=source.suffix,
        )
    except (KeyError, IndexError, ValueError) as e:
        raise ValueError(f"Invalid output pattern {template!r}: {e}") from e
    return Path(resolved)


# =============================================================================
# Metadata
# =============================================================================


def build_metadata(
    provider: str,
    source_language: str,
    target_language: str,
    total_strings: int,
    source_file: Path | str,
) -> dict[str, Any]:
    """Contents of the ``_translator_metadata`` block."""
    return {
        "tool": f"{TOOL_NAME} v{__version__}",
        "provider": provider,
        "source_language": get_language_name(source_language),
        "target_language": get_language_name(target_language),
        "timestamp": utc_now().isoformat(),
        "total_strings": total_strings,
        "source_file": Path(source_file).name,
    }


def add_metadata(tree: Any, metadata: dict[str, Any]) -> Any:
    """Return the tree with the metadata block as its first key (mappings only)."""
    if not isinstance(tree, dict):
        return tree
    body = {key: value for key, value in tree.items() if key != METADATA_KEY}
    return {METADATA_KEY: metadata, **body}
