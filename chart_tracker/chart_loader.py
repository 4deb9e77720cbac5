"""Loader for gzip'd chart archives."""

import io
import logging
import tarfile
from typing import Any

import yaml

from chart_tracker.errors import ArchiveParseError
from chart_tracker.models import ChartDependency, ChartMetadata, ParsedArchive

logger = logging.getLogger(__name__)

CHART_FILE = "Chart.yaml"
REQUIREMENTS_FILE = "requirements.yaml"

# Files with a dedicated meaning in a chart, not exposed as plain files
SPECIAL_FILES = {
    CHART_FILE,
    REQUIREMENTS_FILE,
    "requirements.lock",
    "Chart.lock",
    "values.yaml",
    "values.schema.json",
}
SPECIAL_DIRS = ("templates/", "charts/")


def load_archive(data: bytes) -> ParsedArchive:
    """Parse a chart archive into its metadata and plain files.

    Every entry in the archive lives under a single top level directory named
    after the chart; file names are returned relative to that directory.

    Args:
        data: Raw bytes of the .tgz archive

    Returns:
        ParsedArchive with the chart metadata and its files

    Raises:
        ArchiveParseError: If the archive or its Chart.yaml is invalid
    """
    entries = _read_entries(data)

    if CHART_FILE not in entries:
        raise ArchiveParseError("Chart.yaml file is missing")

    manifest = _parse_yaml(entries[CHART_FILE], CHART_FILE)
    try:
        metadata = ChartMetadata.from_manifest(manifest)
    except ValueError as e:
        raise ArchiveParseError(f"invalid {CHART_FILE}: {e}") from e

    # apiVersion v1 charts declare their dependencies in requirements.yaml
    if not metadata.dependencies and REQUIREMENTS_FILE in entries:
        requirements = _parse_yaml(entries[REQUIREMENTS_FILE], REQUIREMENTS_FILE)
        try:
            metadata.dependencies = ChartDependency.list_from_manifest(requirements)
        except ValueError as e:
            raise ArchiveParseError(f"invalid {REQUIREMENTS_FILE}: {e}") from e

    files = {
        name: content
        for name, content in entries.items()
        if name not in SPECIAL_FILES and not name.startswith(SPECIAL_DIRS)
    }

    logger.debug(
        f"Loaded chart {metadata.name} version {metadata.version} "
        f"({len(files)} files)"
    )
    return ParsedArchive(metadata=metadata, files=files)


def _read_entries(data: bytes) -> dict[str, bytes]:
    """Read all regular files of the archive keyed by chart relative path."""
    entries = {}
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            for member in tar:
                if not member.isfile():
                    continue

                name = member.name
                while name.startswith("./"):
                    name = name[2:]
                parts = name.split("/", 1)
                if len(parts) < 2 or not parts[1]:
                    continue

                extracted = tar.extractfile(member)
                if extracted is None:
                    continue
                entries[parts[1]] = extracted.read()
    except (tarfile.TarError, OSError, EOFError) as e:
        raise ArchiveParseError(f"error reading chart archive: {e}") from e

    if not entries:
        raise ArchiveParseError("no files in chart archive")

    return entries


def _parse_yaml(content: bytes, filename: str) -> dict[str, Any]:
    try:
        parsed = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ArchiveParseError(f"cannot load {filename}: {e}") from e

    if not isinstance(parsed, dict):
        raise ArchiveParseError(f"cannot load {filename}: not a mapping")
    return parsed
