"""Data models for the chart tracker."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class RepositoryContext:
    """Identity of the chart repository a worker is bound to."""

    repository_id: str
    name: str
    kind: str
    url: str


@dataclass(frozen=True)
class ArchiveVersionRef:
    """One version of a chart as published in a repository index."""

    name: str
    version: str
    digest: str
    urls: tuple[str, ...]
    created: datetime

    @property
    def created_at(self) -> int:
        """Creation time as a Unix timestamp."""
        return int(self.created.timestamp())


@dataclass(frozen=True)
class RegisterJob:
    """Register (or refresh) the package for a chart version."""

    chart_version: ArchiveVersionRef
    store_logo: bool = False


@dataclass(frozen=True)
class UnregisterJob:
    """Remove the package for a chart version."""

    chart_version: ArchiveVersionRef


Job = RegisterJob | UnregisterJob


def manifest_list(manifest: dict[str, Any], key: str) -> list[Any]:
    """Return the list stored under ``key``, or an empty list when it is unset.

    Raises:
        ValueError: If the field is set to something other than a list
    """
    value = manifest.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {key} must be a list, got {type(value).__name__}")
    return value


@dataclass
class ChartMaintainer:
    name: str
    email: str


@dataclass
class ChartDependency:
    name: str
    version: str
    repository: str

    @classmethod
    def from_manifest(cls, entry: dict[str, Any]) -> "ChartDependency":
        return cls(
            name=str(entry.get("name") or ""),
            version=str(entry.get("version") or ""),
            repository=str(entry.get("repository") or ""),
        )

    @classmethod
    def list_from_manifest(cls, manifest: dict[str, Any]) -> list["ChartDependency"]:
        return [
            cls.from_manifest(entry)
            for entry in manifest_list(manifest, "dependencies")
            if isinstance(entry, dict)
        ]


@dataclass
class ChartMetadata:
    """The subset of a Chart.yaml manifest consumed by the tracker."""

    api_version: str
    name: str
    version: str
    app_version: str = ""
    description: str = ""
    keywords: list[str] = field(default_factory=list)
    home: str = ""
    icon: str = ""
    deprecated: bool = False
    maintainers: list[ChartMaintainer] = field(default_factory=list)
    dependencies: list[ChartDependency] = field(default_factory=list)

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> "ChartMetadata":
        """Create ChartMetadata from a parsed Chart.yaml mapping.

        Raises:
            ValueError: If a required field is missing or a list field is not a list
        """
        required_fields = ["apiVersion", "name", "version"]
        missing_fields = [name for name in required_fields if not manifest.get(name)]
        if missing_fields:
            raise ValueError(f"Missing required fields in Chart.yaml: {missing_fields}")

        maintainers = [
            ChartMaintainer(
                name=str(entry.get("name") or ""),
                email=str(entry.get("email") or ""),
            )
            for entry in manifest_list(manifest, "maintainers")
            if isinstance(entry, dict)
        ]
        dependencies = ChartDependency.list_from_manifest(manifest)

        return cls(
            api_version=str(manifest["apiVersion"]),
            name=str(manifest["name"]),
            version=str(manifest["version"]),
            app_version=str(manifest.get("appVersion") or ""),
            description=str(manifest.get("description") or ""),
            keywords=[str(k) for k in manifest_list(manifest, "keywords")],
            home=str(manifest.get("home") or ""),
            icon=str(manifest.get("icon") or ""),
            deprecated=bool(manifest.get("deprecated", False)),
            maintainers=maintainers,
            dependencies=dependencies,
        )


@dataclass
class ParsedArchive:
    """In-memory contents of a chart archive."""

    metadata: ChartMetadata
    files: dict[str, bytes] = field(default_factory=dict)

    def get_file(self, name: str) -> bytes | None:
        return self.files.get(name)


@dataclass(frozen=True)
class PackageKey:
    """Natural key of a package version in the catalog."""

    name: str
    version: str
    repository: RepositoryContext


@dataclass
class Maintainer:
    name: str
    email: str


@dataclass
class PackageRecord:
    """Normalized package version handed to the package manager.

    ``license``, ``signed``, ``logo_url`` and ``logo_image_id`` use ``None``
    for "not determined", which is distinct from an empty or false value.
    """

    name: str
    version: str
    repository: RepositoryContext
    app_version: str = ""
    description: str = ""
    keywords: list[str] = field(default_factory=list)
    home_url: str = ""
    content_url: str = ""
    digest: str = ""
    created_at: int = 0
    deprecated: bool = False
    readme: str = ""
    license: str | None = ""
    signed: bool | None = None
    is_operator: bool = False
    maintainers: list[Maintainer] | None = None
    logo_url: str | None = None
    logo_image_id: str | None = None
    dependencies: list[ChartDependency] | None = None

    def key(self) -> PackageKey:
        return PackageKey(name=self.name, version=self.version, repository=self.repository)
