"""Configuration management for tracked chart repositories."""

from dataclasses import dataclass
from pathlib import Path

import yaml

from chart_tracker.config import DEFAULT_REPOSITORY_CONFIG_DIR
from chart_tracker.models import RepositoryContext


@dataclass
class RepositoryConfig:
    """Configuration for a tracked repository.

    Attributes:
        repository_id: Unique id of the repository in the catalog
        name: Repository name, used in logs
        kind: Repository kind (e.g., "helm")
        url: Base url of the repository
        store_logo: Whether chart logos should be stored for this repository
    """

    repository_id: str
    name: str
    kind: str
    url: str
    store_logo: bool = True

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "RepositoryConfig":
        """Load configuration from a YAML file.

        Args:
            yaml_path: Path to the YAML configuration file

        Returns:
            RepositoryConfig populated from the YAML file

        Raises:
            FileNotFoundError: If the YAML file does not exist
            KeyError: If required fields are missing from the YAML file
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f)

        return cls(
            repository_id=str(data["repository_id"]),
            name=data["name"],
            kind=data.get("kind", "helm"),
            url=data["url"],
            store_logo=bool(data.get("store_logo", True)),
        )

    def to_context(self) -> RepositoryContext:
        return RepositoryContext(
            repository_id=self.repository_id,
            name=self.name,
            kind=self.kind,
            url=self.url,
        )


class ConfigManager:
    """Manages repository configuration files.

    Attributes:
        config_dir: Path to the directory containing repository YAML configs
    """

    def __init__(self, config_dir: str = DEFAULT_REPOSITORY_CONFIG_DIR) -> None:
        """Initialize ConfigManager.

        Args:
            config_dir: Path to directory containing repository YAML configs
        """
        self.config_dir = Path(config_dir)

    def load_all_configs(self) -> list[RepositoryConfig]:
        """Load all repository configurations, sorted by repository name."""
        configs = [RepositoryConfig.from_yaml(path) for path in self.config_dir.glob("*.yaml")]
        return sorted(configs, key=lambda config: config.name)

