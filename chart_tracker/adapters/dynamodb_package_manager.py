"""DynamoDB-backed package manager storing tracked package versions."""

import logging
from datetime import UTC, datetime
from typing import Any

import boto3
from botocore.exceptions import ClientError

from chart_tracker.config import ENV_AWS_REGION, ENV_PACKAGES_TABLE, get_env_var
from chart_tracker.models import PackageKey, PackageRecord

logger = logging.getLogger(__name__)


def package_id(repository_id: str, name: str) -> str:
    """Partition key shared by all versions of a package in a repository."""
    return f"{repository_id}/{name}"


class DynamoDBPackageManager:
    """Registers and unregisters package versions in a DynamoDB table.

    Items are keyed by ``package_id`` (repository id and package name) and
    ``version``, so registering the same version again replaces the item.
    """

    def __init__(self, table_name: str | None = None, region: str | None = None):
        """Initialize the package manager.

        Args:
            table_name: DynamoDB table name. If None, uses environment variable.
            region: AWS region. If None, uses environment variable or default.
        """
        self.table_name = table_name or get_env_var(ENV_PACKAGES_TABLE, required=True)
        self.region = region or get_env_var(ENV_AWS_REGION, "us-east-1")

        self.dynamodb = boto3.resource("dynamodb", region_name=self.region)
        self.table = self.dynamodb.Table(self.table_name)

        logger.info(f"Initialized DynamoDBPackageManager with table: {self.table_name}")

    def register(self, record: PackageRecord) -> None:
        """Store a package version, replacing any previous copy.

        Raises:
            ClientError: If DynamoDB operation fails.
        """
        item = self._record_to_item(record)

        try:
            self.table.put_item(Item=item)
            logger.debug(f"Stored package {record.name} version {record.version}")

        except ClientError as e:
            logger.error(
                f"Failed to store package {record.name} version {record.version}: {e}"
            )
            raise

    def unregister(self, key: PackageKey) -> None:
        """Delete a package version.

        Raises:
            ClientError: If DynamoDB operation fails.
        """
        try:
            self.table.delete_item(
                Key={
                    "package_id": package_id(key.repository.repository_id, key.name),
                    "version": key.version,
                }
            )
            logger.debug(f"Deleted package {key.name} version {key.version}")

        except ClientError as e:
            logger.error(f"Failed to delete package {key.name} version {key.version}: {e}")
            raise

    def _record_to_item(self, record: PackageRecord) -> dict[str, Any]:
        repository = record.repository
        item: dict[str, Any] = {
            "package_id": package_id(repository.repository_id, record.name),
            "version": record.version,
            "name": record.name,
            "repository_id": repository.repository_id,
            "repository_name": repository.name,
            "repository_kind": repository.kind,
            "app_version": record.app_version,
            "description": record.description,
            "keywords": record.keywords,
            "home_url": record.home_url,
            "content_url": record.content_url,
            "digest": record.digest,
            "created_at": record.created_at,
            "deprecated": record.deprecated,
            "readme": record.readme,
            "is_operator": record.is_operator,
            "registered_at": datetime.now(UTC).isoformat(),
        }

        # Optional fields are only stored when they were determined
        if record.license is not None:
            item["license"] = record.license
        if record.signed is not None:
            item["signed"] = record.signed
        if record.logo_url is not None:
            item["logo_url"] = record.logo_url
        if record.logo_image_id is not None:
            item["logo_image_id"] = record.logo_image_id
        if record.maintainers:
            item["maintainers"] = [
                {"name": m.name, "email": m.email} for m in record.maintainers
            ]
        if record.dependencies:
            item["dependencies"] = [
                {"name": d.name, "version": d.version, "repository": d.repository}
                for d in record.dependencies
            ]

        return item
