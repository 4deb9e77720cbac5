"""Property-based test for DynamoDB package storage."""

import os
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError
from hypothesis import given
from hypothesis import strategies as st

from chart_tracker.adapters.dynamodb_package_manager import DynamoDBPackageManager, package_id
from chart_tracker.models import (
    ChartDependency,
    Maintainer,
    PackageKey,
    PackageRecord,
    RepositoryContext,
)

REPOSITORY = RepositoryContext(
    repository_id="repo-1", name="example", kind="helm", url="https://example.com/repo"
)


def make_manager(mock_table):
    mock_dynamodb = MagicMock()
    mock_dynamodb.Table.return_value = mock_table
    with patch("boto3.resource", return_value=mock_dynamodb):
        with patch.dict(os.environ, {"PACKAGES_TABLE_NAME": "test-table"}):
            return DynamoDBPackageManager()


@given(
    major=st.integers(min_value=0, max_value=99),
    minor=st.integers(min_value=0, max_value=99),
    patch_version=st.integers(min_value=0, max_value=999),
    name=st.text(alphabet="abcdefghijklmnopqrstuvwxyz-", min_size=1, max_size=30),
    description=st.text(max_size=100),
    signed=st.one_of(st.none(), st.booleans()),
    license_id=st.one_of(st.none(), st.sampled_from(["", "MIT", "Apache-2.0"])),
)
def test_dynamodb_storage_completeness_property(
    major, minor, patch_version, name, description, signed, license_id
):
    """Stored items carry the natural key and every determined field."""
    version = f"{major}.{minor}.{patch_version}"
    record = PackageRecord(
        name=name,
        version=version,
        repository=REPOSITORY,
        description=description,
        content_url=f"https://example.com/repo/{name}-{version}.tgz",
        digest="sha256:abc",
        created_at=1705276800,
        license=license_id,
        signed=signed,
    )
    mock_table = MagicMock()
    manager = make_manager(mock_table)

    manager.register(record)

    item = mock_table.put_item.call_args.kwargs["Item"]
    assert item["package_id"] == f"repo-1/{name}"
    assert item["version"] == version
    assert item["name"] == name
    assert item["repository_id"] == "repo-1"
    assert item["description"] == description
    assert item["content_url"] == record.content_url
    assert ("license" in item) == (license_id is not None)
    assert ("signed" in item) == (signed is not None)
    assert "logo_image_id" not in item
    assert "maintainers" not in item
    assert "dependencies" not in item


class TestDynamoDBPackageManager:
    def test_requires_table_name(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="PACKAGES_TABLE_NAME"):
                DynamoDBPackageManager()

    def test_register_serializes_nested_fields(self):
        mock_table = MagicMock()
        manager = make_manager(mock_table)
        record = PackageRecord(
            name="foo",
            version="1.0.0",
            repository=REPOSITORY,
            maintainers=[Maintainer("Jane", "jane@example.com")],
            dependencies=[ChartDependency("redis", "17.x", "https://charts.example.com")],
            logo_url="https://example.com/foo.png",
            logo_image_id="abc123",
        )

        manager.register(record)

        item = mock_table.put_item.call_args.kwargs["Item"]
        assert item["maintainers"] == [{"name": "Jane", "email": "jane@example.com"}]
        assert item["dependencies"] == [
            {"name": "redis", "version": "17.x", "repository": "https://charts.example.com"}
        ]
        assert item["logo_url"] == "https://example.com/foo.png"
        assert item["logo_image_id"] == "abc123"

    def test_register_same_key_twice_uses_same_item_key(self):
        mock_table = MagicMock()
        manager = make_manager(mock_table)

        manager.register(PackageRecord(name="foo", version="1.0.0", repository=REPOSITORY))
        manager.register(
            PackageRecord(name="foo", version="1.0.0", repository=REPOSITORY, description="new")
        )

        keys = [
            (call.kwargs["Item"]["package_id"], call.kwargs["Item"]["version"])
            for call in mock_table.put_item.call_args_list
        ]
        assert keys == [("repo-1/foo", "1.0.0"), ("repo-1/foo", "1.0.0")]

    def test_unregister_deletes_item(self):
        mock_table = MagicMock()
        manager = make_manager(mock_table)

        manager.unregister(PackageKey(name="foo", version="1.0.0", repository=REPOSITORY))

        mock_table.delete_item.assert_called_once_with(
            Key={"package_id": package_id("repo-1", "foo"), "version": "1.0.0"}
        )

    def test_register_client_error_is_raised(self):
        mock_table = MagicMock()
        mock_table.put_item.side_effect = ClientError(
            {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}},
            "PutItem",
        )
        manager = make_manager(mock_table)

        with pytest.raises(ClientError):
            manager.register(PackageRecord(name="foo", version="1.0.0", repository=REPOSITORY))
