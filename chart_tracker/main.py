"""Main entry point for the chart tracker Lambda function."""

import logging
import sys
from datetime import UTC, datetime
from typing import Any

import yaml

from chart_tracker.config import (
    DEFAULT_REPOSITORY_CONFIG_DIR,
    ENV_REPOSITORY_CONFIG_DIR,
    get_env_var,
    setup_logging,
)
from chart_tracker.config_manager import ConfigManager, RepositoryConfig
from chart_tracker.models import (
    ArchiveVersionRef,
    Job,
    RegisterJob,
    RepositoryContext,
    UnregisterJob,
)
from chart_tracker.runner import build_services, run_workers

logger = logging.getLogger(__name__)


def parse_job(entry: dict[str, Any], config: RepositoryConfig) -> Job:
    """Build a job from one entry of the event's ``jobs`` list.

    Register jobs store the chart logo when the repository config asks for it.

    Raises:
        KeyError: If a required field is missing
        ValueError: If the action or the creation time is invalid
    """
    created = entry.get("created") or datetime.now(UTC)
    if isinstance(created, str):
        created = datetime.fromisoformat(created)

    chart_version = ArchiveVersionRef(
        name=str(entry["name"]),
        version=str(entry["version"]),
        digest=str(entry.get("digest") or ""),
        urls=tuple(str(url) for url in entry.get("urls") or ()),
        created=created,
    )

    action = entry.get("action", "register")
    if action == "register":
        return RegisterJob(chart_version, store_logo=config.store_logo)
    if action == "unregister":
        return UnregisterJob(chart_version)
    raise ValueError(f"Unknown job action: {action!r}")


def group_jobs(
    event: dict[str, Any], configs: list[RepositoryConfig]
) -> dict[RepositoryContext, list[Job]]:
    """Group the event's jobs by the repository they belong to.

    Jobs for repositories without a config file are skipped with a warning.
    """
    configs_by_name = {config.name: config for config in configs}
    jobs_by_repository: dict[RepositoryContext, list[Job]] = {}

    for entry in event.get("jobs") or []:
        config = configs_by_name.get(entry.get("repository"))
        if config is None:
            logger.warning(
                f"No configuration for repository {entry.get('repository')}, skipping job"
            )
            continue
        jobs_by_repository.setdefault(config.to_context(), []).append(parse_job(entry, config))

    return jobs_by_repository


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """AWS Lambda handler function.

    Args:
        event: Lambda event data with a ``jobs`` list, each entry naming its
            ``repository``, ``action``, chart ``name``, ``version``,
            ``digest``, ``urls`` and ``created`` time
        context: Lambda context object

    Returns:
        Response dictionary with status and message
    """
    setup_logging()

    try:
        logger.info(f"Starting chart tracker run {getattr(context, 'aws_request_id', 'unknown')}")

        config_dir = get_env_var(ENV_REPOSITORY_CONFIG_DIR, DEFAULT_REPOSITORY_CONFIG_DIR)
        configs = ConfigManager(config_dir).load_all_configs()
        jobs_by_repository = group_jobs(event, configs)

        services = build_services()
        errors = run_workers(services, jobs_by_repository)

        for repository_id, repository_errors in errors.items():
            for err in repository_errors:
                logger.error(f"Repository {repository_id}: {err}")

        total_jobs = sum(len(jobs) for jobs in jobs_by_repository.values())
        total_errors = sum(len(errs) for errs in errors.values())
        return {
            "statusCode": 200,
            "body": f"Processed {total_jobs} jobs in {len(jobs_by_repository)} repositories "
            f"with {total_errors} errors",
        }

    except Exception as e:
        logger.error(f"Chart tracker run failed: {e}")
        return {"statusCode": 500, "body": f"Error processing jobs: {str(e)}"}


def main(argv: list[str] | None = None) -> None:
    """Local development entry point.

    Reads the event from the YAML file given as the first argument.
    """
    argv = sys.argv[1:] if argv is None else argv

    class LocalContext:
        aws_request_id = "local-run"

    event: dict[str, Any] = {}
    if argv:
        with open(argv[0]) as f:
            event = yaml.safe_load(f) or {}

    result = lambda_handler(event, LocalContext())
    logger.info(f"Result: {result}")


if __name__ == "__main__":
    main()
