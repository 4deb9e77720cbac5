"""Runs one worker per repository over pre-generated job lists."""

import logging
import threading
from collections.abc import Iterable, Mapping

from chart_tracker.adapters.dynamodb_package_manager import DynamoDBPackageManager
from chart_tracker.adapters.s3_image_store import S3ImageStore
from chart_tracker.config import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_RATE_LIMIT_BURST,
    DEFAULT_RATE_LIMIT_PER_SECOND,
    DEFAULT_RATE_LIMITED_HOSTS,
    ENV_HTTP_TIMEOUT,
    ENV_RATE_LIMIT_BURST,
    ENV_RATE_LIMIT_PER_SECOND,
    ENV_RATE_LIMITED_HOSTS,
    get_float_env_var,
    get_list_env_var,
)
from chart_tracker.error_collector import ErrorCollector
from chart_tracker.http_client import HTTPGetter, TimeoutHTTPGetter
from chart_tracker.jobs import JobQueue
from chart_tracker.models import Job, RepositoryContext
from chart_tracker.rate_limiter import TokenBucketLimiter
from chart_tracker.worker import Services, Worker

logger = logging.getLogger(__name__)


def build_services() -> Services:
    """Create the shared services from environment configuration."""
    rate_limiter = TokenBucketLimiter(
        rate=get_float_env_var(ENV_RATE_LIMIT_PER_SECOND, DEFAULT_RATE_LIMIT_PER_SECOND),
        burst=int(get_float_env_var(ENV_RATE_LIMIT_BURST, DEFAULT_RATE_LIMIT_BURST)),
    )
    return Services(
        package_manager=DynamoDBPackageManager(),
        image_store=S3ImageStore(),
        error_collector=ErrorCollector(),
        rate_limiter=rate_limiter,
        rate_limited_hosts=get_list_env_var(ENV_RATE_LIMITED_HOSTS, DEFAULT_RATE_LIMITED_HOSTS),
    )


def build_http_getter() -> TimeoutHTTPGetter:
    return TimeoutHTTPGetter(timeout=get_float_env_var(ENV_HTTP_TIMEOUT, DEFAULT_HTTP_TIMEOUT))


def run_workers(
    services: Services,
    jobs_by_repository: Mapping[RepositoryContext, Iterable[Job]],
    http_getter: HTTPGetter | None = None,
) -> dict[str, list[Exception]]:
    """Process the jobs of every repository, one worker thread per repository.

    Each repository gets its own queue, filled and closed up front, so its
    worker stops once all of its jobs are handled (or on shutdown).

    Returns:
        Errors collected during the run, keyed by repository id
    """
    threads = []
    owned_getters = []
    for repository, jobs in jobs_by_repository.items():
        job_queue = JobQueue()
        for job in jobs:
            job_queue.put(job)
        job_queue.close()

        getter = http_getter
        if getter is None:
            getter = build_http_getter()
            owned_getters.append(getter)

        worker = Worker(services, repository, http_getter=getter)
        thread = threading.Thread(
            target=worker.run,
            args=(job_queue,),
            name=f"worker-{repository.name}",
            daemon=True,
        )
        threads.append(thread)

    logger.info(f"Starting {len(threads)} repository workers")
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    for getter in owned_getters:
        getter.close()

    errors = services.error_collector.list()
    logger.info(
        f"Repository workers finished with {sum(len(errs) for errs in errors.values())} errors"
    )
    return errors
