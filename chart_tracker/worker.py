"""Worker handling chart register and unregister jobs for one repository."""

import logging
import queue
import threading
from dataclasses import dataclass, field

from chart_tracker.archive_fetcher import ArchiveFetcher, resolve_content_url
from chart_tracker.config import DEFAULT_RATE_LIMITED_HOSTS
from chart_tracker.error_collector import ErrorCollector
from chart_tracker.errors import JobError, wrap_error
from chart_tracker.http_client import HTTPGetter, TimeoutHTTPGetter
from chart_tracker.interfaces import ImageStore, PackageManager
from chart_tracker.jobs import JobQueue
from chart_tracker.license_detector import LicenseDetector, TextLicenseDetector
from chart_tracker.metadata_extractor import MetadataExtractor
from chart_tracker.models import Job, PackageKey, RegisterJob, RepositoryContext, UnregisterJob
from chart_tracker.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# How often an idle worker looks at the shutdown signal
POLL_INTERVAL = 0.1


class RepositoryLoggerAdapter(logging.LoggerAdapter):
    """Tags records with the repository name and kind."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return f"[repo={self.extra['repo']} kind={self.extra['kind']}] {msg}", kwargs


@dataclass
class Services:
    """Collaborators shared by every worker of a tracking run."""

    package_manager: PackageManager
    image_store: ImageStore
    error_collector: ErrorCollector
    rate_limiter: RateLimiter
    license_detector: LicenseDetector = field(default_factory=TextLicenseDetector)
    shutdown: threading.Event = field(default_factory=threading.Event)
    rate_limited_hosts: tuple[str, ...] = DEFAULT_RATE_LIMITED_HOSTS


class Worker:
    """Handles the jobs generated for a single chart repository.

    Jobs are processed one at a time, in queue order. Any error raised while
    handling a job is collected and logged, and the worker moves on to the
    next job.
    """

    def __init__(
        self,
        services: Services,
        repository: RepositoryContext,
        http_getter: HTTPGetter | None = None,
    ):
        """Initialize the worker.

        Args:
            services: Shared collaborators and the shutdown signal
            repository: Repository whose jobs this worker handles
            http_getter: Client used for all downloads; a 10s timeout client
                is created when omitted
        """
        self.services = services
        self.repository = repository
        self.http_getter = http_getter or TimeoutHTTPGetter()
        self.logger = RepositoryLoggerAdapter(
            logger, {"repo": repository.name, "kind": repository.kind}
        )
        self.fetcher = ArchiveFetcher(
            self.http_getter,
            services.rate_limiter,
            cancel=services.shutdown,
            rate_limited_hosts=services.rate_limited_hosts,
        )
        self.extractor = MetadataExtractor(
            self.fetcher,
            services.image_store,
            services.license_detector,
            warn=self.warn,
            log=self.logger,
        )

    def run(self, jobs: JobQueue) -> None:
        """Handle jobs until the queue is closed and drained or shutdown is set.

        The shutdown signal is only checked between jobs, so a job that has
        started always runs to completion.
        """
        shutdown = self.services.shutdown
        self.logger.info(f"Worker started for repository {self.repository.name}")

        while not shutdown.is_set():
            try:
                job = jobs.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
            if job is None:
                break
            self.handle_job(job)

        self.logger.info(f"Worker stopped for repository {self.repository.name}")

    def handle_job(self, job: Job) -> None:
        match job:
            case RegisterJob():
                self.handle_register_job(job)
            case UnregisterJob():
                self.handle_unregister_job(job)
            case _:
                self.warn(JobError(f"unknown job type: {type(job).__name__}"))

    def handle_register_job(self, job: RegisterJob) -> None:
        """Register the package for a chart version.

        This involves downloading the chart archive, extracting its metadata
        and handing the resulting record to the package manager.
        """
        chart_version = job.chart_version
        context = f"package {chart_version.name} version {chart_version.version}"

        try:
            if not chart_version.urls:
                raise ValueError("chart version has no urls")
            content_url = resolve_content_url(self.repository.url, chart_version.urls[0])
        except ValueError as e:
            self.warn(wrap_error(f"invalid chart url for {context}", e, JobError))
            return

        try:
            archive = self.fetcher.load_archive(content_url)
        except Exception as e:
            self.warn(wrap_error(f"error loading chart for {context}", e, JobError))
            return

        try:
            record = self.extractor.extract(archive, job, content_url, self.repository)
        except Exception as e:
            self.warn(wrap_error(f"error preparing {context}", e, JobError))
            return

        self.logger.debug(f"Registering package {record.name} version {record.version}")
        try:
            self.services.package_manager.register(record)
        except Exception as e:
            self.warn(
                wrap_error(
                    f"error registering package {record.name} version {record.version}",
                    e,
                    JobError,
                )
            )

    def handle_unregister_job(self, job: UnregisterJob) -> None:
        """Remove the package version matching a chart version."""
        key = PackageKey(
            name=job.chart_version.name,
            version=job.chart_version.version,
            repository=self.repository,
        )
        self.logger.debug(f"Unregistering package {key.name} version {key.version}")
        try:
            self.services.package_manager.unregister(key)
        except Exception as e:
            self.warn(
                wrap_error(
                    f"error unregistering package {key.name} version {key.version}",
                    e,
                    JobError,
                )
            )

    def warn(self, err: Exception) -> None:
        """Send the error to the errors collector and log it as a warning."""
        self.services.error_collector.append(self.repository.repository_id, err)
        self.logger.warning(str(err))
