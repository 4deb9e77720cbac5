"""Derivation of catalog package records from parsed chart archives."""

import logging
from collections.abc import Callable

from chart_tracker.archive_fetcher import ArchiveFetcher
from chart_tracker.errors import UnrecognizedImageFormatError, wrap_error
from chart_tracker.image_resolver import resolve_image
from chart_tracker.interfaces import ImageStore
from chart_tracker.license_detector import LicenseDetector
from chart_tracker.models import (
    Maintainer,
    PackageRecord,
    ParsedArchive,
    RegisterJob,
    RepositoryContext,
)

logger = logging.getLogger(__name__)

README_FILE = "README.md"
LICENSE_FILE = "LICENSE"


class MetadataExtractor:
    """Builds the PackageRecord for a chart version.

    Failures while deriving optional fields (license, provenance, logo) never
    fail the extraction: the field is left unset. Logo failures are reported
    through ``warn`` so they reach the error collector; the rest are only
    logged.
    """

    def __init__(
        self,
        fetcher: ArchiveFetcher,
        image_store: ImageStore,
        license_detector: LicenseDetector,
        warn: Callable[[Exception], None],
        log: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        """Initialize the extractor.

        Args:
            fetcher: Fetcher used for provenance checks and logo downloads
            image_store: Store where chart logos are saved
            license_detector: Detector run over the chart LICENSE file
            warn: Callback reporting a non-fatal error for the repository
            log: Logger used for errors that are not collected
        """
        self.fetcher = fetcher
        self.image_store = image_store
        self.license_detector = license_detector
        self.warn = warn
        self.logger = log or logger

    def extract(
        self,
        archive: ParsedArchive,
        job: RegisterJob,
        content_url: str,
        repository: RepositoryContext,
    ) -> PackageRecord:
        """Build the package record for a chart version.

        Manifest fields are copied as is. The readme, license and maintainers
        come from the archive files and manifest; the signed flag and logo
        need network access. A failing license detection or provenance check
        only leaves its field as None. A failing logo fetch or save is passed
        to ``warn`` and leaves both logo fields unset.

        Args:
            archive: Parsed chart archive
            job: Register job for the chart version
            content_url: Resolved url the archive was downloaded from
            repository: Repository the chart belongs to

        Returns:
            PackageRecord ready to hand to the package manager
        """
        md = archive.metadata
        chart_version = job.chart_version

        record = PackageRecord(
            name=md.name,
            version=md.version,
            repository=repository,
            app_version=md.app_version,
            description=md.description,
            keywords=list(dict.fromkeys(md.keywords)),
            home_url=md.home,
            content_url=content_url,
            digest=chart_version.digest,
            created_at=chart_version.created_at,
            deprecated=md.deprecated,
            is_operator="operator" in md.name.lower(),
        )

        readme = archive.get_file(README_FILE)
        if readme is not None:
            record.readme = readme.decode("utf-8", errors="replace")

        license_file = archive.get_file(LICENSE_FILE)
        if license_file is not None:
            record.license = self._detect_license(license_file)

        try:
            record.signed = self.fetcher.has_provenance(content_url)
        except Exception as e:
            self.logger.warning(f"error checking provenance file: {e}")

        maintainers = [
            Maintainer(name=entry.name, email=entry.email)
            for entry in md.maintainers
            if entry.email
        ]
        if maintainers:
            record.maintainers = maintainers

        if md.dependencies:
            record.dependencies = list(md.dependencies)

        if job.store_logo and md.icon:
            logo_image_id = self._store_logo(md.icon)
            if logo_image_id:
                record.logo_url = md.icon
                record.logo_image_id = logo_image_id

        return record

    def _detect_license(self, data: bytes) -> str | None:
        try:
            return self.license_detector.detect(data)
        except Exception as e:
            self.logger.warning(f"error detecting license: {e}")
            return None

    def _store_logo(self, icon: str) -> str | None:
        """Fetch and save the chart logo, returning its image id."""
        try:
            data = resolve_image(icon, self.fetcher.http_getter)
        except Exception as e:
            self.warn(wrap_error(f"error getting image {icon}", e))
            return None

        try:
            return self.image_store.save_image(data)
        except UnrecognizedImageFormatError:
            self.logger.debug(f"unrecognized image format for {icon}")
            return None
        except Exception as e:
            self.warn(wrap_error(f"error saving image {icon}", e))
            return None
