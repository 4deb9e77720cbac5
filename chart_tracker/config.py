"""Configuration and logging setup for the chart tracker."""

import logging
import os
import sys


def setup_logging(level: str | None = None) -> None:
    """Configure stdout logging for a chart tracker run.

    Worker messages carry the repository tag added by the worker logger. The
    boto3, botocore and urllib3 loggers are held at WARNING.

    Args:
        level: Log level name. Defaults to the LOG_LEVEL variable, then INFO.
    """
    log_level = level or os.getenv(ENV_LOG_LEVEL, "INFO")

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # DynamoDB, S3 and chart download clients
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_env_var(name: str, default: str | None = None, required: bool = False) -> str:
    """Read a chart tracker setting from the environment.

    Args:
        name: Environment variable name
        default: Default value if not set
        required: Whether the variable is required

    Returns:
        Environment variable value

    Raises:
        ValueError: If required variable is not set
    """
    value = os.getenv(name, default)

    if required and not value:
        raise ValueError(f"Required environment variable {name} is not set")

    return value or ""


def get_float_env_var(name: str, default: float) -> float:
    """Get a numeric environment variable, falling back to ``default``.

    Raises:
        ValueError: If the variable is set but is not a number
    """
    value = get_env_var(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"Environment variable {name} must be a number: {value!r}") from e


def get_list_env_var(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Get a comma separated environment variable as a tuple of strings."""
    value = get_env_var(name)
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


# Environment variable names
ENV_PACKAGES_TABLE = "PACKAGES_TABLE_NAME"
ENV_IMAGES_BUCKET = "IMAGES_BUCKET_NAME"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_AWS_REGION = "AWS_REGION"
ENV_HTTP_TIMEOUT = "HTTP_TIMEOUT"
ENV_RATE_LIMIT_PER_SECOND = "RATE_LIMIT_PER_SECOND"
ENV_RATE_LIMIT_BURST = "RATE_LIMIT_BURST"
ENV_RATE_LIMITED_HOSTS = "RATE_LIMITED_HOSTS"
ENV_REPOSITORY_CONFIG_DIR = "REPOSITORY_CONFIG_DIR"

# Defaults
DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_RATE_LIMIT_PER_SECOND = 2.0
DEFAULT_RATE_LIMIT_BURST = 1
DEFAULT_RATE_LIMITED_HOSTS = ("github.com",)
DEFAULT_REPOSITORY_CONFIG_DIR = "config/repositories"
