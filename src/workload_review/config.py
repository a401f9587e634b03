"""Centralized configuration management for the workload review engine."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class AWSConfig(BaseModel):
    """Connection settings for the Well-Architected Tool API."""
    region: str = Field("us-east-1", description="AWS region hosting the workload reviews")
    profile: Optional[str] = Field(None, description="Shared credentials profile name")


class RetryConfig(BaseModel):
    """Retry policy for remote API calls.

    Only throttling, service unavailability and internal server faults are
    retried; backoff doubles from base_delay up to max_backoff.
    """
    max_retries: int = Field(
        3,
        ge=1,
        description="Total attempts per remote operation, including the first"
    )
    base_delay: float = Field(
        1.0,
        ge=0,
        description="Initial backoff in seconds"
    )
    max_backoff: float = Field(
        32.0,
        ge=0,
        description="Upper bound for the backoff in seconds"
    )


class ReviewConfig(BaseModel):
    """Settings that shape requests to the review API."""
    lens_alias: str = Field("wellarchitected", description="Lens reviewed for every workload")
    page_size: int = Field(
        50,
        ge=1,
        le=50,
        description="Records requested per ListAnswers/ListWorkloads page"
    )
    review_owner: str = Field("workload-review", description="Owner recorded on created workloads")
    environment: str = Field("PRODUCTION", description="Environment of created workloads")
    docs_base_url: str = Field(
        "https://docs.aws.amazon.com/wellarchitected/latest/framework",
        description="Base URL for best-practice documentation links"
    )


class LoggingConfig(BaseModel):
    """Logging settings."""
    level: str = Field("INFO", description="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    dev_mode: bool = Field(False, description="Use rich console output")


class ReviewerConfig(BaseModel):
    """Complete configuration for the workload review engine."""
    aws: AWSConfig = Field(default_factory=AWSConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    review: ReviewConfig = Field(default_factory=ReviewConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# Global config instance
_config: Optional[ReviewerConfig] = None


def get_config() -> ReviewerConfig:
    """Get the current configuration.

    Returns the global config, initializing with defaults if not yet loaded.
    """
    global _config
    if _config is None:
        _config = ReviewerConfig()
    return _config


def load_config(path: Path) -> ReviewerConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        The loaded ReviewerConfig.
    """
    global _config

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    _config = ReviewerConfig.model_validate(data or {})
    return _config


def reset_config() -> None:
    """Reset configuration to defaults."""
    global _config
    _config = ReviewerConfig()


def find_config_file() -> Optional[Path]:
    """Find a reviewer configuration file.

    Looks in (order of priority):
    1. WORKLOAD_REVIEW_CONFIG environment variable
    2. ./workload-review.yaml
    3. ./workload-review.yml
    4. ~/.config/workload-review/config.yaml
    """
    env_path = os.environ.get("WORKLOAD_REVIEW_CONFIG")
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path

    for name in ["workload-review.yaml", "workload-review.yml"]:
        path = Path(name)
        if path.exists():
            return path

    user_config = Path.home() / ".config" / "workload-review" / "config.yaml"
    if user_config.exists():
        return user_config

    return None


def save_default_config(path: Path) -> None:
    """Save the default configuration to a YAML file.

    Args:
        path: Path where to save the configuration.
    """
    config = ReviewerConfig()
    data = config.model_dump()

    header = """# Workload Review Configuration
#
# retry: attempts and backoff for throttled or unavailable API calls
# review: lens, page size and documentation links
# logging: log level and rich console output
#
"""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(header)
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
