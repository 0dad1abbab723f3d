import os
from typing import Literal

import yaml
import logging
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_PATH = os.getenv("CONFIG_PATH", "config/exporter-config.yaml")


class TelemetryConfig(BaseModel):
    """
    Configuration for the metrics HTTP surface.
    This class defines the listen address, port and the path metrics are served under.
    """
    address: str = Field("0.0.0.0", description="Address to listen on")
    port: int = Field(9113, ge=1, le=65535, description="Port to listen on")
    endpoint: str = Field("/metrics", description="Path under which to expose metrics")

    @field_validator("endpoint")
    @classmethod
    def check_endpoint_is_path(cls, v):
        if not v.startswith("/"):
            logger.error("`endpoint` must start with '/', got %r", v)
            raise ValueError("`endpoint` must start with '/'")
        return v


class UpstreamConfig(BaseModel):
    """
    Configuration for the upstream status page.
    This class defines where the status document is scraped from and how.
    """
    scrape_uri: str = Field(
        "http://localhost/nginx_status", description="URI to the upstream status page"
    )
    insecure: bool = Field(
        True, description="Ignore server certificate if using https"
    )
    timeout_seconds: float = Field(
        5.0, gt=0,
        description="Deadline (seconds) for a whole status fetch; also the per-read socket timeout",
    )
    namespace: str = Field(
        "nginx", min_length=1, description="Prefix for all exported metric names"
    )

    @field_validator("scrape_uri")
    @classmethod
    def check_scheme(cls, v):
        if not v.startswith(("http://", "https://")):
            logger.error("`scrape_uri` must be an http(s) URI, got %r", v)
            raise ValueError("`scrape_uri` must start with http:// or https://")
        return v


class LoggingConfig(BaseModel):
    """
    Configuration for logging settings.
    This class defines the logging level for the application.
    """
    level: Literal["DEBUG", "INFO", "WARN", "ERROR"] = Field(
        "INFO", description="Logging level"
    )


class ExporterConfig(BaseModel):
    """
    Configuration for the exporter application.
    This class encapsulates the telemetry, upstream and logging settings.
    """
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: str = None) -> "ExporterConfig":
        """
        Load and validate the exporter configuration from YAML.
        An empty file yields the defaults for every section.
        Args:
            path (str): Optional override for the configuration file path.
        Returns:
            ExporterConfig: The validated configuration object.
        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ValueError: If the configuration is invalid.
        """
        path = path or CONFIG_PATH
        logger.info(f"Loading configuration from {path}")
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
                logger.debug(f"Raw config data: {data}")
        except FileNotFoundError as e:
            logger.exception(f"Configuration file not found at {path}")
            raise FileNotFoundError(f"Configuration file not found at {path}") from e

        try:
            config = cls(**data)
            logger.info("Configuration loaded and validated successfully")
            logger.debug(f"Final config object: {config}")
            return config
        except Exception as e:
            logger.exception("Invalid configuration provided")
            raise ValueError(f"Invalid configuration: {e}") from e


def get_config(path: str = None) -> ExporterConfig:
    """
    Retrieve the exporter configuration, loading it from the specified YAML file.
    Returns:
        ExporterConfig: The validated configuration object.
    """
    logger.info("Retrieving exporter configuration")
    config = ExporterConfig.load(path)
    logger.debug(f"Parsed configuration object: {config}")
    return config
