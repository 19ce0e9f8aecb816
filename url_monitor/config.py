"""Configuration management for the URL monitor."""

import json
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ConfigError(Exception):
    """Raised when a URL list, run configuration or settings file cannot be used."""


class ErrorWhitelist(BaseModel):
    """Substrings that suppress otherwise reportable errors."""
    model_config = ConfigDict(populate_by_name=True)

    console_errors: list[str] = Field(default_factory=list, alias="consoleErrors",
                                      description="Substrings of console error text to ignore")
    network_errors: list[str] = Field(default_factory=list, alias="networkErrors",
                                      description="Substrings of failing request URLs to ignore")


class ElementTest(BaseModel):
    """A single element-existence probe."""
    url: str = Field(description="Page to load")
    selector: str = Field(description="CSS selector that should match")
    description: str = Field(default="", description="Human readable name of the probe")


class RunConfig(BaseModel):
    """Per-run configuration (config.json)."""
    model_config = ConfigDict(populate_by_name=True)

    random_url_count: int = Field(default=5, ge=0, alias="randomUrlCount",
                                  description="How many URLs to sample from the URL list")
    error_whitelist: ErrorWhitelist = Field(default_factory=ErrorWhitelist, alias="errorWhitelist")
    element_tests: list[ElementTest] = Field(default_factory=list, alias="elementTests")


class UrlList(BaseModel):
    """Candidate URLs (urls.json)."""
    urls: list[str] = Field(default_factory=list, description="Candidate URLs to sample from")


class MonitorSettings(BaseModel):
    """Process level settings for the monitor."""

    log_level: str = Field(default="INFO", description="Logging level")

    # Browser settings
    browser_headless: bool = Field(default=True, description="Run browser in headless mode")
    chromium_executable: Optional[str] = Field(default=None, description="Explicit Chromium binary to launch")
    navigation_timeout: int = Field(default=30, description="Navigation timeout in seconds")
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; URL-Tester/1.0; +https://github.com/your-repo)",
        description="User agent for the browser context"
    )
    cookie_accept_selectors: list[str] = Field(
        default_factory=lambda: ["#onetrust-accept-btn-handler"],
        description="Cookie banner accept buttons to click when visible"
    )
    cookie_dismiss_pause_ms: int = Field(default=1000, description="Pause after dismissing a cookie banner")
    screenshot_on_failure: bool = Field(default=False, description="Take screenshots when a page fails to load")

    # Output settings
    reports_directory: str = Field(default="reports", description="Directory for output reports")


def _read_document(path: Path) -> Any:
    """Read a JSON or YAML document, picking the parser from the file suffix."""
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() in ['.yaml', '.yml']:
                return yaml.safe_load(f)
            return json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Malformed configuration file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e


def load_urls(path: str | Path) -> list[str]:
    """Load the candidate URL list."""
    path = Path(path)
    data = _read_document(path)
    try:
        return UrlList.model_validate(data).urls
    except ValidationError as e:
        raise ConfigError(f"Invalid URL list in {path}: {e}") from e


def load_run_config(path: str | Path) -> RunConfig:
    """Load the run configuration (sample size, whitelist, element tests)."""
    path = Path(path)
    data = _read_document(path)
    try:
        return RunConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid run configuration in {path}: {e}") from e


def load_settings(config_path: Optional[str] = None) -> MonitorSettings:
    """Load settings from file or environment variables."""
    if config_path is None:
        config_path = os.getenv("URL_MONITOR_CONFIG", "config/monitor.yaml")

    config_data = {}

    # Load from file if exists
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Malformed settings file {config_path}: {e}") from e

    # Override with environment variables
    env_overrides = {
        "log_level": os.getenv("LOG_LEVEL"),
        "reports_directory": os.getenv("REPORTS_DIR"),
        "navigation_timeout": os.getenv("NAVIGATION_TIMEOUT"),
        "browser_headless": os.getenv("BROWSER_HEADLESS"),
        "screenshot_on_failure": os.getenv("SCREENSHOT_ON_FAILURE"),
        "chromium_executable": os.getenv("CHROMIUM_PATH"),
    }

    # Filter out None values and convert types
    for key, value in env_overrides.items():
        if value is not None:
            if key in ["navigation_timeout"]:
                try:
                    value = int(value)
                except ValueError as e:
                    raise ConfigError(f"Invalid integer for {key}: {value!r}") from e
            elif key in ["browser_headless", "screenshot_on_failure"]:
                value = value.lower() in ("true", "1", "yes")
            config_data[key] = value

    try:
        return MonitorSettings(**config_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e


def get_settings() -> MonitorSettings:
    """Get the settings for this process."""
    return load_settings()
