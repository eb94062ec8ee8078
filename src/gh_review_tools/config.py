"""
Configuration Management

Runtime settings for the diagnostics and review-thread tools.
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
import logging


DEFAULT_CREDENTIALS_PATH = ".cursor/credentials/github.json"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class GitHubConfig:
    """GitHub API settings"""
    token: Optional[str] = None
    api_base_url: str = "https://api.github.com"
    timeout_seconds: int = 30
    gh_executable: str = "gh"


@dataclass
class DiagnosticsConfig:
    """Access diagnostics settings"""
    credentials_path: str = DEFAULT_CREDENTIALS_PATH
    gh_low_rate_limit: int = 100
    token_low_rate_limit: int = 10
    example_repo: str = "owner/repository"
    example_pr: int = 123


@dataclass
class LoggingConfig:
    """Logging settings"""
    level: str = "WARNING"
    format: str = DEFAULT_LOG_FORMAT
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class AppConfig:
    """Application settings"""
    github: GitHubConfig = field(default_factory=GitHubConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load settings from environment variables."""
        return cls(
            github=GitHubConfig(
                token=os.getenv("GITHUB_TOKEN"),
                api_base_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
                timeout_seconds=int(os.getenv("GITHUB_TIMEOUT", "30")),
                gh_executable=os.getenv("GH_EXECUTABLE", "gh"),
            ),
            diagnostics=DiagnosticsConfig(
                credentials_path=os.getenv("GH_CREDENTIALS_PATH", DEFAULT_CREDENTIALS_PATH),
                gh_low_rate_limit=int(os.getenv("GH_LOW_RATE_LIMIT", "100")),
                token_low_rate_limit=int(os.getenv("TOKEN_LOW_RATE_LIMIT", "10")),
                example_repo=os.getenv("GH_EXAMPLE_REPO", "owner/repository"),
                example_pr=int(os.getenv("GH_EXAMPLE_PR", "123")),
            ),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", "WARNING"),
                format=os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT),
                file_path=os.getenv("LOG_FILE"),
                max_file_size=int(os.getenv("LOG_MAX_SIZE", str(10 * 1024 * 1024))),
                backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            ),
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """
        Load settings from a YAML file.

        Sections that are absent fall back to their defaults. A token that is
        not set in the file is taken from ``GITHUB_TOKEN``.
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ValueError(f"Config root must be a mapping: {config_path}")

        github = GitHubConfig(**config_data.get('github', {}))
        if not github.token:
            github.token = os.getenv("GITHUB_TOKEN")

        return cls(
            github=github,
            diagnostics=DiagnosticsConfig(**config_data.get('diagnostics', {})),
            logging=LoggingConfig(**config_data.get('logging', {})),
        )

    def validate(self) -> None:
        """Validate settings, raising ValueError with every problem found."""
        errors = []

        if not self.github.api_base_url.startswith(("http://", "https://")):
            errors.append(f"Invalid API base URL: {self.github.api_base_url}")

        if self.github.timeout_seconds <= 0:
            errors.append("Timeout must be positive")

        if self.diagnostics.gh_low_rate_limit < 0 or self.diagnostics.token_low_rate_limit < 0:
            errors.append("Rate limit thresholds must be non-negative")

        if "/" not in self.diagnostics.example_repo:
            errors.append(f"Example repository must be owner/repo: {self.diagnostics.example_repo}")

        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid log level: {self.logging.level}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")


def setup_logging(config: LoggingConfig) -> None:
    """Configure root logging, adding a rotating file handler when a log file is set."""
    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        format=config.format,
    )

    if config.file_path:
        from logging.handlers import RotatingFileHandler

        handler = RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )
        handler.setFormatter(logging.Formatter(config.format))
        logging.getLogger().addHandler(handler)


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load and validate settings from a YAML file, or from the environment."""
    config = AppConfig.from_yaml(config_path) if config_path else AppConfig.from_env()
    config.validate()
    return config
