from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from buildkite_generator.log import logger

LogLevel = Literal[
    "CRITICAL",
    "FATAL",
    "ERROR",
    "WARNING",
    "WARN",
    "INFO",
    "DEBUG",
    "NOTSET",
]


class Credentials(BaseSettings):
    """Bearer tokens for Buildkite and GitHub.

    Keyword arguments win over the environment, so explicit CLI flags
    override ``BUILDKITE_API_TOKEN`` and ``GITHUB_API_TOKEN``.
    """

    model_config = SettingsConfigDict(extra="ignore")

    BUILDKITE_API_TOKEN: str = Field(min_length=1)
    GITHUB_API_TOKEN: str = Field(min_length=1)


class Config(BaseModel):
    BUILDKITE_TOKEN: str
    GITHUB_TOKEN: str

    BUILDKITE_ORG: str = "bluecore-inc"
    GITHUB_ORG: str = "TriggerMail"

    GIT_HOST: str = "github.com"
    DEFAULT_BRANCH: str = "master"
    STATUS_CHECK_PREFIX: str = "buildkite"

    BUILDKITE_API_URL: str = "https://api.buildkite.com/v2"

    TEMPLATE_DIR: str = ".buildkite"
    TEMPLATE_FILE: str = "template.yaml"

    OVERRIDE_LOGGING: LogLevel = "WARNING"

    STERILE: bool = False

    @classmethod
    def from_credentials(cls, credentials: Credentials, **kwargs) -> "Config":
        return cls(
            BUILDKITE_TOKEN=credentials.BUILDKITE_API_TOKEN,
            GITHUB_TOKEN=credentials.GITHUB_API_TOKEN,
            **kwargs,
        )

    def print_config(self):
        """Print configuration values with sensitive attributes masked"""
        sensitive_attrs = {
            "BUILDKITE_TOKEN",
            "GITHUB_TOKEN",
        }

        logger.info("=== Buildkite Generator Configuration ===")
        for field_name, field_value in self.model_dump().items():
            if field_name in sensitive_attrs:
                logger.info(f"{field_name}: ***")
            else:
                logger.info(f"{field_name}: {field_value}")
        logger.info("=========================================")
