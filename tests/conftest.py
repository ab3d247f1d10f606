import pytest

from buildkite_generator.config import Config
from buildkite_generator.log import logger


@pytest.fixture
def config():
    config = Config(
        BUILDKITE_TOKEN="bk-token",
        GITHUB_TOKEN="gh-token",
        BUILDKITE_ORG="test-org",
        GITHUB_ORG="test_org",
        OVERRIDE_LOGGING="DEBUG",
        STERILE=False,
    )

    logger.setLevel(config.OVERRIDE_LOGGING)

    return config


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    monkeypatch.delenv("BUILDKITE_API_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_API_TOKEN", raising=False)
    yield
    logger.handlers = []
    logger.propagate = True
