import asyncio

import pytest
import aiohttp
from unittest.mock import AsyncMock, MagicMock, Mock

from buildkite_generator.buildkite import Buildkite
from buildkite_generator.buildkite.models import Pipeline
from buildkite_generator.buildkite.pipeline import (
    build_pipeline_request,
    make_repository_url,
    register_pipeline,
)
from buildkite_generator.exceptions import PipelineCreationError


def make_session(json_data=None):
    mock_response = MagicMock()
    mock_response.raise_for_status = Mock()
    mock_response.json = AsyncMock(return_value=json_data)
    mock_response.status = 201
    mock_response.__aenter__.return_value = mock_response
    mock_response.__aexit__.return_value = None

    session = MagicMock()
    session.post = MagicMock()
    session.post.return_value = mock_response
    return session


@pytest.mark.parametrize("name", ["foo", "my-service", "api_v2", "x"])
def test_repository_and_provider_repository_agree(config, name):
    request = build_pipeline_request(name, config)

    assert request.repository == f"git@github.com:test_org/{name}.git"
    assert request.provider_settings.repository == f"test_org/{name}"
    assert request.repository == f"git@github.com:{request.provider_settings.repository}.git"


def test_repository_url_uses_configured_host(config):
    config.GIT_HOST = "github.example.com"
    assert make_repository_url("foo", config) == "git@github.example.com:test_org/foo.git"


def test_build_pipeline_request(config):
    request = build_pipeline_request("foo", config)

    assert request.name == "foo"
    assert request.default_branch == "master"
    assert request.description == "pipeline for foo"
    assert len(request.steps) == 1
    assert request.steps[0].type == "script"
    assert request.steps[0].name == ":pipeline:"
    assert request.steps[0].command == "buildkite-agent pipeline upload"
    assert request.cancel_running_branch_builds is True
    assert request.cancel_running_branch_builds_filter == "!master"


def test_build_pipeline_request_payload(config):
    payload = build_pipeline_request("foo", config).model_dump(exclude_none=True)

    assert payload["provider_settings"] == {
        "trigger_mode": "code",
        "build_pull_requests": True,
        "skip_pull_request_builds_for_existing_commits": True,
        "publish_commit_status": True,
        "repository": "test_org/foo",
    }
    assert payload["steps"] == [
        {
            "type": "script",
            "name": ":pipeline:",
            "command": "buildkite-agent pipeline upload",
        }
    ]


def test_cancel_filter_follows_default_branch(config):
    config.DEFAULT_BRANCH = "main"
    request = build_pipeline_request("foo", config)

    assert request.default_branch == "main"
    assert request.cancel_running_branch_builds_filter == "!main"


@pytest.mark.asyncio
async def test_create_pipeline_posts_request(config):
    session = make_session(
        {"id": "0184-abcd", "slug": "foo", "name": "foo", "web_url": "https://buildkite.com/test-org/foo"}
    )
    client = Buildkite(session=session, config=config)
    request = build_pipeline_request("foo", config)

    pipeline = await client.create_pipeline("test-org", request)

    assert pipeline == Pipeline(
        id="0184-abcd", slug="foo", name="foo", web_url="https://buildkite.com/test-org/foo"
    )
    session.post.assert_called_once_with(
        "https://api.buildkite.com/v2/organizations/test-org/pipelines",
        json=request.model_dump(exclude_none=True),
        headers={"Authorization": "Bearer bk-token"},
    )


@pytest.mark.asyncio
async def test_add_webhook_posts_to_pipeline(config):
    session = make_session()
    client = Buildkite(session=session, config=config)

    await client.add_webhook("test-org", "foo")

    session.post.assert_called_once_with(
        "https://api.buildkite.com/v2/organizations/test-org/pipelines/foo/webhook",
        headers={"Authorization": "Bearer bk-token"},
    )


@pytest.mark.asyncio
async def test_sterile_client_does_not_post(config):
    config.STERILE = True
    session = make_session()
    client = Buildkite(session=session, config=config)

    pipeline = await client.create_pipeline("test-org", build_pipeline_request("foo", config))
    await client.add_webhook("test-org", pipeline.slug)

    assert pipeline.slug == "foo"
    session.post.assert_not_called()


@pytest.mark.asyncio
async def test_register_pipeline_adds_webhook(config):
    client = AsyncMock()
    client.create_pipeline = AsyncMock(
        return_value=Pipeline(id="0184-abcd", slug="foo", name="foo")
    )

    pipeline = await register_pipeline(client, "foo", config)

    assert pipeline.slug == "foo"
    client.create_pipeline.assert_called_once_with(
        "test-org", build_pipeline_request("foo", config)
    )
    client.add_webhook.assert_called_once_with("test-org", "foo")


@pytest.mark.asyncio
async def test_register_pipeline_wraps_creation_failure(config):
    client = AsyncMock()
    cause = aiohttp.ClientConnectionError("connection refused")
    client.create_pipeline = AsyncMock(side_effect=cause)

    with pytest.raises(PipelineCreationError, match="^could not create pipeline: ") as excinfo:
        await register_pipeline(client, "foo", config)

    assert excinfo.value.__cause__ is cause
    client.add_webhook.assert_not_called()


@pytest.mark.asyncio
async def test_register_pipeline_propagates_webhook_failure(config):
    client = AsyncMock()
    client.create_pipeline = AsyncMock(
        return_value=Pipeline(id="0184-abcd", slug="foo", name="foo")
    )
    error = aiohttp.ClientResponseError(
        request_info=Mock(), history=(), status=404, message="Not Found"
    )
    client.add_webhook = AsyncMock(side_effect=error)

    with pytest.raises(aiohttp.ClientResponseError) as excinfo:
        await register_pipeline(client, "foo", config)

    assert excinfo.value is error
    assert not isinstance(excinfo.value, PipelineCreationError)


@pytest.mark.asyncio
async def test_register_pipeline_wraps_timeout(config):
    client = AsyncMock()
    client.create_pipeline = AsyncMock(side_effect=asyncio.TimeoutError())

    with pytest.raises(
        PipelineCreationError, match=r"^could not create pipeline: TimeoutError\(\)$"
    ):
        await register_pipeline(client, "foo", config)

    client.add_webhook.assert_not_called()


@pytest.mark.asyncio
async def test_register_pipeline_wraps_unexpected_response(config):
    session = make_session({"message": "ok"})
    client = Buildkite(session=session, config=config)

    with pytest.raises(PipelineCreationError, match="^could not create pipeline: "):
        await register_pipeline(client, "foo", config)

    # only the creation call, no webhook
    session.post.assert_called_once()
