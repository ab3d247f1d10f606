import asyncio

import aiohttp
from pydantic import ValidationError

from buildkite_generator.buildkite import Buildkite
from buildkite_generator.buildkite.models import (
    GitHubProviderSettings,
    Pipeline,
    PipelineRequest,
    Step,
)
from buildkite_generator.config import Config
from buildkite_generator.exceptions import PipelineCreationError

UPLOAD_COMMAND = "buildkite-agent pipeline upload"
UPLOAD_LABEL = ":pipeline:"


def make_repo_name(name: str, config: Config) -> str:
    return f"{config.GITHUB_ORG}/{name}"


def make_repository_url(name: str, config: Config) -> str:
    return f"git@{config.GIT_HOST}:{make_repo_name(name, config)}.git"


def build_pipeline_request(name: str, config: Config) -> PipelineRequest:
    """Describe the Buildkite pipeline for ``name``.

    The clone URL and the provider repository are both derived from
    ``make_repo_name`` and always point at the same GitHub repository.
    """
    return PipelineRequest(
        name=name,
        repository=make_repository_url(name, config),
        steps=[
            Step(
                type="script",
                name=UPLOAD_LABEL,
                command=UPLOAD_COMMAND,
            )
        ],
        default_branch=config.DEFAULT_BRANCH,
        description=f"pipeline for {name}",
        provider_settings=GitHubProviderSettings(
            trigger_mode="code",
            build_pull_requests=True,
            skip_pull_request_builds_for_existing_commits=True,
            publish_commit_status=True,
            repository=make_repo_name(name, config),
        ),
        cancel_running_branch_builds=True,
        cancel_running_branch_builds_filter=f"!{config.DEFAULT_BRANCH}",
    )


async def register_pipeline(
    buildkite_client: Buildkite, name: str, config: Config
) -> Pipeline:
    request = build_pipeline_request(name, config)

    try:
        pipeline = await buildkite_client.create_pipeline(config.BUILDKITE_ORG, request)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValidationError) as e:
        raise PipelineCreationError(
            f"could not create pipeline: {str(e) or repr(e)}"
        ) from e

    # webhook failures propagate as raised by the transport
    await buildkite_client.add_webhook(config.BUILDKITE_ORG, pipeline.slug)
    return pipeline
