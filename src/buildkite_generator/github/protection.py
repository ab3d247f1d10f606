import asyncio

import aiohttp
import gidgethub
from gidgethub.abc import GitHubAPI

from buildkite_generator.config import Config
from buildkite_generator.exceptions import BranchProtectionError
from buildkite_generator.github.models import (
    BranchProtection,
    RequiredStatusChecks,
    RequiredStatusChecksUpdate,
)
from buildkite_generator.log import logger


def make_status_context(name: str, config: Config) -> str:
    return f"{config.STATUS_CHECK_PREFIX}/{name}"


def get_protection_url(name: str, config: Config) -> str:
    return (
        f"/repos/{config.GITHUB_ORG}/{name}"
        f"/branches/{config.DEFAULT_BRANCH}/protection"
    )


def extend_contexts(contexts: list[str], context: str) -> list[str]:
    """Return ``contexts`` with ``context`` appended unless already present."""
    if context in contexts:
        return list(contexts)
    return [*contexts, context]


def get_status_checks_url(name: str, config: Config) -> str:
    return f"{get_protection_url(name, config)}/required_status_checks"


async def get_required_status_checks(
    gh: GitHubAPI, name: str, config: Config
) -> RequiredStatusChecks:
    url = get_protection_url(name, config)
    logger.debug("Fetching branch protection from %s", url)
    try:
        data = await gh.getitem(url)
    except (
        gidgethub.GitHubException,
        aiohttp.ClientError,
        asyncio.TimeoutError,
    ) as e:
        raise BranchProtectionError(
            "could not retrieve branch protection from github: "
            f"{str(e) or repr(e)}"
        ) from e

    protection = BranchProtection.model_validate(data)
    if protection.required_status_checks is None:
        raise BranchProtectionError(
            "could not retrieve branch protection from github: "
            f"{config.DEFAULT_BRANCH} of {config.GITHUB_ORG}/{name} "
            "has no required status checks"
        )
    return protection.required_status_checks


async def extend_branch_protection(
    gh: GitHubAPI, name: str, config: Config
) -> list[str]:
    """Add the pipeline's status check to the protection of the default branch.

    Only existing protection is extended. The record is read and written
    back without any conditional update, so a concurrent change made
    between the two calls is lost.

    Returns the required contexts as they are after the call.
    """
    checks = await get_required_status_checks(gh, name, config)
    logger.debug("Existing required contexts: %s", checks.contexts)

    context = make_status_context(name, config)
    contexts = extend_contexts(checks.contexts, context)
    if contexts == checks.contexts:
        logger.info("Status check %s is already required, skipping update", context)
        return contexts

    update = RequiredStatusChecksUpdate(strict=checks.strict, contexts=contexts)

    url = get_status_checks_url(name, config)
    logger.debug("Updating required status checks at %s: %s", url, contexts)
    if not config.STERILE:
        await gh.patch(url, data=update.model_dump())
    else:
        logger.info("Sterile mode: would require contexts %s", contexts)

    return contexts
