import argparse
import asyncio
from importlib.metadata import PackageNotFoundError, version
from typing import get_args

import aiohttp
from gidgethub import aiohttp as gh_aiohttp
from pydantic import ValidationError

from buildkite_generator.buildkite import Buildkite
from buildkite_generator.config import Config, Credentials, LogLevel
from buildkite_generator.exceptions import UsageError
from buildkite_generator.log import configure_logging, logger
from buildkite_generator.orchestrator import Provisioner

REQUESTER = "buildkite-generator"

# credential field or env var -> CLI flag
FLAG_NAMES = {
    "BUILDKITE_API_TOKEN": "token",
    "BUILDKITE_TOKEN": "token",
    "GITHUB_API_TOKEN": "github-token",
    "GITHUB_TOKEN": "github-token",
}


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


def get_version() -> str:
    try:
        return version("buildkite-generator")
    except PackageNotFoundError:
        return "unknown"


def load_credentials(token: str | None, github_token: str | None) -> Credentials:
    kwargs = {}
    if token:
        kwargs["BUILDKITE_API_TOKEN"] = token
    if github_token:
        kwargs["GITHUB_API_TOKEN"] = github_token

    try:
        return Credentials(**kwargs)
    except ValidationError as e:
        missing = []
        for error in e.errors():
            field = str(error["loc"][0]) if error["loc"] else ""
            flag = FLAG_NAMES.get(field, field)
            if flag not in missing:
                missing.append(flag)
        noun = "flag" if len(missing) == 1 else "flags"
        raise UsageError(
            f'Required {noun} "{", ".join(missing)}" not set'
        ) from e


async def create(args: argparse.Namespace) -> None:
    credentials = load_credentials(args.token, args.github_token)
    config = Config.from_credentials(
        credentials,
        BUILDKITE_ORG=args.buildkite_org,
        GITHUB_ORG=args.github_org,
        DEFAULT_BRANCH=args.branch,
        OVERRIDE_LOGGING=args.log_level,
        STERILE=args.sterile,
    )
    config.print_config()

    async with aiohttp.ClientSession() as session:
        gh = gh_aiohttp.GitHubAPI(session, REQUESTER, oauth_token=config.GITHUB_TOKEN)
        buildkite_client = Buildkite(session=session, config=config)

        await Provisioner(config, buildkite_client, gh).run(args.project_name)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="buildkite-generator",
        description="Create a Buildkite pipeline, require its status check "
        "on GitHub and write a pipeline template.",
    )
    parser.add_argument("--version", action="version", version=get_version())
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser(
        "create",
        help="create a pipeline - buildkite-generator create <repo name>",
    )
    create_parser.add_argument("project_name", nargs="?", default="")
    create_parser.add_argument(
        "--token",
        help="buildkite api token to create pipeline [$BUILDKITE_API_TOKEN]",
    )
    create_parser.add_argument(
        "--github-token",
        help="github token for branch protection [$GITHUB_API_TOKEN]",
    )
    create_parser.add_argument(
        "--buildkite-org",
        default=Config.model_fields["BUILDKITE_ORG"].default,
        help="buildkite organization slug (default: %(default)s)",
    )
    create_parser.add_argument(
        "--github-org",
        default=Config.model_fields["GITHUB_ORG"].default,
        help="github organization owning the repository (default: %(default)s)",
    )
    create_parser.add_argument(
        "--branch",
        default=Config.model_fields["DEFAULT_BRANCH"].default,
        help="default branch to build and protect (default: %(default)s)",
    )
    create_parser.add_argument(
        "--log-level",
        default=Config.model_fields["OVERRIDE_LOGGING"].default,
        type=str.upper,
        choices=get_args(LogLevel),
        help="log level (default: %(default)s)",
    )
    create_parser.add_argument(
        "--sterile",
        action="store_true",
        help="only log the changes that would be made on buildkite and github",
    )
    create_parser.set_defaults(func=create)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        configure_logging(args.log_level)
        asyncio.run(args.func(args))
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        print(str(e) or repr(e))
        return 1
    return 0
