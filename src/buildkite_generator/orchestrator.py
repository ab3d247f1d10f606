from pathlib import Path

from gidgethub.abc import GitHubAPI

from buildkite_generator.buildkite import Buildkite
from buildkite_generator.buildkite.pipeline import register_pipeline
from buildkite_generator.config import Config
from buildkite_generator.exceptions import UsageError
from buildkite_generator.github.protection import extend_branch_protection
from buildkite_generator.log import logger
from buildkite_generator.template import write_template


class Provisioner:
    """Run the three provisioning steps for one project.

    Steps run in a fixed order: register the pipeline, require its status
    check on the default branch, write the local template. The first error
    aborts the run. Nothing already done is rolled back, so a failed
    protection update leaves the created pipeline in place.
    """

    def __init__(
        self,
        config: Config,
        buildkite_client: Buildkite,
        gh: GitHubAPI,
        root: str | Path = ".",
    ):
        self.config = config
        self.buildkite_client = buildkite_client
        self.gh = gh
        self.root = root

    async def run(self, name: str | None) -> None:
        if not name:
            raise UsageError("could not find project name")

        logger.debug("Registering pipeline for %s", name)
        pipeline = await register_pipeline(self.buildkite_client, name, self.config)
        logger.info("Registered pipeline %s", pipeline.slug)

        logger.debug("Extending branch protection for %s", name)
        contexts = await extend_branch_protection(self.gh, name, self.config)
        logger.info(
            "Required status checks on %s: %s", self.config.DEFAULT_BRANCH, contexts
        )

        path = write_template(name, self.config, root=self.root)
        logger.info("Wrote pipeline template to %s", path)
