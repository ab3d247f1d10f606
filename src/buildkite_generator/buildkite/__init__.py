import aiohttp

from buildkite_generator.config import Config
from buildkite_generator.buildkite.models import Pipeline, PipelineRequest
from buildkite_generator.log import logger


class Buildkite:
    def __init__(self, session: aiohttp.ClientSession, config: Config):
        self.session = session
        self._headers = {"Authorization": f"Bearer {config.BUILDKITE_TOKEN}"}
        self.config = config

    def get_pipelines_url(self, org: str) -> str:
        return f"{self.config.BUILDKITE_API_URL}/organizations/{org}/pipelines"

    def get_webhook_url(self, org: str, pipeline_slug: str) -> str:
        return f"{self.get_pipelines_url(org)}/{pipeline_slug}/webhook"

    async def create_pipeline(self, org: str, request: PipelineRequest) -> Pipeline:
        url = self.get_pipelines_url(org)
        if self.config.STERILE:
            logger.info(
                "Sterile mode: would create pipeline %s at %s", request.name, url
            )
            return Pipeline(id="", slug=request.name, name=request.name)

        logger.debug("Creating pipeline %s at %s", request.name, url)
        async with self.session.post(
            url,
            json=request.model_dump(exclude_none=True),
            headers=self._headers,
        ) as resp:
            resp.raise_for_status()
            data = await resp.json()

        pipeline = Pipeline.model_validate(data)
        logger.debug("Created pipeline %s (%s)", pipeline.slug, pipeline.id)
        return pipeline

    async def add_webhook(self, org: str, pipeline_slug: str) -> None:
        url = self.get_webhook_url(org, pipeline_slug)
        if self.config.STERILE:
            logger.info("Sterile mode: would add webhook at %s", url)
            return

        logger.debug("Adding webhook for pipeline %s at %s", pipeline_slug, url)
        async with self.session.post(url, headers=self._headers) as resp:
            resp.raise_for_status()
        logger.debug("Webhook has been added")
