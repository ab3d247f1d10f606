from pathlib import Path

import yaml
from pydantic import BaseModel

from buildkite_generator.buildkite.pipeline import UPLOAD_COMMAND, UPLOAD_LABEL
from buildkite_generator.config import Config
from buildkite_generator.exceptions import TemplateDirectoryError
from buildkite_generator.log import logger

REMINDER = "reminder: create a PR with the template.yaml to the repository!"


class PipelineTemplateStep(BaseModel):
    command: str
    label: str


class PipelineTemplate(BaseModel):
    name: str
    description: str
    steps: list[PipelineTemplateStep]


def make_template(name: str) -> PipelineTemplate:
    return PipelineTemplate(
        name=name,
        description=f"{name} build pipeline",
        steps=[PipelineTemplateStep(command=UPLOAD_COMMAND, label=UPLOAD_LABEL)],
    )


def render_template(name: str) -> str:
    return yaml.safe_dump(make_template(name).model_dump(), sort_keys=False)


def get_template_path(config: Config, root: str | Path = ".") -> Path:
    return Path(root) / config.TEMPLATE_DIR / config.TEMPLATE_FILE


def write_template(name: str, config: Config, root: str | Path = ".") -> Path:
    """Write the pipeline template for ``name`` below ``root``.

    Any existing file at the target path is replaced. The file is left
    for the operator to commit; nothing is pushed from here.
    """
    content = render_template(name)
    path = get_template_path(config, root)

    try:
        path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as e:
        raise TemplateDirectoryError(
            f"could not create directory for template file: {e}"
        ) from e

    print(REMINDER)

    logger.debug("Writing pipeline template to %s", path)
    path.write_text(content)
    return path
