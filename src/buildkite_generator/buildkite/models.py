from pydantic import BaseModel


class Step(BaseModel):
    type: str = "script"
    name: str | None = None
    command: str | None = None


class GitHubProviderSettings(BaseModel):
    trigger_mode: str | None = None
    build_pull_requests: bool | None = None
    skip_pull_request_builds_for_existing_commits: bool | None = None
    publish_commit_status: bool | None = None
    repository: str | None = None  # owner/repo format


class PipelineRequest(BaseModel):
    name: str
    repository: str
    steps: list[Step]
    default_branch: str
    description: str | None = None
    provider_settings: GitHubProviderSettings | None = None
    cancel_running_branch_builds: bool = False
    cancel_running_branch_builds_filter: str | None = None


class Pipeline(BaseModel):
    id: str
    slug: str
    name: str
    web_url: str | None = None
