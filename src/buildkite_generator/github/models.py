from pydantic import BaseModel


class RequiredStatusChecks(BaseModel):
    strict: bool = False
    contexts: list[str] = []


class BranchProtection(BaseModel):
    url: str | None = None
    required_status_checks: RequiredStatusChecks | None = None


class RequiredStatusChecksUpdate(BaseModel):
    strict: bool
    contexts: list[str]
