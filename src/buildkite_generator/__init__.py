"""Provision Buildkite pipelines and GitHub status checks for a repository."""
