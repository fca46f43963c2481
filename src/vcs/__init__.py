"""Git repository state for display and branch switching."""

from src.vcs.resolver import (
    RepositoryStateResolver,
    current_ref,
    find_root,
    select_default_branch,
)
from src.vcs.runner import GitRunner, SubprocessGitRunner, parse_branch_listing

__all__ = [
    "GitRunner",
    "RepositoryStateResolver",
    "SubprocessGitRunner",
    "current_ref",
    "find_root",
    "parse_branch_listing",
    "select_default_branch",
]
