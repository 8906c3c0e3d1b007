import logging
from pathlib import Path
from typing import NamedTuple

import git

logger = logging.getLogger(__name__)


class RepoState(NamedTuple):
    branch: str | None
    commit: str | None
    dirty: bool

    @property
    def label(self):
        if self.commit is None:
            return None
        return f"{self.branch or 'detached'}@{self.commit}"


def get_repo_state(path):
    """Return branch, short commit and dirty flag, or None outside a git repo."""
    try:
        repo = git.Repo(path, search_parent_directories=True)
    except (git.InvalidGitRepositoryError, git.NoSuchPathError):
        return None

    with repo:
        try:
            branch = repo.active_branch.name
        except TypeError:
            branch = None  # detached HEAD
        try:
            commit = repo.head.commit.hexsha[:7]
        except ValueError:
            commit = None  # no commits yet
        dirty = repo.is_dirty(untracked_files=True)

    logger.debug("Repo state for %s: branch=%s commit=%s dirty=%s", path, branch, commit, dirty)
    return RepoState(branch, commit, dirty)


def ensure_gitignore(path, entries):
    gitignore = Path(path) / ".gitignore"
    text = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    existing = text.splitlines()
    present = {line.strip().rstrip("/") for line in existing}
    missing = [entry for entry in entries if entry.rstrip("/") not in present]
    if not missing:
        return []

    with gitignore.open("a", encoding="utf-8") as f:
        if text and not text.endswith("\n"):
            f.write("\n")
        for entry in missing:
            f.write(f"{entry}\n")
    return missing
