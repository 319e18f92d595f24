from __future__ import annotations

import logging

from .commands import GitClient
from .errors import ExternalCommandError
from .log_config import log_success

logger = logging.getLogger(__name__)


class RepositoryGate:
    """Keeps the working branch checked out and the tree committed between steps."""

    def __init__(self, git: GitClient) -> None:
        self.git = git

    def ensure_branch(self, name: str) -> None:
        """Create and check out ``name``, or check it out when it already exists."""
        logger.info("Creating %s branch", name)
        try:
            self.git.create_branch(name)
        except ExternalCommandError:
            logger.info("Branch already exists... moving forward")
            self.git.checkout(name)

    def commit_if_dirty(self, message: str) -> bool:
        """Stage and commit everything when the tree has changes.

        Status, add and commit always run quiet, whatever the global verbosity.

        Returns:
            True when a commit was created, False for a clean tree.
        """
        logger.info("Checking if repo is empty...")
        if not self.git.status(quiet=True).strip():
            log_success(logger, "Repo is empty, moving forward")
            return False
        logger.debug("Repo is not empty, committing changes")
        self.git.add_all(quiet=True)
        self.git.commit(message, quiet=True)
        log_success(logger, "Changes committed.")
        return True

    def commit_all(self, message: str) -> bool:
        """Stage everything and commit, tolerating a failed commit (usually nothing to commit)."""
        logger.debug("Committing changes...")
        try:
            self.git.add_all()
            self.git.commit(message)
        except ExternalCommandError as exc:
            logger.debug("Nothing committed (exit code %d)", exc.returncode)
            return False
        log_success(logger, "Changes committed successfully.")
        return True
