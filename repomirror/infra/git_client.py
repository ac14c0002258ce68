"""
Git client infrastructure for repomirror.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic
"""

import subprocess
from datetime import datetime
from typing import List, Optional, Tuple
import logging

from ..domain import Revision, RevisionMetadata
from ..errors import HistoryError

logger = logging.getLogger(__name__)

# Separates fields in `git log` output. Unlikely to appear in a commit message,
# and parse_metadata tolerates it inside the final (message) field anyway.
LOG_DELIMITER = "---@REPOMIRROR@---"

# Like ISO 8601, but with a space instead of 'T' (git's %ai)
GIT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"


def parse_metadata(repository_name: str, log: str) -> Optional[RevisionMetadata]:
    """
    Parse one entry of delimited `git log` output into RevisionMetadata.

    Expected fields: hash, author, date (%ai), space-separated parents, body.

    Args:
        repository_name: Repository the parents belong to
        log: Raw log output

    Returns:
        RevisionMetadata, or None if the log is empty

    Raises:
        HistoryError: if the output has too few fields or a bad date
    """
    if not log or not log.strip():
        return None

    # Limit the split so a delimiter inside the commit message stays in the message.
    parts = log.split(LOG_DELIMITER, 4)
    if len(parts) < 5:
        raise HistoryError(f"Unexpected git log output: {log!r}")

    commit_id, author, timestamp, parents_text, description = parts
    try:
        date = datetime.strptime(timestamp.strip(), GIT_DATE_FORMAT)
    except ValueError as e:
        raise HistoryError(f"Unparseable commit date {timestamp!r}") from e

    parents = [
        Revision(parent, repository_name)
        for parent in parents_text.split(' ')
        if parent.strip()
    ]
    return RevisionMetadata(
        id=commit_id.strip(),
        author=author,
        date=date,
        description=description.rstrip("\n"),
        parents=parents,
    )


class GitClient:
    """
    Abstraction over git commands.

    Example:
        client = GitClient()
        head = client.rev_parse("/path/to/repo", "HEAD")
        metadata = parse_metadata("internal", client.log_metadata("/path/to/repo", head))
    """

    def __init__(self, timeout: int = 30):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 30)
        """
        self.timeout = timeout

    def _run(self, args: List[str], cwd: str) -> Tuple[Optional[str], int, str]:
        """
        Run a git command.

        Args:
            args: Arguments after 'git'
            cwd: Working directory

        Returns:
            Tuple of (stdout, returncode, stderr)
        """
        cmd = ['git'] + list(args)
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
            return result.stdout, result.returncode, result.stderr

        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {' '.join(cmd)}")
            return None, -1, "timed out"
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(cmd)} - {e}")
            return None, -1, str(e)

    def rev_parse(self, path: str, rev_id: Optional[str] = None) -> str:
        """
        Resolve a revision id or branch name to a full commit hash.

        Args:
            path: Path to git repository
            rev_id: Revision or branch name (default: HEAD)

        Raises:
            HistoryError: if git cannot resolve the revision
        """
        rev_id = rev_id or "HEAD"
        output, code, stderr = self._run(
            ['log', '--max-count=1', '--format=%H', rev_id, '--'], cwd=path
        )
        if code != 0 or not output or not output.strip():
            raise HistoryError(
                f"Cannot resolve revision {rev_id!r} in {path}: {stderr.strip()}"
            )
        return output.strip()

    def log_metadata(self, path: str, rev_id: str) -> str:
        """
        Get the raw, delimited log entry for exactly one revision.

        Raises:
            HistoryError: if git fails
        """
        fmt = LOG_DELIMITER.join(["%H", "%an", "%ai", "%P", "%B"])
        output, code, stderr = self._run(
            ['log', '--max-count=1', f'--format={fmt}', rev_id, '--'], cwd=path
        )
        if code != 0 or output is None:
            raise HistoryError(
                f"Failed to read metadata for {rev_id!r} in {path}: {stderr.strip()}"
            )
        return output
