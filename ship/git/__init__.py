"""Git operations on the source repository.

Usage:
    from ship.git import Repository

    repo = Repository(Path("/path/to/repo"))
    match repo.tags():
        case Ok(tags):
            print(", ".join(tags))
"""

from ship.git.repository import (
    GitError,
    Repository,
    StatusEntry,
)

__all__ = [
    "GitError",
    "Repository",
    "StatusEntry",
]
