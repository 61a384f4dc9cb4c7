"""Repository context entities.

The RepositoryContext is what the fetcher hands to the analysis stage: the
repository description document plus a filtered, depth-bounded file tree.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EntryKind(Enum):
    """Kind of a file tree entry."""

    FILE = "file"
    DIR = "dir"

    @classmethod
    def coerce(cls, value: Any) -> "EntryKind":
        """Map an upstream type string onto an entry kind."""
        if value in ("dir", "directory"):
            return cls.DIR
        return cls.FILE


@dataclass(frozen=True)
class RepositoryRef:
    """Owner and repository name parsed from a URL."""

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}"


@dataclass(frozen=True)
class FileEntry:
    """Single entry of a repository file tree.

    Attributes:
        path: Path relative to the repository root (unique within a tree)
        kind: File or directory
        name: Last path segment
        size: Size in bytes when reported upstream
    """

    path: str
    kind: EntryKind
    name: str
    size: int | None = None

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIR

    @property
    def depth(self) -> int:
        """Number of path segments (root children have depth 1)."""
        return len(self.path.split("/"))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "path": self.path,
            "type": self.kind.value,
            "name": self.name,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileEntry":
        path = str(data.get("path", ""))
        size = data.get("size")
        return cls(
            path=path,
            kind=EntryKind.coerce(data.get("type")),
            name=str(data.get("name") or path.rsplit("/", 1)[-1]),
            size=size if isinstance(size, int) and not isinstance(size, bool) else None,
        )


def sort_entries(entries: list[FileEntry] | tuple[FileEntry, ...]) -> list[FileEntry]:
    """Order entries directories first, then by path."""
    return sorted(entries, key=lambda e: (not e.is_dir, e.path))


@dataclass(frozen=True)
class RepositoryContext:
    """Description document and file tree for one repository.

    Produced fresh for every analysis request and never cached on its own.
    """

    description: str
    repo_name: str
    owner: str
    file_tree: tuple[FileEntry, ...] = field(default_factory=tuple)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo_name}"

    def sorted_tree(self) -> list[FileEntry]:
        return sort_entries(self.file_tree)
