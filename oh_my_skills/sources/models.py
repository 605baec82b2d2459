from dataclasses import dataclass, field
from enum import Enum


class SourceKind(str, Enum):
    ARCHIVE = "archive"
    GITHUB_DIRECTORY = "github-directory"
    GITHUB_REPOSITORY = "github-repository"
    SINGLE_FILE = "single-file"


@dataclass(frozen=True)
class BundleFile:
    path: str
    content: bytes


@dataclass(frozen=True)
class Bundle:
    files: tuple[BundleFile, ...]
    origin: str
    kind: SourceKind
    name_hint: str = ""

    def paths(self) -> list[str]:
        return [item.path for item in self.files]


@dataclass(frozen=True)
class SourceDescriptor:
    """A classified install source, ready to be fetched."""

    raw: str
    kind: SourceKind
    location: str
    is_remote: bool
    owner: str | None = None
    repo: str | None = None
    ref: str | None = None
    subpath: str = ""
    content: bytes | None = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class SearchSkill:
    name: str
    slug: str
    source: str
    installs: int = 0

    @property
    def origin(self) -> str:
        return self.source or self.slug

    @property
    def descriptor(self) -> str:
        return f"github:{self.origin}"

    def as_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "slug": self.slug,
            "source": self.source,
            "installs": self.installs,
        }
