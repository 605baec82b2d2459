from typing import Final


PRIMARY_FILENAME: Final[str] = "SKILL.md"
METADATA_FILENAME: Final[str] = ".metadata.json"

STAGING_MARKER: Final[str] = ".staging-"
RETIRED_MARKER: Final[str] = ".retired-"

MAX_SKILL_NAME_LENGTH: Final[int] = 50
DEFAULT_SKILL_NAME: Final[str] = "skill"

MARKDOWN_SUFFIXES: Final[tuple[str, ...]] = (".md", ".markdown")
ARCHIVE_SUFFIX: Final[str] = ".zip"
ZIP_MAGIC: Final[bytes] = b"PK\x03\x04"

ARCHIVE_IGNORED_PARTS: Final[tuple[str, ...]] = (
    "__MACOSX",
    ".DS_Store",
)

GITHUB_API_URL: Final[str] = "https://api.github.com"
GITHUB_RAW_URL: Final[str] = "https://raw.githubusercontent.com"

SEARCH_API_URL: Final[str] = "https://skills.sh/api/search"
USER_AGENT: Final[str] = "oh-my-skills/0.1"

DEFAULT_HTTP_TIMEOUT: Final[float] = 20.0
DEFAULT_RETRY_BACKOFF: Final[float] = 0.5
MAX_FETCH_ATTEMPTS: Final[int] = 2
