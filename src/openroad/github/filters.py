"""File tree exclusion rules.

Entries are excluded when any path segment is a version-control, dependency
or build-output directory, when the file name is a lock file or an OS/editor
artifact, or when the extension marks binary/media content or a minified
bundle. Rules apply at every depth.
"""

from fnmatch import fnmatch

# Directory names excluded wherever they appear in a path
EXCLUDED_DIRS = frozenset({".git", "node_modules", "dist", "build", ".next", "coverage"})

# File names excluded at any depth
EXCLUDED_NAMES = frozenset(
    {
        ".gitignore",
        ".gitattributes",
        ".editorconfig",
        ".prettierignore",
        ".eslintignore",
        ".DS_Store",
        "Thumbs.db",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
    }
)

# Lower-cased suffixes excluded
EXCLUDED_SUFFIXES = (
    ".lock",
    # images
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".ico",
    # fonts
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    # media
    ".mp3",
    ".mp4",
    ".webm",
    # documents and archives
    ".pdf",
    ".zip",
    ".tar",
    ".gz",
    # minified bundles
    ".min.js",
    ".min.css",
)


def is_excluded(path: str, extra_patterns: list[str] | tuple[str, ...] = ()) -> bool:
    """Return True if a tree path must not appear in the file tree.

    Args:
        path: Path relative to the repository root
        extra_patterns: Additional fnmatch patterns matched against the full path

    Returns:
        True if the entry is excluded
    """
    segments = [s for s in path.strip("/").split("/") if s]
    if not segments:
        return False

    if any(segment in EXCLUDED_DIRS for segment in segments):
        return True

    name = segments[-1]
    if name in EXCLUDED_NAMES:
        return True

    if name.lower().endswith(EXCLUDED_SUFFIXES):
        return True

    return any(fnmatch(path, pattern) for pattern in extra_patterns)
