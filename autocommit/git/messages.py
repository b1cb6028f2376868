"""Commit message generation from a set of changed files."""

import re
from datetime import datetime
from pathlib import PurePosixPath

from autocommit.git.types import FileAnalysis, FileChangeType

DEFAULT_MAX_LENGTH = 72
NO_CHANGES_MESSAGE = "chore: daily auto-commit (no changes detected)"

# Share of categorized files one category needs to name the whole change
DOMINANT_SHARE = 0.7

CATEGORY_ORDER: tuple[FileChangeType, ...] = (
    "code", "config", "documentation", "test", "asset", "dependency",
)

DEFAULT_MESSAGES: dict[str, str] = {
    "code": "feat: update application code",
    "config": "config: update configuration files",
    "documentation": "docs: update documentation",
    "test": "test: update test files",
    "asset": "assets: update static assets",
    "dependency": "deps: update dependencies",
    "mixed": "chore: daily auto-commit with multiple updates",
}

DEPENDENCY_FILES = frozenset({
    "package.json", "package-lock.json", "yarn.lock", "pnpm-lock.yaml",
    "composer.json", "composer.lock", "requirements.txt", "pipfile", "pipfile.lock",
    "poetry.lock", "uv.lock", "gemfile", "gemfile.lock", "cargo.toml", "cargo.lock",
    "go.mod", "go.sum",
})
DEPENDENCY_DIRS = frozenset({"node_modules", "vendor"})

CONFIG_EXTENSIONS = frozenset({".json", ".yaml", ".yml", ".toml", ".ini", ".conf", ".cfg"})
CONFIG_NAME_HINTS = ("config", ".env", "settings", "options")

DOC_EXTENSIONS = frozenset({".md", ".txt", ".rst", ".adoc", ".org"})
DOC_NAME_HINTS = ("readme", "changelog", "license", "contributing", "authors")
DOC_DIRS = frozenset({"docs", "doc", "documentation", "wiki"})

TEST_NAME_HINTS = ("test", "spec")
TEST_DIRS = frozenset({"test", "tests", "__tests__", "spec", "specs"})

ASSET_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp", ".bmp",
    ".css", ".scss", ".sass", ".less", ".styl",
    ".woff", ".woff2", ".ttf", ".eot", ".otf",
    ".mp4", ".webm", ".mp3", ".wav", ".ogg", ".avi", ".mov",
})
ASSET_DIRS = frozenset({"assets", "static", "public", "images", "img", "media", "fonts"})

CODE_EXTENSIONS = frozenset({
    ".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs",
    ".py", ".pyx", ".pyi",
    ".java", ".kt", ".scala",
    ".c", ".cpp", ".cc", ".cxx", ".h", ".hpp",
    ".cs", ".php", ".phtml", ".rb", ".rake", ".go", ".rs", ".swift", ".dart",
    ".sh", ".bash", ".zsh", ".fish", ".sql",
    ".html", ".htm", ".xml", ".vue", ".svelte",
})

_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def categorize_file(file_path: str) -> FileChangeType:
    """Categorize one path. First match wins: dependency, config, docs, test, asset, code."""
    path = PurePosixPath(file_path.lower())
    name = path.name
    extension = path.suffix
    dirs = set(path.parent.parts)

    if name in DEPENDENCY_FILES or dirs & DEPENDENCY_DIRS:
        return "dependency"
    if (
        extension in CONFIG_EXTENSIONS
        or any(hint in name for hint in CONFIG_NAME_HINTS)
        or (name.startswith(".") and "git" not in name)
    ):
        return "config"
    if extension in DOC_EXTENSIONS or any(hint in name for hint in DOC_NAME_HINTS) or dirs & DOC_DIRS:
        return "documentation"
    if any(hint in name for hint in TEST_NAME_HINTS) or dirs & TEST_DIRS:
        return "test"
    if extension in ASSET_EXTENSIONS or dirs & ASSET_DIRS:
        return "asset"
    if extension in CODE_EXTENSIONS:
        return "code"
    return "mixed"


def analyze_files(files: list[str]) -> FileAnalysis:
    if not files:
        return FileAnalysis(change_type="mixed", files=[], summary="no changes")

    counts: dict[str, int] = {category: 0 for category in CATEGORY_ORDER}
    for file_path in files:
        category = categorize_file(file_path)
        if category != "mixed":
            counts[category] += 1

    total = sum(counts.values())
    top_category, top_count = "mixed", 0
    for category in CATEGORY_ORDER:
        if counts[category] > top_count:
            top_category, top_count = category, counts[category]

    change_type = top_category if total and top_count / total > DOMINANT_SHARE else "mixed"
    summary = ", ".join(f"{n} {category}" for category, n in counts.items() if n) or f"{len(files)} files"
    return FileAnalysis(change_type=change_type, files=list(files), summary=summary)


def truncate_message(message: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    if len(message) > max_length:
        return message[: max_length - 3] + "..."
    return message


def apply_message_template(
    template: str,
    analysis: FileAnalysis,
    now: datetime | None = None,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    """Substitute known placeholders; unknown ones are left verbatim."""
    now = now or datetime.now().astimezone()
    count = str(len(analysis.files))
    values = {
        "type": analysis.change_type,
        "count": count,
        "files": count,
        "summary": analysis.summary,
        "date": now.strftime("%Y-%m-%d"),
        "time": now.strftime("%H:%M:%S"),
        "timestamp": now.isoformat(timespec="seconds"),
        "day": _WEEKDAYS[now.weekday()],
        "month": _MONTHS[now.month - 1],
        "year": str(now.year),
    }
    message = _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)
    return truncate_message(message, max_length)


def generate_commit_message(
    files: list[str],
    template: str | None = None,
    now: datetime | None = None,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    if not files:
        return NO_CHANGES_MESSAGE

    analysis = analyze_files(files)
    if template:
        return apply_message_template(template, analysis, now=now, max_length=max_length)
    return truncate_message(f"{DEFAULT_MESSAGES[analysis.change_type]} ({len(files)} files)", max_length)
