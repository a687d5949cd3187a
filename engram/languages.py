"""Language detection by file extension and discovery of parseable files."""

from __future__ import annotations

import os
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path, PurePath

__all__ = ["SUPPORTED_EXTENSIONS", "SKIPPED_DIRECTORIES", "detect_language", "discover_files"]

SUPPORTED_EXTENSIONS: dict[str, str] = {
    "rs": "rust",
    "py": "python",
    "ts": "typescript",
    "tsx": "typescript",
    "js": "javascript",
    "jsx": "javascript",
    "go": "go",
    "java": "java",
    "c": "c",
    "h": "c",
    "cpp": "cpp",
    "cc": "cpp",
    "cxx": "cpp",
    "hpp": "cpp",
    "hh": "cpp",
    "rb": "ruby",
    "md": "markdown",
    "markdown": "markdown",
}

SKIPPED_DIRECTORIES = frozenset(
    {
        "node_modules",
        "target",
        ".git",
        ".engram",
        "__pycache__",
        ".venv",
        "vendor",
        "dist",
        "build",
    }
)


def detect_language(path: str | os.PathLike[str]) -> str | None:
    """Return the language name for a path's extension, or None if unsupported."""
    suffix = PurePath(path).suffix
    if not suffix:
        return None
    return SUPPORTED_EXTENSIONS.get(suffix[1:])


@dataclass(frozen=True)
class _Rule:
    regex: re.Pattern[str]
    negate: bool
    dir_only: bool
    anchored: bool
    base: Path

    def matches(self, path: Path, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        try:
            relative = path.relative_to(self.base)
        except ValueError:
            return False
        target = relative.as_posix() if self.anchored else path.name
        return self.regex.fullmatch(target) is not None


def _glob_to_regex(pattern: str) -> str:
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif ch == "*":
            out.append("[^/]*")
            i += 1
        elif ch == "?":
            out.append("[^/]")
            i += 1
        elif ch == "[":
            end = pattern.find("]", i + 2)
            if end == -1:
                out.append(re.escape(ch))
                i += 1
                continue
            body = pattern[i + 1 : end]
            if body.startswith("!"):
                body = "^" + body[1:]
            out.append("[" + body.replace("\\", "\\\\") + "]")
            i = end + 1
        elif ch == "\\" and i + 1 < n:
            out.append(re.escape(pattern[i + 1]))
            i += 2
        else:
            out.append(re.escape(ch))
            i += 1
    return "".join(out)


def _parse_rules(lines: list[str], base: Path) -> list[_Rule]:
    rules: list[_Rule] = []
    for raw in lines:
        line = raw.rstrip("\n").rstrip()
        if not line or line.startswith("#"):
            continue
        negate = False
        if line.startswith("!"):
            negate = True
            line = line[1:]
        elif line.startswith(("\\!", "\\#")):
            line = line[1:]
        dir_only = line.endswith("/")
        line = line.rstrip("/")
        if not line:
            continue
        anchored = "/" in line
        line = line.lstrip("/")
        if not line:
            continue
        rules.append(
            _Rule(
                regex=re.compile(_glob_to_regex(line)),
                negate=negate,
                dir_only=dir_only,
                anchored=anchored,
                base=base,
            )
        )
    return rules


def _read_rules(file: Path, base: Path) -> list[_Rule]:
    try:
        text = file.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return []
    return _parse_rules(text.splitlines(), base)


def _find_git_root(start: Path) -> Path | None:
    for directory in (start, *start.parents):
        if (directory / ".git").exists():
            return directory
    return None


def _global_ignore_file() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "git" / "ignore"


def _is_ignored(path: Path, is_dir: bool, rules: list[_Rule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(path, is_dir):
            ignored = not rule.negate
    return ignored


def _directory_rules(directory: Path, in_repo: bool) -> list[_Rule]:
    rules: list[_Rule] = []
    if in_repo:
        rules.extend(_read_rules(directory / ".gitignore", directory))
    rules.extend(_read_rules(directory / ".ignore", directory))
    return rules


def _initial_rules(root: Path, git_root: Path | None) -> list[_Rule]:
    rules: list[_Rule] = []
    if git_root is not None:
        rules.extend(_read_rules(_global_ignore_file(), git_root))
        rules.extend(_read_rules(git_root / ".git" / "info" / "exclude", git_root))
    for ancestor in reversed(root.parents):
        in_repo = git_root is not None and (ancestor == git_root or git_root in ancestor.parents)
        rules.extend(_directory_rules(ancestor, in_repo))
    return rules


def _walk(directory: Path, rules: list[_Rule], in_repo: bool) -> Iterator[Path]:
    local = rules + _directory_rules(directory, in_repo)
    try:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError:
        return
    for entry in entries:
        if entry.name.startswith(".") or entry.name in SKIPPED_DIRECTORIES:
            continue
        path = Path(entry.path)
        is_dir = entry.is_dir(follow_symlinks=False)
        if _is_ignored(path, is_dir, local):
            continue
        if is_dir:
            yield from _walk(path, local, in_repo)
        elif entry.is_file(follow_symlinks=False) and detect_language(entry.name) is not None:
            yield path


def discover_files(root: str | os.PathLike[str]) -> list[Path]:
    """List parseable files under ``root``, skipping hidden entries, build and vendor
    directories, and anything excluded by ``.ignore`` or (inside a git repository)
    ``.gitignore`` rules. Paths are returned under ``root`` in walk order."""
    root = Path(root)
    if not root.exists():
        raise FileNotFoundError(f"no such directory: {root}")
    if root.is_file():
        return [root] if detect_language(root) is not None else []

    absolute_root = root.resolve()
    git_root = _find_git_root(absolute_root)
    rules = _initial_rules(absolute_root, git_root)
    return [
        root / found.relative_to(absolute_root)
        for found in _walk(absolute_root, rules, git_root is not None)
    ]