"""
Text file detection and type/glob filtering.
"""

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional

from agent_workspace.filesystem.ignore import glob_to_regex

logger = logging.getLogger(__name__)

TYPE_MAP: dict[str, list[str]] = {
    "ts": [".ts", ".tsx", ".mts", ".cts"],
    "js": [".js", ".jsx", ".mjs", ".cjs"],
    "py": [".py", ".pyw", ".pyi"],
    "rs": [".rs"],
    "go": [".go"],
    "java": [".java"],
    "c": [".c", ".h"],
    "cpp": [".cpp", ".cc", ".cxx", ".hpp", ".hh", ".hxx"],
    "cs": [".cs"],
    "rb": [".rb"],
    "php": [".php"],
    "swift": [".swift"],
    "kt": [".kt", ".kts"],
    "scala": [".scala"],
    "r": [".r", ".R"],
    "lua": [".lua"],
    "perl": [".pl", ".pm"],
    "sh": [".sh", ".bash", ".zsh"],
    "md": [".md", ".markdown", ".mdx"],
    "html": [".html", ".htm"],
    "css": [".css"],
    "scss": [".scss", ".sass"],
    "less": [".less"],
    "json": [".json", ".jsonc"],
    "yaml": [".yaml", ".yml"],
    "xml": [".xml"],
    "toml": [".toml"],
    "ini": [".ini", ".cfg"],
    "config": [".config", ".conf", ".cfg", ".ini", ".env"],
    "docker": ["Dockerfile", ".dockerignore", "docker-compose.yml", "docker-compose.yaml"],
    "doc": [".md", ".markdown", ".txt", ".rst", ".adoc"],
    "text": [".txt", ".text"],
    "test": [".test.ts", ".test.js", ".spec.ts", ".spec.js", "_test.go", "_test.py"],
}

TEXT_EXTENSIONS = {
    ".md", ".markdown", ".mdx", ".txt", ".text", ".rst", ".adoc",
    ".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs",
    ".py", ".pyw", ".pyi", ".rs", ".go", ".java",
    ".c", ".h", ".cpp", ".cc", ".cxx", ".hpp", ".hh", ".hxx",
    ".cs", ".rb", ".php", ".swift", ".kt", ".kts", ".scala",
    ".r", ".lua", ".pl", ".pm", ".sh", ".bash", ".zsh",
    ".html", ".htm", ".css", ".scss", ".sass", ".less",
    ".json", ".jsonc", ".yaml", ".yml", ".xml", ".toml", ".ini", ".cfg", ".env",
    ".gitignore", ".ignore", ".editorconfig", ".sql", ".graphql", ".gql",
    ".csv", ".tsv", ".log",
}

BINARY_EXTENSIONS = {
    ".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp", ".ico", ".pdf",
    ".zip", ".gz", ".tar", ".tgz", ".bz2", ".xz", ".7z", ".rar",
    ".exe", ".dll", ".so", ".dylib", ".bin", ".o", ".a", ".class", ".jar",
    ".pyc", ".pyo", ".whl", ".woff", ".woff2", ".ttf", ".otf",
    ".mp3", ".mp4", ".wav", ".ogg", ".mov", ".avi", ".sqlite", ".db",
}

TEXT_FILENAMES = {
    "Makefile", "Dockerfile", "Jenkinsfile", "Vagrantfile",
    "LICENSE", "README", "CHANGELOG",
}

SNIFF_BYTES = 8192


def _looks_like_text(path: Path) -> bool:
    """Inspect the first bytes of a file: NUL bytes or mostly control chars mean binary."""
    try:
        with open(path, "rb") as f:
            sample = f.read(SNIFF_BYTES)
    except OSError as e:
        logger.debug(f"Cannot sniff {path}: {e}")
        return False

    if not sample:
        return True
    if b"\x00" in sample:
        return False

    try:
        text = sample.decode("utf-8")
    except UnicodeDecodeError as e:
        # A multi-byte sequence cut at the sample boundary is still text
        if e.start < len(sample) - 4:
            return False
        text = sample[: e.start].decode("utf-8")

    if not text:
        return True
    control = sum(1 for c in text if ord(c) < 32 and c not in "\n\r\t\f")
    return control / len(text) <= 0.30


def is_text_file(path: Path) -> bool:
    """
    Decide whether a file holds text.

    Known extensions and well-known file names decide directly; anything else
    falls back to inspecting the file content.
    """
    name = path.name
    suffix = path.suffix.lower()

    if suffix in TEXT_EXTENSIONS or name in TEXT_FILENAMES:
        return True
    if suffix in BINARY_EXTENSIONS:
        return False
    if name.startswith(".") and not suffix:
        return True
    return _looks_like_text(path)


def get_extensions_for_type(type_name: str) -> Optional[list[str]]:
    """Get the extensions registered for a type alias (e.g. ``py``)."""
    return TYPE_MAP.get(type_name.lower())


def matches_type(filename: str, types: Iterable[str]) -> bool:
    """Check a file name against type aliases or raw extensions."""
    for type_name in types:
        extensions = get_extensions_for_type(type_name)
        if extensions:
            if any(filename.endswith(ext) for ext in extensions):
                return True
        elif filename.endswith(type_name) or filename.endswith(f".{type_name}"):
            return True
    return False


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern:
    return re.compile(f"^{glob_to_regex(pattern)}$")


def matches_glob(path: str, pattern: str) -> bool:
    """Match a whole relative path against a glob."""
    return bool(_compile_glob(pattern).match(path))


def should_exclude(path: str, exclude_patterns: Iterable[str]) -> bool:
    """Check a relative path against caller-supplied exclusion globs."""
    return any(matches_glob(path, pattern) for pattern in exclude_patterns)


def read_text_file(path: Path) -> str:
    """Read UTF-8 text exactly as stored (line endings untouched)."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_text_file(path: Path, content: str) -> None:
    """Write UTF-8 text exactly as given (line endings untouched)."""
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
