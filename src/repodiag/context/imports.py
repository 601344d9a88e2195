"""Lightweight import index over sampled source files."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_LANGUAGES = {
    "py": "python",
    "ts": "typescript",
    "tsx": "typescript",
    "js": "javascript",
    "jsx": "javascript",
}


@dataclass(frozen=True)
class ImportRecord:
    """Import-like statements found near the top of one source file."""

    path: str
    language: str
    imports: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "language": self.language, "imports": list(self.imports)}


def language_for(path: str) -> str:
    """Language name for a source path, or an empty string."""
    ext = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    return _LANGUAGES.get(ext, "")


def _is_python_import(line: str) -> bool:
    return line.startswith(("import ", "from "))


def _is_script_import(line: str) -> bool:
    if line.startswith(("import ", "require(")):
        return True
    return line.startswith("const ") and "require(" in line


def extract_imports(path: str, content: str, *, max_lines: int = 100) -> list[str]:
    """Collect import statements from the first ``max_lines`` lines.

    Python files keep ``import``/``from`` lines; JS/TS files keep ``import``
    lines, bare ``require(`` calls and ``const x = require(...)``
    declarations. Other languages yield nothing.
    """
    language = language_for(path)
    if language == "python":
        matcher = _is_python_import
    elif language in ("typescript", "javascript"):
        matcher = _is_script_import
    else:
        return []

    found: list[str] = []
    for raw in content.splitlines()[:max_lines]:
        line = raw.strip()
        if matcher(line):
            found.append(line)
    return found


def build_import_index(
    sources: list[tuple[str, str]],
    *,
    max_lines: int = 100,
) -> list[ImportRecord]:
    """Build import records for ``(path, content)`` pairs.

    Files without any import line are left out of the index.
    """
    records: list[ImportRecord] = []
    for path, content in sources:
        imports = extract_imports(path, content, max_lines=max_lines)
        if imports:
            records.append(
                ImportRecord(path=path, language=language_for(path), imports=tuple(imports))
            )
    return records
