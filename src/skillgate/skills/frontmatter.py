"""SKILL.md file reader and front matter parser.

A definition file is a leading ``---`` delimited block of ``key: value``
pairs followed by free markdown. A flat block (one unindented ``key: value``
per line) is read line by line: each line splits at its first colon and the
rest of the line is the value, so ``:`` and ``#`` inside a value are kept.
Quoted values lose their quotes, ``{...}``/``[...]`` values are decoded as
JSON (or YAML flow collections), and numbers and ``true``/``false`` are
converted. Blocks using nesting, lists or multi-line scalars go to
``yaml.safe_load``. A block written as one JSON object is accepted as well.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from skillgate.skills.config import DEFAULT_MAX_FILE_BYTES, SkillFrontmatter
from skillgate.skills.errors import SkillLoadError, SkillNotFoundError, SkillParseError

_DELIMITER = "---"

# Unindented "key:" at the start of a line.
_FLAT_LINE_PATTERN = re.compile(r"^[A-Za-z0-9_][\w.-]*\s*:")
_NUMBER_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")


def _skill_name_for(path: Path) -> str:
    return path.parent.name or path.stem


def split_frontmatter(content: str, path: Path) -> tuple[str | None, str]:
    """Split SKILL.md content into the front matter block and the body.

    Only the first pair of ``---`` lines is used, so horizontal rules in the
    body are preserved.

    Args:
        content: Raw file content.
        path: File path (for error messages).

    Returns:
        Tuple of (front matter text or ``None`` when the file has none, body).

    Raises:
        SkillParseError: If an opening delimiter has no closing partner.
    """
    text = content.lstrip("\ufeff").replace("\r\n", "\n")
    lines = text.split("\n")

    if not lines or lines[0].strip() != _DELIMITER:
        return None, text

    for index, line in enumerate(lines[1:], start=1):
        if line.strip() == _DELIMITER:
            block = "\n".join(lines[1:index])
            body = "\n".join(lines[index + 1 :])
            return block, body

    raise SkillParseError(
        name=_skill_name_for(path),
        path=path,
        detail="Missing closing '---' front matter delimiter",
    )


def _is_flat(block: str) -> bool:
    lines = [line for line in block.split("\n") if line.strip()]
    return all(line.startswith("#") or _FLAT_LINE_PATTERN.match(line) for line in lines)


def _convert_value(raw: str) -> Any:
    """Convert one flat ``key: value`` value."""
    value = raw.strip()
    if not value:
        return None

    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]

    if (value.startswith("{") and value.endswith("}")) or (
        value.startswith("[") and value.endswith("]")
    ):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass
        # Flow collections such as [read, write] or {a: 1}.
        try:
            return yaml.safe_load(value)
        except yaml.YAMLError:
            return value

    if _NUMBER_PATTERN.match(value):
        return float(value) if "." in value else int(value)

    if value == "true":
        return True
    if value == "false":
        return False

    return value


def _parse_flat(block: str) -> dict[str, Any]:
    """Parse ``key: value`` lines, splitting each at its first colon."""
    data: dict[str, Any] = {}
    for line in block.split("\n"):
        if not line.strip() or line.startswith("#"):
            continue
        key, _, value = line.partition(":")
        data[key.strip()] = _convert_value(value)
    return data


def _load_block(block: str, path: Path) -> dict[str, Any]:
    """Parse the raw front matter block into a mapping.

    Raises:
        SkillParseError: If the block is not valid YAML/JSON or not a mapping.
    """
    skill_name = _skill_name_for(path)
    stripped = block.strip()

    if not stripped:
        return {}

    if stripped.startswith("{") and stripped.endswith("}"):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise SkillParseError(
                name=skill_name,
                path=path,
                detail=(
                    f"Invalid JSON front matter at line {exc.lineno}, "
                    f"column {exc.colno}: {exc.msg}"
                ),
            ) from exc
    elif _is_flat(stripped):
        data = _parse_flat(stripped)
    else:
        try:
            data = yaml.safe_load(stripped)
        except yaml.YAMLError as exc:
            detail = str(exc)
            mark = getattr(exc, "problem_mark", None)
            if mark is not None:
                # +1 for the opening delimiter line, +1 for 1-based numbering.
                detail = (
                    f"YAML syntax error at line {mark.line + 2}, "
                    f"column {mark.column + 1}: {getattr(exc, 'problem', exc)}"
                )
            raise SkillParseError(name=skill_name, path=path, detail=detail) from exc

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise SkillParseError(
            name=skill_name,
            path=path,
            detail="Front matter must be a mapping, got " + type(data).__name__,
        )

    return {str(key): value for key, value in data.items()}


def parse_frontmatter(content: str, path: Path) -> tuple[SkillFrontmatter, str]:
    """Parse SKILL.md content into typed front matter and the trimmed body.

    Args:
        content: Raw file content.
        path: File path (for error messages).

    Returns:
        Tuple of (front matter, body). A file without front matter yields an
        empty ``SkillFrontmatter`` and the whole file as body.

    Raises:
        SkillParseError: On delimiter, syntax or field type errors.
    """
    block, body = split_frontmatter(content, path)
    data = _load_block(block, path) if block is not None else {}

    try:
        frontmatter = SkillFrontmatter.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"'{'.'.join(str(part) for part in err['loc'])}': {err['msg']}" for err in exc.errors()
        )
        raise SkillParseError(
            name=_skill_name_for(path),
            path=path,
            detail=f"Invalid front matter field(s): {problems}",
        ) from exc

    return frontmatter, body.strip()


def read_skill_file(path: Path, max_bytes: int = DEFAULT_MAX_FILE_BYTES) -> str:
    """Read a SKILL.md file with a size cap.

    Args:
        path: Path to the SKILL.md file.
        max_bytes: Files larger than this are refused.

    Returns:
        File content as a string.

    Raises:
        SkillNotFoundError: If the file does not exist.
        SkillLoadError: If the file is too large, unreadable or not UTF-8.
    """
    skill_name = _skill_name_for(path)

    try:
        size = path.stat().st_size
    except FileNotFoundError as exc:
        raise SkillNotFoundError(name=skill_name, path=path) from exc
    except OSError as exc:
        raise SkillLoadError(name=skill_name, path=path, cause=exc) from exc

    if size > max_bytes:
        raise SkillLoadError(
            name=skill_name,
            path=path,
            cause=f"file is {size} bytes, limit is {max_bytes}",
        )

    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise SkillLoadError(name=skill_name, path=path, cause=exc) from exc
    except OSError as exc:
        raise SkillLoadError(name=skill_name, path=path, cause=exc) from exc


def load_frontmatter(
    path: Path,
    max_bytes: int = DEFAULT_MAX_FILE_BYTES,
) -> tuple[SkillFrontmatter, str]:
    """Read and parse a SKILL.md file.

    Raises:
        SkillNotFoundError: If the file does not exist.
        SkillLoadError: On read failures.
        SkillParseError: On parse failures.
    """
    content = read_skill_file(path, max_bytes)
    return parse_frontmatter(content, path)
