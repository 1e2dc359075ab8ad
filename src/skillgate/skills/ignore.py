"""Ignore-file rules for skill discovery.

Reads ``.gitignore``, ``.ignore`` and ``.fdignore`` files as the walk
descends, so a skill tree can exclude scratch folders the same way the
surrounding repository does. Supported syntax: comments, blank lines,
anchored patterns (``/build``), directory-only patterns (``out/``),
negation (``!keep``) and ``**`` segments. Later rules win.
"""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

#: Ignore files consulted in every directory, in the order they are read.
IGNORE_FILE_NAMES: tuple[str, ...] = (".gitignore", ".ignore", ".fdignore")


@dataclass(frozen=True)
class IgnoreRule:
    """One parsed ignore pattern.

    Attributes:
        pattern: Pattern with the ``!``, leading ``/`` and trailing ``/`` removed.
        base_dir: Directory holding the ignore file that declared the rule.
        negated: ``!pattern`` re-includes a previously ignored path.
        dir_only: ``pattern/`` only matches directories.
        anchored: Pattern is matched against the path relative to ``base_dir``
            instead of the bare entry name.
    """

    pattern: str
    base_dir: Path
    negated: bool = False
    dir_only: bool = False
    anchored: bool = False

    @classmethod
    def parse(cls, line: str, base_dir: Path) -> IgnoreRule | None:
        """Parse one ignore-file line, returning ``None`` for blanks and comments."""
        text = line.strip()
        if not text or text.startswith("#"):
            return None

        negated = text.startswith("!")
        if negated:
            text = text[1:]
        if text.startswith("\\"):
            text = text[1:]

        dir_only = text.endswith("/")
        text = text.rstrip("/")

        # A slash anywhere but the end anchors the pattern to base_dir.
        anchored = "/" in text
        text = text.lstrip("/")

        if not text:
            return None

        return cls(
            pattern=text,
            base_dir=base_dir,
            negated=negated,
            dir_only=dir_only,
            anchored=anchored,
        )

    def matches(self, path: Path, is_dir: bool) -> bool:
        """Return ``True`` if the rule applies to ``path``."""
        if self.dir_only and not is_dir:
            return False

        try:
            rel = path.relative_to(self.base_dir)
        except ValueError:
            return False

        if not self.anchored:
            return fnmatch.fnmatchcase(rel.name, self.pattern)

        return _match_segments(self.pattern.split("/"), list(rel.parts))


def _match_segments(pattern_parts: list[str], path_parts: list[str]) -> bool:
    if not pattern_parts:
        return not path_parts

    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        return any(_match_segments(rest, path_parts[i:]) for i in range(len(path_parts) + 1))

    if not path_parts:
        return False

    return fnmatch.fnmatchcase(path_parts[0], head) and _match_segments(rest, path_parts[1:])


def parse_ignore_file(path: Path) -> list[IgnoreRule]:
    """Parse an ignore file into rules anchored at its directory.

    Unreadable files yield no rules.
    """
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Could not read ignore file %s: %s", path, exc)
        return []

    rules: list[IgnoreRule] = []
    for line in lines:
        rule = IgnoreRule.parse(line, path.parent)
        if rule is not None:
            rules.append(rule)
    return rules


class IgnoreRules:
    """Accumulated ignore rules for one point of a directory walk.

    Instances are immutable; ``for_directory()`` returns a new set extended
    with the rules declared in that directory, so sibling subtrees never see
    each other's patterns.
    """

    def __init__(self, rules: list[IgnoreRule] | None = None) -> None:
        self._rules: tuple[IgnoreRule, ...] = tuple(rules or ())

    @property
    def rules(self) -> tuple[IgnoreRule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def for_directory(self, directory: Path) -> IgnoreRules:
        """Return these rules extended with any ignore files in ``directory``."""
        added: list[IgnoreRule] = []
        for file_name in IGNORE_FILE_NAMES:
            candidate = directory / file_name
            if candidate.is_file():
                added.extend(parse_ignore_file(candidate))

        if not added:
            return self
        return IgnoreRules([*self._rules, *added])

    def is_ignored(self, path: Path, is_dir: bool = False) -> bool:
        """Return ``True`` if the last matching rule for ``path`` ignores it."""
        ignored = False
        for rule in self._rules:
            if rule.matches(path, is_dir):
                ignored = not rule.negated
        return ignored
