"""Skill discovery from configured directories.

Walks each configured root recursively for directories holding a SKILL.md
file, loads them into ``Skill`` objects, and merges the per-root results by
name in priority order.

Priority is the order of the root list, lowest first:
1. Builtin: skills shipped with the host application
2. Global: ``~/.skillgate/skills/`` and any extra directories
3. Workspace: ``<workspace>/skills/``

A later root overrides an earlier one on a name clash and a warning
diagnostic naming both paths is emitted. Per-file failures never abort a
walk; they come back as diagnostics scoped to the offending path.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from skillgate.skills.config import (
    DEFAULT_MAX_FILE_BYTES,
    SKILL_FILE_NAME,
    DiscoveryResult,
    Skill,
    SkillConfig,
    SkillRoot,
    SkillSource,
    ValidationDiagnostic,
)
from skillgate.skills.errors import SkillError
from skillgate.skills.frontmatter import load_frontmatter
from skillgate.skills.ignore import IgnoreRules
from skillgate.skills.validator import validate_description

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_NAMES: frozenset[str] = frozenset({"node_modules", "__pycache__"})


def parse_skill_file(
    path: Path,
    source: SkillSource,
    max_bytes: int = DEFAULT_MAX_FILE_BYTES,
) -> Skill:
    """Read a SKILL.md file and build a ``Skill`` from it.

    The name comes from front matter and falls back to the directory name.
    No required-field checks are made here.

    Args:
        path: Path to the SKILL.md file.
        source: Source tag of the root the file was found under.
        max_bytes: Size cap for the read.

    Returns:
        The parsed ``Skill``.

    Raises:
        SkillNotFoundError: If the file does not exist.
        SkillLoadError: If the file cannot be read.
        SkillParseError: If the front matter is malformed.
    """
    frontmatter, body = load_frontmatter(path, max_bytes)
    base_dir = path.parent

    name = (frontmatter.name or "").strip() or base_dir.name
    description = (frontmatter.description or "").strip()

    return Skill(
        name=name,
        description=description,
        file_path=path,
        base_dir=base_dir,
        source=source,
        content=body,
        frontmatter=frontmatter,
        disable_model_invocation=frontmatter.disable_model_invocation,
    )


def load_skill_from_file(
    path: Path,
    source: SkillSource,
    max_bytes: int = DEFAULT_MAX_FILE_BYTES,
) -> tuple[Skill | None, list[ValidationDiagnostic]]:
    """Load one skill, converting every failure into diagnostics.

    Returns:
        Tuple of (skill or ``None`` when rejected, diagnostics for ``path``).
    """
    try:
        skill = parse_skill_file(path, source, max_bytes)
    except SkillError as exc:
        logger.warning("Failed to load skill from %s: %s", path, exc)
        return None, [ValidationDiagnostic.error(exc.message, path)]

    if not skill.name:
        return None, [
            ValidationDiagnostic.error(
                "Could not determine skill name (no name in front matter and no directory name)",
                path,
            )
        ]

    description_check = validate_description(skill.description, path)
    if not description_check.valid:
        logger.debug("Rejecting skill %s at %s: missing description", skill.name, path)
        return None, [ValidationDiagnostic.error("Missing required field: description", path)]

    return skill, []


def _canonical(path: Path) -> Path:
    try:
        return path.resolve()
    except (OSError, RuntimeError):
        return path.absolute()


class _Walker:
    """State for one recursive walk of a single root."""

    def __init__(
        self,
        root: Path,
        source: SkillSource,
        ignore_names: frozenset[str],
        respect_ignore_files: bool,
        max_file_bytes: int,
    ) -> None:
        self.root = root
        self.source = source
        self.ignore_names = ignore_names
        self.respect_ignore_files = respect_ignore_files
        self.max_file_bytes = max_file_bytes
        self.result = DiscoveryResult()
        self._visited_dirs: set[Path] = set()
        self._accepted_files: set[Path] = set()

    def _should_skip(self, entry: Path) -> bool:
        return entry.name.startswith(".") or entry.name in self.ignore_names

    def _load(self, skill_md: Path) -> None:
        skill, diagnostics = load_skill_from_file(skill_md, self.source, self.max_file_bytes)
        self.result.diagnostics.extend(diagnostics)
        if skill is None:
            return

        canonical = _canonical(skill_md)
        if canonical in self._accepted_files:
            logger.debug("Skipping %s: already discovered via %s", skill_md, canonical)
            return

        self._accepted_files.add(canonical)
        self.result.skills.append(skill)
        logger.debug("Discovered skill '%s' at %s", skill.name, skill_md)

    def walk(self, directory: Path, rules: IgnoreRules, is_root: bool = False) -> None:
        canonical_dir = _canonical(directory)
        if canonical_dir in self._visited_dirs:
            return
        self._visited_dirs.add(canonical_dir)

        if self.respect_ignore_files:
            rules = rules.for_directory(directory)

        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            logger.warning("Cannot read skills directory %s: %s", directory, exc)
            self.result.diagnostics.append(
                ValidationDiagnostic.warning(f"Failed to read directory: {exc}", directory)
            )
            return

        skill_md = directory / SKILL_FILE_NAME
        if any(entry.name == SKILL_FILE_NAME for entry in entries):
            if is_root:
                self.result.diagnostics.append(
                    ValidationDiagnostic.warning(
                        f"{SKILL_FILE_NAME} directly in a skills root is not a skill; "
                        "move it into its own subdirectory",
                        skill_md,
                    )
                )
            else:
                self._load(skill_md)

        for entry in entries:
            if self._should_skip(entry):
                continue
            try:
                # Follows symlinks; broken links report False.
                is_dir = entry.is_dir()
            except OSError:
                continue
            if not is_dir:
                continue
            if rules.is_ignored(entry, is_dir=True):
                logger.debug("Ignoring %s (matched ignore file)", entry)
                continue
            self.walk(entry, rules)


def discover_skills(
    directory: Path,
    source: SkillSource,
    *,
    ignore_names: Iterable[str] | None = None,
    respect_ignore_files: bool = True,
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
) -> DiscoveryResult:
    """Discover skills under a single root directory.

    Every subdirectory containing SKILL.md is one skill, and the walk keeps
    descending into it so nested skills are found too. Dot-named entries and
    ``ignore_names`` are skipped. Symlinked directories are followed; a skill
    file whose canonical path was already accepted is skipped silently.

    Args:
        directory: Root directory to walk.
        source: Source tag assigned to every skill found.
        ignore_names: Directory names never descended into.
        respect_ignore_files: Honour ``.gitignore``/``.ignore``/``.fdignore``.
        max_file_bytes: Size cap for each SKILL.md read.

    Returns:
        ``DiscoveryResult`` with the skills found and every diagnostic.
    """
    names = frozenset(ignore_names) if ignore_names is not None else DEFAULT_IGNORE_NAMES
    walker = _Walker(directory, source, names, respect_ignore_files, max_file_bytes)

    if not directory.exists():
        logger.debug("Skills directory does not exist, skipping: %s", directory)
        return walker.result

    try:
        if not directory.is_dir():
            logger.warning("Skills path is not a directory, skipping: %s", directory)
            walker.result.diagnostics.append(
                ValidationDiagnostic.warning("Skills path is not a directory", directory)
            )
            return walker.result
    except OSError as exc:
        walker.result.diagnostics.append(
            ValidationDiagnostic.warning(f"Cannot access skills directory: {exc}", directory)
        )
        return walker.result

    walker.walk(directory, IgnoreRules(), is_root=True)
    logger.debug(
        "Discovered %d skill(s) in %s (%s), %d diagnostic(s)",
        len(walker.result.skills),
        directory,
        source.value,
        len(walker.result.diagnostics),
    )
    return walker.result


def merge_discovery_results(results: Iterable[DiscoveryResult]) -> DiscoveryResult:
    """Fold per-root results, lowest priority first, into one name-keyed set.

    A later skill with an already-seen name replaces the earlier one and a
    warning naming both paths is added. The same canonical SKILL.md reached
    from two roots is not a collision; the first occurrence is kept and
    later ones are skipped silently, whatever was merged in between.
    """
    by_name: dict[str, Skill] = {}
    accepted: set[Path] = set()
    diagnostics: list[ValidationDiagnostic] = []

    for result in results:
        for skill in result.skills:
            canonical = _canonical(skill.file_path)
            if canonical in accepted:
                continue
            accepted.add(canonical)
            existing = by_name.get(skill.name)
            if existing is not None:
                message = (
                    f"Skill '{skill.name}' collision: {skill.file_path} ({skill.source.value}) "
                    f"overrides {existing.file_path} ({existing.source.value})"
                )
                logger.info(message)
                diagnostics.append(ValidationDiagnostic.warning(message, skill.file_path))
            by_name[skill.name] = skill
        diagnostics.extend(result.diagnostics)

    return DiscoveryResult(skills=list(by_name.values()), diagnostics=diagnostics)


def discover_from_multiple(
    roots: Sequence[SkillRoot | tuple[Path, SkillSource]],
    *,
    ignore_names: Iterable[str] | None = None,
    respect_ignore_files: bool = True,
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
    max_workers: int = 1,
) -> DiscoveryResult:
    """Discover and merge skills across an ordered list of roots.

    Roots may be walked concurrently when ``max_workers`` is greater than
    one; the merge always runs after every walk has finished, in the order
    of ``roots``.

    Args:
        roots: ``(directory, source)`` pairs, lowest priority first.
        ignore_names: Directory names never descended into.
        respect_ignore_files: Honour ``.gitignore``/``.ignore``/``.fdignore``.
        max_file_bytes: Size cap for each SKILL.md read.
        max_workers: Threads used to walk roots.

    Returns:
        Merged ``DiscoveryResult``.
    """
    pairs = [root if isinstance(root, SkillRoot) else SkillRoot(*root) for root in roots]
    names = frozenset(ignore_names) if ignore_names is not None else None

    def walk(root: SkillRoot) -> DiscoveryResult:
        return discover_skills(
            root.dir,
            root.source,
            ignore_names=names,
            respect_ignore_files=respect_ignore_files,
            max_file_bytes=max_file_bytes,
        )

    if max_workers > 1 and len(pairs) > 1:
        with ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="skill-discovery"
        ) as pool:
            # map() yields in submission order regardless of completion order.
            results = list(pool.map(walk, pairs))
    else:
        results = [walk(root) for root in pairs]

    return merge_discovery_results(results)


def discover_from_config(config: SkillConfig) -> DiscoveryResult:
    """Discover skills from every root configured in ``config``."""
    return discover_from_multiple(
        config.roots(),
        ignore_names=config.ignore_names,
        respect_ignore_files=config.respect_ignore_files,
        max_file_bytes=config.max_file_bytes,
        max_workers=config.max_workers,
    )
