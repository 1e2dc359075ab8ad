"""Prompt and listing formatters for skill sets.

``format_skills_for_prompt`` renders the ``<available_skills>`` block handed
to the reasoning model as system context. Callers pass the already filtered
(valid and eligible) skill set; skills marked ``disable-model-invocation``
are dropped here.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from jinja2 import Environment, StrictUndefined

from skillgate.skills.config import Skill

_DEFAULT_EMOJI = "📄"

_XML_ESCAPES: tuple[tuple[str, str], ...] = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)

_PROMPT_TEMPLATE = """\
The following skills provide specialized instructions for specific tasks.
Use the read tool to load a skill's file when the task matches its description.
When a skill file references a relative path, resolve it against the skill \
directory (parent of SKILL.md) and use that absolute path in tool commands.

<available_skills>
{% for skill in skills %}
  <skill>
    <name>{{ skill.name | xml }}</name>
    <description>{{ skill.description | xml }}</description>
    <location>{{ skill.file_path | xml }}</location>
{% if skill.frontmatter.license %}
    <license>{{ skill.frontmatter.license | xml }}</license>
{% endif %}
{% if skill.frontmatter.compatibility %}
    <compatibility>{{ skill.frontmatter.compatibility | xml }}</compatibility>
{% endif %}
  </skill>
{% endfor %}
</available_skills>"""


def escape_xml(value: Any) -> str:
    """Escape ``& < > " '`` for inclusion in XML text."""
    text = str(value)
    for char, entity in _XML_ESCAPES:
        text = text.replace(char, entity)
    return text


def _build_environment() -> Environment:
    env = Environment(
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )
    env.filters["xml"] = escape_xml
    return env


_ENVIRONMENT = _build_environment()
_PROMPT = _ENVIRONMENT.from_string(_PROMPT_TEMPLATE)


def format_skills_for_prompt(skills: Sequence[Skill]) -> str:
    """Render skills as an ``<available_skills>`` block for the system prompt.

    Args:
        skills: Skills to expose, normally the valid and eligible set.

    Returns:
        The rendered block, or an empty string when no skill is visible.
    """
    visible = [skill for skill in skills if not skill.disable_model_invocation]
    if not visible:
        return ""
    return _PROMPT.render(skills=visible)


def format_skills_list(skills: Sequence[Skill]) -> str:
    """Format skills as a short bulleted list."""
    if not skills:
        return "No skills available."

    lines = ["Available skills:"]
    for skill in skills:
        emoji = skill.emoji or _DEFAULT_EMOJI
        status = " (manual only)" if skill.disable_model_invocation else ""
        lines.append(f"  {emoji} **{skill.name}** - {skill.description}{status}")
    return "\n".join(lines)


def format_skill_detail(skill: Skill) -> str:
    """Format one skill's details as markdown."""
    lines = [
        f"# {skill.emoji or _DEFAULT_EMOJI} {skill.name}",
        "",
        f"**Description:** {skill.description}",
        f"**Source:** {skill.source.value}",
        f"**Path:** `{skill.file_path}`",
    ]

    details: list[str] = []
    fm = skill.frontmatter
    category = fm.category or skill.metadata.get("category")
    if category:
        details.append(f"- Category: {category}")
    invoke_as = fm.invoke_as or skill.metadata.get("invoke-as") or skill.metadata.get("invoke_as")
    if invoke_as:
        details.append(f"- Invoke as: {invoke_as}")
    if fm.license:
        details.append(f"- License: {fm.license}")
    if skill.homepage:
        details.append(f"- Homepage: {skill.homepage}")

    requires = skill.requires
    if isinstance(requires, dict):
        for key, label in (
            ("bins", "Requires binaries"),
            ("anyBins", "Requires any of"),
            ("env", "Requires env vars"),
        ):
            values = requires.get(key)
            if isinstance(values, list) and values:
                details.append(f"- {label}: {', '.join(str(v) for v in values)}")

    if details:
        lines.append("")
        lines.append("**Metadata:**")
        lines.extend(details)

    if skill.disable_model_invocation:
        lines.append("")
        lines.append("*This skill is disabled for automatic model invocation.*")

    return "\n".join(lines)


def format_skills_summary(skills: Sequence[Skill]) -> str:
    """One-line summary for logs: ``emoji name (source), ...``."""
    return ", ".join(
        f"{skill.emoji or _DEFAULT_EMOJI} {skill.name} ({skill.source.value})" for skill in skills
    )
