"""Tests for SKILL.md reading and front matter parsing."""

from __future__ import annotations

from pathlib import Path

import pytest

from skillgate.skills.config import SkillSource
from skillgate.skills.discovery import discover_skills
from skillgate.skills.errors import SkillLoadError, SkillNotFoundError, SkillParseError
from skillgate.skills.frontmatter import (
    load_frontmatter,
    parse_frontmatter,
    read_skill_file,
    split_frontmatter,
)

_PATH = Path("/skills/weather/SKILL.md")


class TestSplitFrontmatter:
    """Tests for split_frontmatter function."""

    def test_no_frontmatter(self) -> None:
        """Content without a leading delimiter has no front matter."""
        block, body = split_frontmatter("# Just markdown\n", _PATH)

        assert block is None
        assert body == "# Just markdown\n"

    def test_block_and_body(self) -> None:
        """The block between the delimiters is separated from the body."""
        block, body = split_frontmatter("---\nname: weather\n---\nBody text", _PATH)

        assert block == "name: weather"
        assert body == "Body text"

    def test_horizontal_rule_in_body_preserved(self) -> None:
        """Only the first closing delimiter ends the block."""
        content = "---\nname: x\n---\nIntro\n---\nMore"
        _, body = split_frontmatter(content, _PATH)

        assert body == "Intro\n---\nMore"

    def test_missing_closing_delimiter(self) -> None:
        """An unterminated block raises SkillParseError."""
        with pytest.raises(SkillParseError, match="closing"):
            split_frontmatter("---\nname: x\nno end here", _PATH)

    def test_crlf_and_bom(self) -> None:
        """Windows line endings and a byte order mark are tolerated."""
        block, body = split_frontmatter("\ufeff---\r\nname: x\r\n---\r\nBody", _PATH)

        assert block == "name: x"
        assert body == "Body"


class TestParseFrontmatter:
    """Tests for parse_frontmatter function."""

    def test_required_fields(self) -> None:
        """Name and description are parsed and the body is trimmed."""
        content = "---\nname: weather\ndescription: Get the weather\n---\n\n# Weather\n\n"
        fm, body = parse_frontmatter(content, _PATH)

        assert fm.name == "weather"
        assert fm.description == "Get the weather"
        assert body == "# Weather"

    @pytest.mark.parametrize(
        "value",
        [
            "Get weather. Use when: the user asks about rain",
            "Tracks issue #42 weather alerts",
            "@mention the on-call engineer",
            "[beta] tool for forecasts",
            "yes",
            "https://wttr.in/:help",
        ],
    )
    def test_plain_value_kept_whole(self, value: str) -> None:
        """Everything after the first colon is the value, verbatim."""
        content = f"---\nname: weather\ndescription: {value}\n---\nBody"
        fm, _ = parse_frontmatter(content, _PATH)

        assert fm.description == value

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ('"quoted: value"', "quoted: value"),
            ("'single # quoted'", "single # quoted"),
            ("true", True),
            ("false", False),
            ("42", 42),
            ("-1.5", -1.5),
            ('["a", "b"]', ["a", "b"]),
            ("[read, write]", ["read", "write"]),
            ("", None),
        ],
    )
    def test_flat_value_conversion(self, raw: str, expected: object) -> None:
        """Quotes, booleans, numbers and collections are converted."""
        content = f"---\nname: weather\nx-value: {raw}\n---\n"
        fm, _ = parse_frontmatter(content, _PATH)

        assert fm.extra == {"x-value": expected}

    def test_comment_lines_skipped(self) -> None:
        """Whole-line comments are ignored in a flat block."""
        content = "---\n# owner: ops\nname: weather\ndescription: Weather # not a comment\n---\n"
        fm, _ = parse_frontmatter(content, _PATH)

        assert fm.description == "Weather # not a comment"
        assert fm.extra == {}

    def test_nested_yaml_block(self) -> None:
        """Indented mappings and block scalars are read as YAML."""
        content = (
            "---\n"
            "name: weather\n"
            "description: >\n"
            "  Folded\n"
            "  text\n"
            "metadata:\n"
            "  emoji: x\n"
            "---\n"
        )
        fm, _ = parse_frontmatter(content, _PATH)

        assert fm.description == "Folded text\n"
        assert fm.metadata == {"emoji": "x"}

    def test_discovered_with_colon_in_description(self, skills_root: Path, make_skill) -> None:
        """A description containing ': ' no longer rejects the skill."""
        make_skill(skills_root, "weather", description="Get weather. Use when: it rains")

        result = discover_skills(skills_root, SkillSource.WORKSPACE)

        assert [s.description for s in result.skills] == ["Get weather. Use when: it rains"]
        assert result.errors == []

    def test_json_literal_values(self) -> None:
        """JSON object values are parsed into structured metadata."""
        content = (
            "---\n"
            "name: weather\n"
            "description: Weather\n"
            'metadata: {"emoji": "🌤️", "requires": {"bins": ["curl"]}}\n'
            "---\n"
        )
        fm, _ = parse_frontmatter(content, _PATH)

        assert fm.metadata == {"emoji": "🌤️", "requires": {"bins": ["curl"]}}

    def test_whole_block_json_object(self) -> None:
        """A block written as a single JSON object is accepted."""
        content = '---\n{"name": "weather", "description": "Weather"}\n---\n'
        fm, _ = parse_frontmatter(content, _PATH)

        assert fm.name == "weather"
        assert fm.description == "Weather"

    def test_aliased_fields(self) -> None:
        """Hyphenated keys populate their typed fields."""
        content = (
            "---\n"
            "name: x\n"
            "description: y\n"
            "allowed-tools: [read, write]\n"
            "disable-model-invocation: true\n"
            "invoke-as: command\n"
            "---\n"
        )
        fm, _ = parse_frontmatter(content, _PATH)

        assert fm.allowed_tools == ["read", "write"]
        assert fm.disable_model_invocation is True
        assert fm.invoke_as == "command"

    def test_unknown_keys_preserved(self) -> None:
        """Keys the model does not know survive to_dict() unchanged."""
        content = "---\nname: x\ndescription: y\nx-custom: {a: 1}\n---\n"
        fm, _ = parse_frontmatter(content, _PATH)

        assert fm.extra == {"x-custom": {"a": 1}}
        assert fm.to_dict() == {"name": "x", "description": "y", "x-custom": {"a": 1}}

    def test_numeric_scalar_coerced_to_string(self) -> None:
        """YAML numbers in text fields become strings."""
        fm, _ = parse_frontmatter("---\nname: x\ndescription: 1.5\n---\n", _PATH)
        assert fm.description == "1.5"

    def test_no_frontmatter_yields_empty_model(self) -> None:
        """A file without front matter parses to empty fields and the full body."""
        fm, body = parse_frontmatter("Plain body", _PATH)

        assert fm.name is None
        assert body == "Plain body"

    def test_empty_block(self) -> None:
        """An empty block is valid and has no fields."""
        fm, _ = parse_frontmatter("---\n---\nBody", _PATH)
        assert fm.to_dict() == {}

    def test_yaml_syntax_error(self) -> None:
        """Malformed YAML raises SkillParseError with a location."""
        content = "---\nname: x\ndescription: first\n  second: [unclosed\n---\n"
        with pytest.raises(SkillParseError) as exc_info:
            parse_frontmatter(content, _PATH)

        assert "line" in exc_info.value.detail
        assert exc_info.value.name == "weather"

    def test_non_mapping_block(self) -> None:
        """A block that is not a mapping raises SkillParseError."""
        with pytest.raises(SkillParseError, match="must be a mapping"):
            parse_frontmatter("---\n- a\n- b\n---\n", _PATH)

    def test_invalid_field_type(self) -> None:
        """A known field with the wrong type raises SkillParseError."""
        content = "---\nname: x\ndescription: y\ndisable-model-invocation: [1, 2]\n---\n"
        with pytest.raises(SkillParseError, match="disable-model-invocation"):
            parse_frontmatter(content, _PATH)


class TestReadSkillFile:
    """Tests for read_skill_file and load_frontmatter."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises SkillNotFoundError."""
        with pytest.raises(SkillNotFoundError):
            read_skill_file(tmp_path / "nope" / "SKILL.md")

    def test_size_cap(self, tmp_path: Path) -> None:
        """A file over the cap raises SkillLoadError."""
        path = tmp_path / "SKILL.md"
        path.write_text("x" * 200)

        with pytest.raises(SkillLoadError, match="limit is 100"):
            read_skill_file(path, max_bytes=100)

    def test_invalid_utf8(self, tmp_path: Path) -> None:
        """Undecodable bytes raise SkillLoadError."""
        path = tmp_path / "SKILL.md"
        path.write_bytes(b"---\nname: \xff\xfe\n---\n")

        with pytest.raises(SkillLoadError):
            read_skill_file(path)

    def test_load_frontmatter(self, tmp_path: Path) -> None:
        """load_frontmatter reads and parses in one step."""
        path = tmp_path / "demo" / "SKILL.md"
        path.parent.mkdir()
        path.write_text("---\nname: demo\ndescription: Demo skill\n---\nBody")

        fm, body = load_frontmatter(path)

        assert fm.name == "demo"
        assert body == "Body"
