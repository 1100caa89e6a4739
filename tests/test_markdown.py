"""Tests for sync.markdown: frontmatter codecs and the managed block.

Covers:
- Stable frontmatter output (key order, flow-style lists)
- CommandCodec field selection and forgiving parse
- MdcRuleCodec globs / alwaysApply
- Skill rendering and parsing
- Managed block insert, replace, remove and malformed markers
"""

import pytest

from agentctl.errors import MalformedDocumentError
from agentctl.resources import Command, Rule, Skill, SkillCommand
from agentctl.sync.markdown import (
    BLOCK_BEGIN,
    BLOCK_END,
    CommandCodec,
    MdcRuleCodec,
    dump_post,
    extract_managed_block,
    format_skill,
    join_rules,
    load_post,
    parse_skill,
    replace_managed_block,
)

# ---------------------------------------------------------------------------
# Frontmatter I/O
# ---------------------------------------------------------------------------


class TestFrontmatter:
    def test_no_header_for_empty_metadata(self):
        assert dump_post({}, "  Body text.\n\n") == "Body text.\n"

    def test_key_order_and_flow_lists(self):
        text = dump_post({"z": "last?", "a": ["x", "y"]}, "Body")
        assert text == "---\nz: last?\na: [x, y]\n---\n\nBody\n"

    def test_single_key_block_style(self):
        text = dump_post({"alwaysApply": True}, "Rule.")
        assert text == "---\nalwaysApply: true\n---\n\nRule.\n"
        assert "{" not in text

    def test_nested_mapping_block_style(self):
        text = dump_post({"meta": {"owner": "me"}, "tags": ["a"]}, "x")
        assert text == "---\nmeta:\n  owner: me\ntags: [a]\n---\n\nx\n"

    def test_invalid_yaml_raises(self):
        with pytest.raises(MalformedDocumentError):
            load_post("---\nkey: [unclosed\n---\nbody\n", "x.md")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestCommandCodec:
    """Tests for CommandCodec."""

    CMD = Command(
        name="review",
        description="Review the diff",
        prompt="Review this.",
        argument_hint="[file]",
        model="opus",
        allowed_tools=["Read", "Grep"],
    )

    def test_filename(self):
        assert CommandCodec().filename("review") == "review.md"
        assert CommandCodec(suffix=".prompt.md").filename("r") == "r.prompt.md"

    def test_format_all_fields(self):
        text = CommandCodec().format(self.CMD)
        assert text == (
            "---\n"
            "description: Review the diff\n"
            "argument-hint: '[file]'\n"
            "model: opus\n"
            "allowed-tools: [Read, Grep]\n"
            "---\n\n"
            "Review this.\n"
        )

    def test_format_limited_fields(self):
        text = CommandCodec(fields=("description",)).format(self.CMD)
        assert text == "---\ndescription: Review the diff\n---\n\nReview this.\n"

    def test_unknown_fields_ignored(self):
        assert CommandCodec(fields=("description", "bogus")).fields == (
            "description",
        )

    def test_format_bare_prompt(self):
        assert CommandCodec().format(Command(name="x", prompt="Do it")) == (
            "Do it\n"
        )

    def test_parse(self):
        codec = CommandCodec()
        cmd = codec.parse("review.md", codec.format(self.CMD))
        assert cmd == self.CMD

    def test_parse_forgiving_values(self):
        """Unquoted hints and comma strings are normalised."""
        text = (
            "---\n"
            "argument-hint: [file]\n"
            "allowed-tools: Read, Grep\n"
            "---\n"
            "Body\n"
        )
        cmd = CommandCodec().parse("x.md", text)
        assert cmd.argument_hint == "[file]"
        assert cmd.allowed_tools == ["Read", "Grep"]
        assert cmd.prompt == "Body"


# ---------------------------------------------------------------------------
# Cursor rules
# ---------------------------------------------------------------------------


class TestMdcRuleCodec:
    def test_always_apply_without_patterns(self):
        text = MdcRuleCodec().format(Rule(name="style", content="Be terse."))
        assert text == "---\nalwaysApply: true\n---\n\nBe terse.\n"

    def test_globs(self):
        rule = Rule(name="py", content="PEP 8.", globs=["*.py", "src/**"])
        text = MdcRuleCodec().format(rule)
        assert text == (
            "---\nglobs: ['*.py', src/**]\nalwaysApply: false\n---\n\nPEP 8.\n"
        )

    def test_paths_used_when_no_globs(self):
        rule = Rule(name="py", content="x", paths=["lib/"])
        assert "globs: [lib/]" in MdcRuleCodec().format(rule)

    def test_parse(self):
        codec = MdcRuleCodec()
        rule = codec.parse(
            "py.mdc", "---\nglobs: '*.py, *.pyi'\n---\nPEP 8.\n"
        )
        assert rule.name == "py"
        assert rule.globs == ["*.py", "*.pyi"]
        assert rule.content == "PEP 8."


# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------


class TestSkills:
    SKILL = Skill(
        name="deploy",
        description="Ship it",
        content="Deploy the service.",
        commands=[SkillCommand(name="rollback", content="Roll back.")],
    )

    def test_format(self):
        files = format_skill(self.SKILL)
        assert list(files) == ["SKILL.md", "rollback.md"]
        assert files["SKILL.md"] == (
            "---\nname: deploy\ndescription: Ship it\n---\n\n"
            "Deploy the service.\n"
        )
        assert files["rollback.md"] == "Roll back.\n"

    def test_namespace_is_skill_name(self):
        skill = Skill(name="deploy", namespace="team-deploy", content="x")
        assert "name: team-deploy" in format_skill(skill)["SKILL.md"]

    def test_parse_directory(self, tmp_path):
        d = tmp_path / "deploy"
        d.mkdir()
        for filename, text in format_skill(self.SKILL).items():
            (d / filename).write_text(text)
        assert parse_skill(d) == self.SKILL

    def test_parse_without_skill_md(self, tmp_path):
        assert parse_skill(tmp_path) is None


# ---------------------------------------------------------------------------
# Managed block
# ---------------------------------------------------------------------------


class TestManagedBlock:
    """Tests for the single-file managed block."""

    def test_join_rules(self):
        rules = [
            Rule(name="a", content="One.\n"),
            Rule(name="empty", content="   "),
            Rule(name="b", content="Two."),
        ]
        assert join_rules(rules) == "One.\n\n---\n\nTwo."

    def test_append_to_user_content(self):
        text = replace_managed_block("# Mine\n", "Rule.")
        assert text == f"# Mine\n\n{BLOCK_BEGIN}\nRule.\n{BLOCK_END}\n"

    def test_empty_file(self):
        assert replace_managed_block("", "Rule.") == (
            f"{BLOCK_BEGIN}\nRule.\n{BLOCK_END}\n"
        )

    def test_replace_in_place(self):
        text = f"head\n\n{BLOCK_BEGIN}\nold\n{BLOCK_END}\n\ntail\n"
        assert replace_managed_block(text, "new") == (
            f"head\n\n{BLOCK_BEGIN}\nnew\n{BLOCK_END}\n\ntail\n"
        )

    def test_idempotent(self):
        once = replace_managed_block("# Mine\n", "Rule.")
        assert replace_managed_block(once, "Rule.") == once

    def test_empty_body_removes_block(self):
        text = f"head\n\n{BLOCK_BEGIN}\nold\n{BLOCK_END}\n\ntail\n"
        assert replace_managed_block(text, "") == "head\n\ntail\n"

    def test_empty_body_only_block(self):
        text = f"{BLOCK_BEGIN}\nold\n{BLOCK_END}\n"
        assert replace_managed_block(text, "") == ""

    def test_empty_body_without_block(self):
        assert replace_managed_block("user\n", "") == "user\n"

    def test_extract(self):
        text = f"x\n{BLOCK_BEGIN}\nA\n\nB\n{BLOCK_END}\n"
        assert extract_managed_block(text) == "A\n\nB"
        assert extract_managed_block("no block") is None

    def test_unterminated_block_raises(self):
        with pytest.raises(MalformedDocumentError, match="unterminated"):
            replace_managed_block(f"{BLOCK_BEGIN}\nold\n", "new", "AGENTS.md")

    def test_orphan_end_raises(self):
        with pytest.raises(MalformedDocumentError, match="end marker"):
            extract_managed_block(f"old\n{BLOCK_END}\n")
