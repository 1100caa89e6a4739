"""Markdown codecs for commands, rules and skills.

Commands, Cursor rules and skills are Markdown files with a YAML
frontmatter header, parsed with ``python-frontmatter`` and written with a
stable handler (insertion-ordered keys, block mappings, lists in flow
style) so the same resource always renders to the same bytes.

Tools that keep all their rules in one instructions file get a managed
block instead::

    <!-- agentctl:begin -->
    first rule

    ---

    second rule
    <!-- agentctl:end -->

Everything outside the block belongs to the user and is left as is.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import frontmatter
import yaml
from frontmatter.default_handlers import YAMLHandler

from agentctl.errors import MalformedDocumentError
from agentctl.resources import Command, Rule, Skill, SkillCommand

logger = logging.getLogger(__name__)

RULE_SEPARATOR = "\n\n---\n\n"
BLOCK_BEGIN = "<!-- agentctl:begin -->"
BLOCK_END = "<!-- agentctl:end -->"
SKILL_FILENAME = "SKILL.md"


# =============================================================================
# Frontmatter I/O
# =============================================================================


class _FrontmatterDumper(yaml.SafeDumper):
    """Block mappings, flow lists (``globs: ['*.py', src/**]``)."""


def _represent_flow_list(dumper: yaml.SafeDumper, data: list) -> yaml.Node:
    return dumper.represent_sequence(
        "tag:yaml.org,2002:seq", data, flow_style=True
    )


_FrontmatterDumper.add_representer(list, _represent_flow_list)


class StableYAMLHandler(YAMLHandler):
    """Frontmatter YAML handler with stable ordering and wide line width."""

    def export(self, metadata: dict[str, Any], **kwargs: Any) -> str:
        return yaml.dump(
            metadata,
            Dumper=_FrontmatterDumper,
            sort_keys=False,
            width=1000,
            default_flow_style=False,
            allow_unicode=True,
        ).rstrip()


_FRONTMATTER_HANDLER = StableYAMLHandler()


def load_post(text: str, path: Path | str = "<string>") -> frontmatter.Post:
    """Parse *text* into metadata plus body.

    Raises:
        MalformedDocumentError: The frontmatter is not valid YAML.
    """
    try:
        return frontmatter.loads(text)
    except yaml.YAMLError as exc:
        raise MalformedDocumentError(Path(path), str(exc)) from exc


def dump_post(metadata: dict[str, Any], body: str) -> str:
    """Render *metadata* and *body*, omitting an empty header."""
    body = body.strip()
    if not metadata:
        return body + "\n"
    post = frontmatter.Post(body, **metadata)
    return frontmatter.dumps(post, handler=_FRONTMATTER_HANDLER) + "\n"


def _meta_str(value: Any) -> str:
    if value is None:
        return ""
    # An unquoted ``[file]`` hint parses as a YAML list
    if isinstance(value, list):
        return "[" + ", ".join(str(v) for v in value) + "]"
    return str(value)


def _meta_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [part.strip() for part in str(value).split(",") if part.strip()]


# =============================================================================
# Commands
# =============================================================================

COMMAND_FIELDS = {
    "description": "description",
    "argument-hint": "argument_hint",
    "model": "model",
    "allowed-tools": "allowed_tools",
    "disallowed-tools": "disallowed_tools",
}
_LIST_FIELDS = {"allowed_tools", "disallowed_tools"}


class CommandCodec:
    """One command per ``<name><suffix>`` file.

    Args:
        fields: Frontmatter keys this tool understands, in output order.
            Keys outside ``COMMAND_FIELDS`` are ignored.
        suffix: File extension.
    """

    def __init__(
        self,
        fields: tuple[str, ...] = tuple(COMMAND_FIELDS),
        suffix: str = ".md",
    ) -> None:
        self.fields = tuple(f for f in fields if f in COMMAND_FIELDS)
        self.suffix = suffix

    def filename(self, name: str) -> str:
        return name + self.suffix

    def format(self, command: Command) -> str:
        metadata: dict[str, Any] = {}
        for key in self.fields:
            value = getattr(command, COMMAND_FIELDS[key])
            if value:
                metadata[key] = list(value) if isinstance(value, list) else value
        return dump_post(metadata, command.prompt)

    def parse(self, filename: str, text: str, path: Path | None = None) -> Command:
        post = load_post(text, path or filename)
        values: dict[str, Any] = {}
        for key in self.fields:
            attr = COMMAND_FIELDS[key]
            raw = post.metadata.get(key)
            values[attr] = _meta_list(raw) if attr in _LIST_FIELDS else _meta_str(raw)
        return Command(
            name=Path(filename).stem,
            prompt=post.content.strip(),
            **values,
        )


# =============================================================================
# Cursor rules (.mdc)
# =============================================================================


class MdcRuleCodec:
    """Cursor ``.mdc`` rules: ``globs`` plus ``alwaysApply``.

    A rule without file patterns is always applied.
    """

    suffix = ".mdc"

    def filename(self, name: str) -> str:
        return name + self.suffix

    def format(self, rule: Rule) -> str:
        patterns = rule.patterns
        if patterns:
            metadata: dict[str, Any] = {"globs": patterns, "alwaysApply": False}
        else:
            metadata = {"alwaysApply": True}
        return dump_post(metadata, rule.content)

    def parse(self, filename: str, text: str, path: Path | None = None) -> Rule:
        post = load_post(text, path or filename)
        return Rule(
            name=Path(filename).stem,
            content=post.content.strip(),
            globs=_meta_list(post.metadata.get("globs")),
        )


# =============================================================================
# Skills
# =============================================================================


def format_skill(skill: Skill) -> dict[str, str]:
    """Render *skill* as ``{relative filename: text}``.

    ``SKILL.md`` carries ``name`` and ``description``; each sub-command is
    written to ``<command>.md`` beside it.
    """
    metadata: dict[str, Any] = {"name": skill.effective_name}
    if skill.description:
        metadata["description"] = skill.description
    files = {SKILL_FILENAME: dump_post(metadata, skill.content)}
    for cmd in skill.commands:
        cmd_meta = {"description": cmd.description} if cmd.description else {}
        files[cmd.name + ".md"] = dump_post(cmd_meta, cmd.content)
    return files


def parse_skill(directory: Path) -> Skill | None:
    """Read a skill directory, or ``None`` if it has no ``SKILL.md``."""
    skill_file = directory / SKILL_FILENAME
    if not skill_file.is_file():
        return None
    post = load_post(skill_file.read_text(encoding="utf-8"), skill_file)
    commands = []
    for path in sorted(directory.glob("*.md")):
        if path.name == SKILL_FILENAME:
            continue
        sub = load_post(path.read_text(encoding="utf-8"), path)
        commands.append(
            SkillCommand(
                name=path.stem,
                description=_meta_str(sub.metadata.get("description")),
                content=sub.content.strip(),
            )
        )
    return Skill(
        name=_meta_str(post.metadata.get("name")) or directory.name,
        description=_meta_str(post.metadata.get("description")),
        content=post.content.strip(),
        commands=commands,
    )


# =============================================================================
# Managed block for single-file rules
# =============================================================================


def join_rules(rules: list[Rule]) -> str:
    """Concatenate rule bodies.  Names and patterns are lost."""
    return RULE_SEPARATOR.join(
        r.content.strip() for r in rules if r.content.strip()
    )


def _block_span(text: str, path: Path | str) -> tuple[int, int] | None:
    start = text.find(BLOCK_BEGIN)
    if start == -1:
        if BLOCK_END in text:
            raise MalformedDocumentError(
                Path(path), "managed block end marker without a begin marker"
            )
        return None
    end = text.find(BLOCK_END, start)
    if end == -1:
        raise MalformedDocumentError(Path(path), "unterminated managed block")
    return start, end + len(BLOCK_END)


def extract_managed_block(text: str, path: Path | str = "<string>") -> str | None:
    """Return the body of the managed block, or ``None`` if absent."""
    span = _block_span(text, path)
    if span is None:
        return None
    start, end = span
    return text[start + len(BLOCK_BEGIN) : end - len(BLOCK_END)].strip("\n")


def replace_managed_block(
    text: str, body: str, path: Path | str = "<string>"
) -> str:
    """Return *text* with its managed block set to *body*.

    An existing block is replaced in place.  Otherwise the block is
    appended after a blank line.  An empty *body* removes the block.

    Raises:
        MalformedDocumentError: *text* holds an unterminated block.
    """
    span = _block_span(text, path)

    if not body:
        if span is None:
            return text
        start, end = span
        parts = [
            p for p in (text[:start].rstrip("\n"), text[end:].lstrip("\n")) if p
        ]
        return "\n\n".join(parts).rstrip("\n") + "\n" if parts else ""

    block = f"{BLOCK_BEGIN}\n{body}\n{BLOCK_END}"
    if span is not None:
        start, end = span
        return text[:start] + block + text[end:]
    if not text.strip():
        return block + "\n"
    return text.rstrip("\n") + "\n\n" + block + "\n"
