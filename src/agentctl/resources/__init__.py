"""Canonical resource models."""

from .models import (
    Command,
    MCPServer,
    Resource,
    ResourceSet,
    Rule,
    Scope,
    Skill,
    SkillCommand,
    Transport,
    effective_name,
    filter_stdio_servers,
)

__all__ = [
    "Command",
    "MCPServer",
    "Resource",
    "ResourceSet",
    "Rule",
    "Scope",
    "Skill",
    "SkillCommand",
    "Transport",
    "effective_name",
    "filter_stdio_servers",
]
