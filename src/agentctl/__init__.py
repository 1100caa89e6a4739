"""agentctl: project one canonical set of agent resources onto many tools."""

__version__ = "0.4.0"
