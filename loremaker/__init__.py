"""LoreMaker character codex engine."""

__version__ = "1.0.0"
