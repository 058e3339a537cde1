"""Per-agent closed ticket and auto-close metrics for Zendesk."""

__version__ = "0.1.0"
