"""Resume Tailor API - timeline reconciliation and multi-model resume generation."""

__version__ = "0.1.0"
