"""walkbook - walk request lifecycle and review integrity service."""

__version__ = "0.1.0"
