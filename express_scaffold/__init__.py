"""Idempotent scaffolding of Node.js / Express / MongoDB projects."""

__version__ = "0.1.0"
