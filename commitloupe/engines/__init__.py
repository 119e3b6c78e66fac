"""Bundled rendering engines.

An engine is any module exposing ``create(config, document)``; ``table`` is
the reference engine used by the CLI when no other entry point is configured.
"""
