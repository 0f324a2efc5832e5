"""Declarative, repeatable package management driven by TOML generations kept in git."""

__version__ = "3.5.2"