"""SheetFlow: issue tracking driven by forms and free-text commands."""

__version__ = "0.1.0"
