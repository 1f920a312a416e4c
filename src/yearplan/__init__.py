"""Yearly planning record keeper: quarters, weeks and days holding todo lists."""

__version__ = "0.1.0"
