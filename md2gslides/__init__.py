"""Compile Markdown into Google Slides presentations."""

__version__ = "0.1.0"
