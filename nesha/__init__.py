"""Nesha -- habits, tasks and notes with an Ethiopian daily companion."""

__version__ = "0.1.0"
