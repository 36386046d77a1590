"""Klio gamification and social reading-race engine."""

__version__ = "0.1.0"
