"""Transient presentation channels."""
