"""Logging and token utilities."""
