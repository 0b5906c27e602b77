"""Shared models, services and utilities for the Guidee orders backend."""
