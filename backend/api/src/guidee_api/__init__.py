"""FastAPI application for the Guidee orders REST API."""

__version__ = "0.1.0"
