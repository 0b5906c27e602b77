"""Build and deployment helper scripts."""
