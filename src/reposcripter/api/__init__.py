"""HTTP API for README generation."""
