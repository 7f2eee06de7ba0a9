"""RepoScripter: README generation pipeline for source repositories."""

__version__ = "0.1.0"
