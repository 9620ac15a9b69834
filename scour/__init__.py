"""SCOUR — project-wide search and replace for git repositories."""

__version__ = "0.3.0"
__codename__ = "SCOUR"
__tagline__ = "Find it everywhere. Fix it once."
