"""GitHub release asset installer for ephemeral build environments."""

__version__ = "0.1.0"
