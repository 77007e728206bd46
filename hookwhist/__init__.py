"""Hook Whist: server for a trick-taking declarations card game."""

__version__ = "1.0.0"
