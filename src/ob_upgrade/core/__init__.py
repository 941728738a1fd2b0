"""Core utilities: configuration, subprocesses, git and progress output."""
