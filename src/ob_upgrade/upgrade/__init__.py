"""Upgrade, migrate and handoff protocols for the pinned ob."""
