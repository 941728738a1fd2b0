"""Decoders for graph-specific edge actions."""

from __future__ import annotations

HANDOFF_BLOCKING = "True"
HANDOFF_PASSTHROUGH = "False"


def decode_handoff_action(action: str) -> bool:
    """Decode a handoff-graph edge action.

    ``"True"`` means crossing the edge requires the ambient ob to keep
    control; ``"False"`` means the edge is safe to hand off across.

    Raises:
        ValueError: If *action* is neither sentinel.
    """
    text = action.strip()
    if text == HANDOFF_BLOCKING:
        return True
    if text == HANDOFF_PASSTHROUGH:
        return False
    raise ValueError(f"Invalid handoff action: {action!r}")
