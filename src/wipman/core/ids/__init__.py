"""
Identifier generation for tasks and views.

Public API:
    - generate_id: Random short opaque id with collision detection
    - is_valid_id: Check an id against the id grammar
    - BACKLOG_ID: Reserved id of the Backlog view
"""

from wipman.core.ids.generator import (
    BACKLOG_ID,
    ID_CHARS,
    ID_LENGTH,
    generate_id,
    is_valid_id,
)

__all__ = ["BACKLOG_ID", "ID_CHARS", "ID_LENGTH", "generate_id", "is_valid_id"]
