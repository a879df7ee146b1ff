"""
Remote sync boundary: the change journal and the batch handed to a remote client.
"""

from wipman.core.remote.journal import (
    ChangeJournal,
    ChangeRecord,
    Operation,
    RemoteClient,
    SyncBatch,
    squash,
)

__all__ = ["ChangeJournal", "ChangeRecord", "Operation", "RemoteClient", "SyncBatch", "squash"]
