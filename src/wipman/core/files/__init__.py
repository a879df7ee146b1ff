"""
Task and view files: formats, directory layout and change records.

The File Synchronizer and Directory Indexer live in
`wipman.core.files.synchronizer` and `wipman.core.files.indexer`.
"""

from wipman.core.files.events import FileAdded, FileChange, FileDeleted, FileKind, FileUpdated
from wipman.core.files.layout import DirectoryScan, classify_path, scan_root_directory
from wipman.core.files.task_files import read_task_file, serialize_task, write_task_file
from wipman.core.files.view_files import read_view_file, serialize_view, write_view_file

__all__ = [
    "DirectoryScan",
    "FileAdded",
    "FileChange",
    "FileDeleted",
    "FileKind",
    "FileUpdated",
    "classify_path",
    "read_task_file",
    "read_view_file",
    "scan_root_directory",
    "serialize_task",
    "serialize_view",
    "write_task_file",
    "write_view_file",
]
