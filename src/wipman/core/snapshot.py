"""
Debug snapshots of the in-memory indices.

When debug is on, every reconciled save dumps the Task Store tag index and
the View Store membership index to `<root>/.snapshots/snapshot_<millis>.yml`, so a
misbehaving cascade can be inspected after the fact.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from wipman.core.dates import now
from wipman.core.tasks.store import TaskStore
from wipman.core.views.store import ViewStore

logger = logging.getLogger(__name__)

SNAPSHOTS_DIR = ".snapshots"


def build_snapshot(task_store: TaskStore, view_store: ViewStore) -> dict[str, Any]:
    tasks_by_tag = task_store.snapshot()
    views = view_store.snapshot()
    return {
        "TaskStore": [
            {"tag": tag, "task_ids": sorted(tasks_by_tag[tag])} for tag in sorted(tasks_by_tag)
        ],
        "ViewStore": {
            "views_by_task": [
                {"task_id": task_id, "view_ids": view_ids}
                for task_id, view_ids in views["views_by_task"].items()
            ],
            "tasks_by_view": [
                {"view_id": view_id, "task_ids": sorted(task_ids)}
                for view_id, task_ids in sorted(views["tasks_by_view"].items())
            ],
        },
    }


def make_snapshot(root: Path, task_store: TaskStore, view_store: ViewStore) -> Path:
    """
    Write a YAML snapshot of both stores' indices.

    Returns:
        Path of the snapshot file
    """
    timestamp = int(now().timestamp() * 1000)
    path = root / SNAPSHOTS_DIR / f"snapshot_{timestamp}.yml"
    path.parent.mkdir(parents=True, exist_ok=True)

    yaml_content = yaml.dump(
        build_snapshot(task_store, view_store),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )
    path.write_text(yaml_content, encoding="utf-8")
    logger.debug("Snapshot written to %s", path)
    return path
