"""
View diff algorithm and membership predicates.

`diff_views` classifies how an incoming version of a view differs from the
stored one. The View Store turns each bucket into Task Store calls; it never
edits view content directly in response to a diff.
"""

from collections.abc import Iterable

from pydantic import BaseModel, Field

from wipman.core.errors import InvariantViolation
from wipman.core.tasks.models import Tag, TaskId
from wipman.core.views.models import View, ViewLine


class ViewDiff(BaseModel):
    """
    Structural difference between two versions of a view.

    Attributes:
        tags: New tag set, or None when the tags did not change
        create_without_id: Stub lines that must become new tasks
        create_with_id: Linked lines whose id was not in the previous content
        update: Linked lines whose title or completion status changed
        delete: Ids present before and absent now
    """

    tags: set[Tag] | None = None
    create_without_id: list[ViewLine] = Field(default_factory=list)
    create_with_id: list[ViewLine] = Field(default_factory=list)
    update: list[ViewLine] = Field(default_factory=list)
    delete: list[TaskId] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(
            self.tags is not None
            or self.create_without_id
            or self.create_with_id
            or self.update
            or self.delete
        )


def index_lines(view: View) -> dict[TaskId, ViewLine]:
    """
    Map task id to line for the linked lines of a view.

    Raises:
        InvariantViolation: If a task id appears twice in the content
    """
    indexed: dict[TaskId, ViewLine] = {}
    for line in view.content:
        if line.id is None:
            continue
        if line.id in indexed:
            raise InvariantViolation(f"View {view.id} contains task {line.id} more than once")
        indexed[line.id] = line
    return indexed


def diff_views(before: View, after: View) -> ViewDiff:
    """
    Compute the differences between the stored and the incoming view.

    Args:
        before: Stored version
        after: Incoming version (typically parsed from the view file)

    Returns:
        ViewDiff with every line classified

    Raises:
        InvariantViolation: If the ids differ or a task id repeats in a view
    """
    if before.id != after.id:
        raise InvariantViolation(
            f"views with different IDs cannot be compared: {before.id} & {after.id}"
        )

    previous = index_lines(before)
    diff = ViewDiff(tags=set(after.tags) if set(before.tags) != set(after.tags) else None)

    visited: set[TaskId] = set()
    for line in after.content:
        if line.id is None:
            diff.create_without_id.append(line)
            continue

        if line.id in visited:
            raise InvariantViolation(f"View {after.id} contains task {line.id} more than once")
        visited.add(line.id)

        old = previous.get(line.id)
        if old is None:
            diff.create_with_id.append(line)
        elif old.title != line.title or old.completed != line.completed:
            diff.update.append(line)

    diff.delete = [task_id for task_id in previous if task_id not in visited]
    return diff


def should_include(view: View, task_tags: Iterable[Tag]) -> bool:
    """
    Membership predicate.

    A view with no tags matches every task; otherwise the task tags must be
    exactly the view tags.
    """
    if not view.tags:
        return True
    return set(view.tags) == set(task_tags)


def view_has_task(view: View, task_id: TaskId) -> bool:
    return any(line.id == task_id for line in view.content)
