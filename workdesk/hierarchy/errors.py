# workdesk/hierarchy/errors.py


class HierarchyError(Exception):
    """Raised when a write would break the task hierarchy."""
    pass


class CycleError(HierarchyError):
    """Raised when a reparent would make a task its own ancestor."""

    def __init__(self, task_id: int, parent_id: int):
        self.task_id = task_id
        self.parent_id = parent_id
        super().__init__(
            f"Task {task_id} cannot be moved under task {parent_id}: "
            "that task is one of its descendants."
        )
