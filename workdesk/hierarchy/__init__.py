"""
Task hierarchy aggregation engine.

Pure functions over one project's task records: completion percentage,
estimated-hours roll-up, status roll-up and planned-assignee resolution.
No Flask, no database access.
"""

from .records import TaskRecord, AllocationRecord, HoursChange, StatusChange, AssigneeChange
from .errors import HierarchyError, CycleError
from .tree import TaskTree, build_tree
from .completion import CompletionEstimator, compute_completion
from .hours import roll_up_estimated_hours, depths_from_leaves
from .status import StatusValue, StatusCatalog, sync_status_from_children
from .assignees import PlannedAssigneeResolver, resolve_planned_assignees, primary_assignee

__all__ = [
    "TaskRecord", "AllocationRecord", "HoursChange", "StatusChange", "AssigneeChange",
    "HierarchyError", "CycleError",
    "TaskTree", "build_tree",
    "CompletionEstimator", "compute_completion",
    "roll_up_estimated_hours", "depths_from_leaves",
    "StatusValue", "StatusCatalog", "sync_status_from_children",
    "PlannedAssigneeResolver", "resolve_planned_assignees", "primary_assignee",
]
