from .user import User
from .organization import Organization, Project, TaskStatusValue
from .task import Task, TaskAssignee, TaskAllocation, TimeEntry, TaskHistory
