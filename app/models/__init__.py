from .user import User
from .habit import Habit, ScheduleMode
from .habit_completion import HabitCompletion
from .goal import Goal, GoalType
from .checklist_step import ChecklistStep, ParentType
from .checklist_list import ChecklistList
from .task import Task

__all__ = [
    "User",
    "Habit",
    "ScheduleMode",
    "HabitCompletion",
    "Goal",
    "GoalType",
    "ChecklistStep",
    "ParentType",
    "ChecklistList",
    "Task",
]
