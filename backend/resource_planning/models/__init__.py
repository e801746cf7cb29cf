from .employee import Employee
from .project import Project
from .rate_history import RateHistory
from .time_entry import TimeEntry
from .weekly_planning import WeeklyPlanning

__all__ = ["Employee", "Project", "RateHistory", "WeeklyPlanning", "TimeEntry"]
