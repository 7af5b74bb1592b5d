from routinedesk.models.activity_log import ActivityLog  # noqa: F401
from routinedesk.models.room import Room  # noqa: F401
from routinedesk.models.routine_slot import ClassType, RecurrenceType, RoutineSlot, WeekPattern  # noqa: F401
from routinedesk.models.schedule_lock import ScheduleLock  # noqa: F401
from routinedesk.models.teacher import Teacher  # noqa: F401
from routinedesk.models.time_slot import TimeSlotDefinition  # noqa: F401
from routinedesk.models.user import User, UserRole  # noqa: F401
