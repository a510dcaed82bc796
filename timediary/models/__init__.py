from timediary.models.category import Category
from timediary.models.event import Event
from timediary.models.feedback import Feedback
from timediary.models.reflection import Reflection
from timediary.models.routine import Routine, RoutineCheck
from timediary.models.subscription import CalendarSubscription
from timediary.models.todo import Todo
from timediary.models.todo_category import TodoCategory

__all__ = [
    "Category",
    "Event",
    "Feedback",
    "Reflection",
    "Routine",
    "RoutineCheck",
    "CalendarSubscription",
    "Todo",
    "TodoCategory",
]
