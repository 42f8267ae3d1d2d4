"""ORM models — importing this package registers every table on ``Base.metadata``."""

from tranzantions.models.base import Base
from tranzantions.models.notification_history import NotificationHistory
from tranzantions.models.user import User

ALL_MODELS = [User, NotificationHistory]

__all__ = ["ALL_MODELS", "Base", "NotificationHistory", "User"]
