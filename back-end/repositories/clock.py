from datetime import date, datetime, timezone

from repositories.interfaces import Clock


class SystemClock(Clock):
    """Calendar date in UTC"""

    def current_date(self) -> date:
        return datetime.now(timezone.utc).date()


class FixedClock(Clock):
    """Clock pinned to a given date, for tests and demos"""

    def __init__(self, today: date):
        self.today = today

    def current_date(self) -> date:
        return self.today
