from datetime import datetime, timezone
from typing import Protocol

class Clock(Protocol):
    """Источник текущего времени"""

    def now(self) -> datetime:
        ...

class SystemClock:
    # Время читается заново при каждом вызове, без кэширования
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

system_clock = SystemClock()
