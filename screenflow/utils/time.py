import calendar
import time
from datetime import date
from typing import Optional

def now_ms() -> int:
    return int(time.time() * 1000)

def last_day_of_current_month(today: Optional[date] = None) -> str:
    """ISO date (yyyy-mm-dd) of the last day of the month containing `today`."""
    d = today or date.today()
    last = calendar.monthrange(d.year, d.month)[1]
    return date(d.year, d.month, last).isoformat()
