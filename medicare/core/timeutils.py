from datetime import date, datetime, time
from typing import Optional
import pytz

from .config import settings

# Formats accepted for an assigned time, e.g. "10:30 AM", "10:30AM", "14:00"
CLOCK_FORMATS = ("%I:%M %p", "%I:%M%p", "%I %p", "%H:%M")

def clinic_today() -> date:
    """Current date in the clinic's time zone."""
    return datetime.now(pytz.timezone(settings.TIMEZONE)).date()

def parse_clock_time(value: str) -> Optional[time]:
    """Parse a free-text clock time, returning None when it is not one."""
    text = value.strip().upper()
    for fmt in CLOCK_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None

def clock_sort_key(value: Optional[str]):
    """Chronological key; unparseable values sort after clock times."""
    parsed = parse_clock_time(value or "")
    if parsed is None:
        return (1, time.min, value or "")
    return (0, parsed, "")
