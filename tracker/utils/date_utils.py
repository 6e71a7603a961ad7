"""
Centralized date/time utilities

Raw dates from the Data Provider are ISO instants or absent. Nothing in this
module raises on bad input: unparsable values come back as None or "".
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Optional
from tracker.config.constants import TASK_DATE_UTC_OFFSET, TASK_START_TIME, TASK_END_TIME

# Timezone task dates are entered in
TASK_DATE_TIMEZONE = timezone(timedelta(hours=TASK_DATE_UTC_OFFSET))


def parse_iso(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 instant into an aware datetime
    
    Naive values are taken as UTC.
    
    Args:
        value: Raw value from a record
        
    Returns:
        Aware datetime, or None if value is absent or unparsable
    """
    if not value or not isinstance(value, str):
        return None
    
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def is_valid_date(value: Any) -> bool:
    return parse_iso(value) is not None


def format_date_only(value: Any) -> str:
    """
    Format a raw date for display as MM/DD/YYYY, anchored to UTC
    
    "Date only" columns are stored as midnight UTC; rendering them in UTC keeps
    the calendar day the same for every viewer.
    """
    dt = parse_iso(value)
    if dt is None:
        return ""
    return dt.astimezone(timezone.utc).strftime("%m/%d/%Y")


def to_local_date(dt: datetime, tz: Optional[tzinfo] = None) -> date:
    """
    Calendar day of an instant at local midnight
    
    Args:
        dt: Aware datetime
        tz: Timezone to normalize in (system local when None)
    """
    return dt.astimezone(tz).date()


def get_today(tz: Optional[tzinfo] = None) -> date:
    """Current calendar day in tz (system local when None)"""
    return datetime.now(timezone.utc).astimezone(tz).date()


def convert_task_date(date_str: Optional[str], time_type: str) -> Optional[str]:
    """
    Convert a 'YYYY-MM-DD' task date to the stored UTC instant
    
    Start dates are stored at 08:00 and end dates at 17:00 in UTC+7.
    
    Args:
        date_str: Calendar date entered by the user
        time_type: "start" or "end"
        
    Returns:
        UTC ISO string (e.g. "2025-10-29T01:00:00.000Z") or None if invalid
    """
    if not date_str:
        return None
    
    time_part = TASK_START_TIME if time_type == "start" else TASK_END_TIME
    try:
        day = date.fromisoformat(date_str.strip()[:10])
        local = datetime.fromisoformat(f"{day.isoformat()}T{time_part}").replace(tzinfo=TASK_DATE_TIMEZONE)
    except ValueError:
        return None
    
    return local.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")
