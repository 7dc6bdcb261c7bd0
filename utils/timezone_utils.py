# utils/timezone_utils.py
from datetime import datetime, date, time, timedelta, timezone
from typing import Optional, Tuple
from fastapi import Header

def parse_timezone_offset(offset_str: Optional[str]) -> int:
    """
    Parse timezone offset from various formats.
    Examples: "300" (minutes), "+05:00", "-08:00"
    """
    if not offset_str:
        return 0

    try:
        # If it's already in minutes
        if offset_str.lstrip('-+').isdigit():
            return int(offset_str)

        # If it's in format "+05:00" or "-08:00"
        if ':' in offset_str:
            sign = -1 if offset_str.startswith('-') else 1
            parts = offset_str.lstrip('+-').split(':')
            hours = int(parts[0])
            minutes = int(parts[1]) if len(parts) > 1 else 0
            return sign * (hours * 60 + minutes)
    except ValueError:
        pass

    return 0

def user_timezone(timezone_offset: int = 0) -> timezone:
    """Fixed-offset tzinfo for a user's UTC offset in minutes"""
    return timezone(timedelta(minutes=timezone_offset))

def get_user_now(timezone_offset: int = 0) -> datetime:
    """Get current local wall-clock datetime (naive) in user's timezone."""
    utc_now = datetime.now(timezone.utc).replace(tzinfo=None)
    return utc_now + timedelta(minutes=timezone_offset)

def get_user_today(timezone_offset: int = 0) -> date:
    """Get today's date in user's timezone."""
    return get_user_now(timezone_offset).date()

def parse_user_date(date_input: Optional[str], timezone_offset: int = 0) -> date:
    """
    Parse a "YYYY-MM-DD" or ISO datetime string into a date in the user's timezone.
    None means today.
    """
    if not date_input:
        return get_user_today(timezone_offset)

    if 'T' not in date_input:
        return datetime.strptime(date_input, '%Y-%m-%d').date()

    dt = datetime.fromisoformat(date_input.replace('Z', '+00:00'))
    if dt.tzinfo is not None:
        dt = dt.astimezone(user_timezone(timezone_offset)).replace(tzinfo=None)
    return dt.date()

def end_of_day(day: date) -> datetime:
    """23:59:59 on the given day. Backdated entries use this so they sort last for that day."""
    return datetime.combine(day, time(23, 59, 59))

def day_bounds(start_day: date, end_day: date) -> Tuple[datetime, datetime]:
    """[start of start_day, start of the day after end_day)"""
    start = datetime.combine(start_day, time.min)
    end = datetime.combine(end_day + timedelta(days=1), time.min)
    return start, end

def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of a month"""
    first = date(year, month, 1)
    if month == 12:
        next_first = date(year + 1, 1, 1)
    else:
        next_first = date(year, month + 1, 1)
    return first, next_first - timedelta(days=1)

# FastAPI dependency to extract timezone from headers
async def get_timezone_offset(
    x_timezone_offset: Optional[str] = Header(None),
    x_timezone_string: Optional[str] = Header(None)
) -> int:
    """
    Extract timezone offset from request headers.
    Returns offset in minutes from UTC.
    """
    # Try the direct offset first
    if x_timezone_offset:
        return parse_timezone_offset(x_timezone_offset)

    # Try parsing the string format
    if x_timezone_string:
        return parse_timezone_offset(x_timezone_string)

    # Default to UTC
    return 0
