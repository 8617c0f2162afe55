"""
Date and Time utilities

Parses XMLTV timestamps into epoch milliseconds. Parsing is lenient: a
timestamp that is too short or malformed resolves to 0 ("unknown") instead of
raising, so one bad programme never invalidates a whole guide.
"""
from datetime import datetime, timedelta, timezone, tzinfo
import logging
import re


logger = logging.getLogger(__name__)

XMLTV_TIME_FORMAT = "%Y%m%d%H%M%S"
UNKNOWN_TIME = 0

_XMLTV_TIME_RE = re.compile(r"^\s*(\d{14})(?:\s*([+-])(\d{2})(\d{2}))?")


def parse_xmltv_time(time_str: str | None, default_tz: tzinfo = timezone.utc) -> int:
    """
    Convert XMLTV time to epoch milliseconds

    Args:
        time_str: XMLTV time like '20080715003000 -0600'
        default_tz: Timezone applied when the value carries no offset

    Returns:
        Epoch milliseconds, or 0 if the value is shorter than 14 characters or unparseable
    """
    if not time_str or len(time_str) < 14:
        return UNKNOWN_TIME

    match = _XMLTV_TIME_RE.match(time_str)
    if not match:
        logger.debug(f"Unparseable XMLTV time: {time_str!r}")
        return UNKNOWN_TIME

    time_part, sign, tz_hours, tz_mins = match.groups()
    try:
        dt = datetime.strptime(time_part, XMLTV_TIME_FORMAT)
        if sign:
            offset = timedelta(hours=int(tz_hours), minutes=int(tz_mins))
            dt = dt.replace(tzinfo=timezone(-offset if sign == "-" else offset))
        else:
            dt = dt.replace(tzinfo=default_tz)
    except ValueError:
        logger.debug(f"Invalid XMLTV time: {time_str!r}")
        return UNKNOWN_TIME

    return to_epoch_millis(dt)


def to_epoch_millis(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def local_now(tz: tzinfo, now: datetime | None = None) -> datetime:
    """Current time (or ``now``) expressed in ``tz``"""
    return (now or datetime.now(timezone.utc)).astimezone(tz)
