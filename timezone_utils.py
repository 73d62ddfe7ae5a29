import os
from datetime import datetime
import pytz


def get_app_timezone():
    """Timezone used for stored timestamps (APP_TIMEZONE, defaults to UTC)"""
    return pytz.timezone(os.environ.get('APP_TIMEZONE', 'UTC'))


def get_local_time_naive():
    """Get current app-local time as naive datetime for database storage"""
    return datetime.now(get_app_timezone()).replace(tzinfo=None)


def to_iso(dt):
    return dt.isoformat() if dt else None
