from datetime import datetime, timezone


def get_current_utc_time() -> datetime:
    """
    Current UTC time as a naive datetime truncated to milliseconds.

    MongoDB stores dates with millisecond precision and hands them back naive,
    so values built here compare equal to what a later read returns.
    """
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)
