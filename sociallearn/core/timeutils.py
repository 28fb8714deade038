from datetime import datetime, timezone


def utc_now() -> datetime:
    # Stored timestamps are naive UTC; drop the offset after reading the aware clock.
    return datetime.now(timezone.utc).replace(tzinfo=None)
