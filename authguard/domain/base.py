from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(UTC).replace(tzinfo=None)


def epoch_ms(moment: datetime) -> int:
    return int(moment.replace(tzinfo=UTC).timestamp() * 1000)


def after_ms(moment: datetime, milliseconds: int) -> datetime:
    return moment + timedelta(milliseconds=milliseconds)
