"""Text and time helpers shared by log lines and responses."""

from datetime import datetime, timezone


def trim(message: str) -> str:
    return message.strip()


def untrim(message: str) -> str:
    """Trim, then pad exactly one space on each side."""
    return f" {trim(message)} "


def iso_now() -> str:
    return iso_timestamp(datetime.now(timezone.utc))


def iso_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a Z suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
