"""Backup interval parsing and formatting."""

from datetime import timedelta

import isodate

from ..utils.errors import ConfigurationError, create_error_suggestions

# Calendar units have no fixed length; use the same approximation restic users expect.
DAYS_PER_YEAR = 365
DAYS_PER_MONTH = 30


def parse_interval(text: str) -> timedelta:
    """
    Parse an ISO-8601 duration such as ``P1D`` or ``PT6H30M``.

    Args:
        text: Duration text

    Returns:
        timedelta: Parsed, strictly positive interval

    Raises:
        ConfigurationError: If the text is not a valid positive duration
    """
    try:
        duration = isodate.parse_duration(text.strip())
    except (isodate.ISO8601Error, ValueError) as e:
        raise ConfigurationError(
            f"Failed to parse duration: {text!r}",
            details=str(e),
            suggestions=create_error_suggestions("configuration_invalid"),
        ) from e

    if isinstance(duration, isodate.Duration):
        days = float(duration.years) * DAYS_PER_YEAR + float(duration.months) * DAYS_PER_MONTH
        duration = duration.tdelta + timedelta(days=days)

    if duration <= timedelta(0):
        raise ConfigurationError(f"Backup interval must be positive, got {text!r}")

    return duration


def format_interval(seconds: float) -> str:
    """Render a number of seconds as e.g. ``1d 2h 3m 4s``."""
    remaining = int(round(seconds))
    if remaining <= 0:
        return "0s"

    parts = []
    for suffix, size in (("d", 86400), ("h", 3600), ("m", 60), ("s", 1)):
        value, remaining = divmod(remaining, size)
        if value:
            parts.append(f"{value}{suffix}")
    return " ".join(parts)
