"""Cron expression validation and next-run math.

Only the minute and hour fields drive next-run computation; day-of-month,
month and weekday are validated but treated as "every day". Set
``full_cron=True`` to hand the whole expression to croniter instead.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from autocommit.errors import InvalidScheduleError

FIELD_NAMES = ("minute", "hour", "day-of-month", "month", "day-of-week")

FIELD_BOUNDS: dict[str, tuple[int, int]] = {
    "minute": (0, 59),
    "hour": (0, 23),
    "day-of-month": (1, 31),
    "month": (1, 12),
    "day-of-week": (0, 6),
}


@dataclass(frozen=True)
class CronField:
    """One parsed field: None bounds mean `*`."""
    name: str
    start: int | None = None
    end: int | None = None

    @property
    def is_wildcard(self) -> bool:
        return self.start is None


def _parse_int(expression: str, name: str, token: str) -> int:
    if not token.isdigit():
        raise InvalidScheduleError(expression, f"{name} field '{token}' is not a number")
    value = int(token)
    low, high = FIELD_BOUNDS[name]
    if not low <= value <= high:
        raise InvalidScheduleError(expression, f"{name} value {value} outside {low}-{high}")
    return value


def _parse_field(expression: str, name: str, token: str) -> CronField:
    if token == "*":
        return CronField(name)
    if "-" in token:
        first, _, last = token.partition("-")
        start = _parse_int(expression, name, first)
        end = _parse_int(expression, name, last)
        if start > end:
            raise InvalidScheduleError(expression, f"{name} range {token} is reversed")
        return CronField(name, start, end)
    value = _parse_int(expression, name, token)
    return CronField(name, value, value)


def parse_cron_expression(expression: str) -> list[CronField]:
    """Parse a 5-field cron expression, raising InvalidScheduleError if malformed."""
    if not isinstance(expression, str) or not expression.strip():
        raise InvalidScheduleError(str(expression), "expression is empty")
    tokens = expression.split()
    if len(tokens) != len(FIELD_NAMES):
        raise InvalidScheduleError(expression, f"expected 5 fields, got {len(tokens)}")
    return [_parse_field(expression, name, token) for name, token in zip(FIELD_NAMES, tokens)]


def validate_cron_expression(expression: str) -> str:
    """Return the expression unchanged if valid."""
    parse_cron_expression(expression)
    return expression


def is_valid_cron_expression(expression: str) -> bool:
    try:
        parse_cron_expression(expression)
    except InvalidScheduleError:
        return False
    return True


def compute_next_run(expression: str, now: datetime, full_cron: bool = False) -> datetime:
    """Compute the next fire time strictly after ``now``.

    Fixed-time mode: today at ``hour:minute:00.000``, or tomorrow if that is
    not after ``now``. A `*` keeps the current minute/hour, a range uses its
    lower bound.

    Aware datetimes are evaluated on local wall-clock time and the result
    carries the local UTC offset in effect on its own date, so daylight-saving
    changes do not shift the run. Naive datetimes are treated as local time.
    """
    fields = parse_cron_expression(expression)

    aware = now.tzinfo is not None
    wall = now.astimezone().replace(tzinfo=None) if aware else now

    if full_cron:
        from croniter import croniter

        candidate = croniter(expression, wall).get_next(datetime)
        return candidate.astimezone() if aware else candidate

    minute, hour = fields[0], fields[1]
    candidate = wall.replace(second=0, microsecond=0)
    if not minute.is_wildcard:
        candidate = candidate.replace(minute=minute.start)
    if not hour.is_wildcard:
        candidate = candidate.replace(hour=hour.start)

    if candidate <= wall:
        candidate += timedelta(days=1)
    return candidate.astimezone() if aware else candidate


def _local_date(moment: datetime):
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.date()


def crossed_day_boundary(last_run: datetime, now: datetime) -> bool:
    """True when ``now`` falls on a later local calendar date than ``last_run``."""
    return _local_date(now) > _local_date(last_run)
