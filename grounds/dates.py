from datetime import date, datetime, time, timedelta

from django.utils import timezone

from .exceptions import Validation

# Index order matches the price table: Sunday is 0, Saturday is 6.
WEEKDAY_CODES = ('sun', 'mon', 'tue', 'wed', 'thu', 'fri', 'sat')

WEEKDAY_CHOICES = (
    ('sun', 'Sunday'),
    ('mon', 'Monday'),
    ('tue', 'Tuesday'),
    ('wed', 'Wednesday'),
    ('thu', 'Thursday'),
    ('fri', 'Friday'),
    ('sat', 'Saturday'),
)

END_OF_DAY = time(23, 59, 59, 999000)


def weekday_index(day):
    return (day.weekday() + 1) % 7


def weekday_code(day):
    return WEEKDAY_CODES[weekday_index(day)]


def as_date(value, field='date'):
    """Coerce a date, datetime or ISO ``YYYY-MM-DD`` string to a date."""
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), '%Y-%m-%d').date()
        except ValueError:
            pass
    raise Validation(f'Invalid date: {value!r}', field=field)


def start_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.min), timezone.get_current_timezone())


def end_of_day(day):
    return timezone.make_aware(datetime.combine(day, END_OF_DAY), timezone.get_current_timezone())


def iter_days(first, last):
    day = first
    while day <= last:
        yield day
        day += timedelta(days=1)


class DateScope:
    """The calendar dates on which a claim holds its slots.

    ``first``/``last`` bound the scope (``None`` is unbounded) and
    ``weekdays`` restricts it to a set of weekday codes (``None`` is every
    day). An ad-hoc booking is ``DateScope.on(day)``, a membership is the
    unbounded ``DateScope()``.
    """

    def __init__(self, first=None, last=None, weekdays=None):
        self.first = first
        self.last = last
        self.weekdays = frozenset(weekdays) if weekdays is not None else None

    @classmethod
    def on(cls, day):
        return cls(first=day, last=day)

    def __repr__(self):
        days = sorted(self.weekdays, key=WEEKDAY_CODES.index) if self.weekdays is not None else 'all'
        return f'DateScope({self.first} .. {self.last}, {days})'

    def contains(self, day):
        if self.first is not None and day < self.first:
            return False
        if self.last is not None and day > self.last:
            return False
        return self.weekdays is None or weekday_code(day) in self.weekdays

    def intersects(self, other):
        firsts = [d for d in (self.first, other.first) if d is not None]
        lasts = [d for d in (self.last, other.last) if d is not None]
        first = max(firsts) if firsts else None
        last = min(lasts) if lasts else None
        if first is not None and last is not None and first > last:
            return False

        if self.weekdays is None:
            weekdays = other.weekdays
        elif other.weekdays is None:
            weekdays = self.weekdays
        else:
            weekdays = self.weekdays & other.weekdays

        if weekdays is None:
            return True
        if not weekdays:
            return False
        # any window of seven days or more hits every weekday
        if first is None or last is None or (last - first).days >= 6:
            return True
        return any(weekday_code(day) in weekdays for day in iter_days(first, last))
