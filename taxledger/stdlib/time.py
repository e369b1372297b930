from datetime import datetime as dt
from datetime import timedelta as td
from datetime import timezone

import iso8601

# Block time is kept as a naive UTC datetime so it encodes to a fixed list of fields
SECONDS_IN_MINUTE = 60
SECONDS_IN_HOUR = 3600
SECONDS_IN_DAY = 86400
SECONDS_IN_WEEK = 604800


def get_raw_seconds(weeks, days, hours, minutes, seconds):
    m_sec = minutes * SECONDS_IN_MINUTE
    h_sec = hours * SECONDS_IN_HOUR
    d_sec = days * SECONDS_IN_DAY
    w_sec = weeks * SECONDS_IN_WEEK

    raw_seconds = seconds + m_sec + h_sec + d_sec + w_sec

    return raw_seconds


class Datetime:
    def __init__(self, year, month, day, hour=0, minute=0, second=0, microsecond=0):
        self._datetime = dt(year=year, month=month, day=day, hour=hour,
                            minute=minute, second=second, microsecond=microsecond)

        self.year = self._datetime.year
        self.month = self._datetime.month
        self.day = self._datetime.day
        self.hour = self._datetime.hour
        self.minute = self._datetime.minute
        self.second = self._datetime.second
        self.microsecond = self._datetime.microsecond

    def _check(self, other):
        if type(other) != Datetime:
            raise TypeError(f'{type(other)} is not a Datetime!')

    def __lt__(self, other):
        self._check(other)
        return self._datetime < other._datetime

    def __le__(self, other):
        self._check(other)
        return self._datetime <= other._datetime

    def __ge__(self, other):
        self._check(other)
        return self._datetime >= other._datetime

    def __gt__(self, other):
        self._check(other)
        return self._datetime > other._datetime

    def __eq__(self, other):
        if type(other) != Datetime:
            return False
        return self._datetime == other._datetime

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash(self._datetime)

    def __sub__(self, other):
        if isinstance(other, Datetime):
            delta = self._datetime - other._datetime
            return Timedelta(days=delta.days, seconds=delta.seconds)
        if isinstance(other, Timedelta):
            return Datetime._from_datetime(self._datetime - other._timedelta)
        return NotImplemented

    def __add__(self, other):
        if isinstance(other, Timedelta):
            return Datetime._from_datetime(self._datetime + other._timedelta)
        return NotImplemented

    def __str__(self):
        return str(self._datetime)

    def __repr__(self):
        return self.__str__()

    def isoformat(self):
        return self._datetime.isoformat() + 'Z'

    @classmethod
    def _from_datetime(cls, d: dt):
        if d.tzinfo is not None:
            d = d.astimezone(timezone.utc).replace(tzinfo=None)

        return cls(year=d.year,
                   month=d.month,
                   day=d.day,
                   hour=d.hour,
                   minute=d.minute,
                   second=d.second,
                   microsecond=d.microsecond)

    @classmethod
    def from_iso(cls, s: str):
        return cls._from_datetime(iso8601.parse_date(s))

    @classmethod
    def now(cls):
        return cls._from_datetime(dt.now(timezone.utc))


class Timedelta:
    def __init__(self, weeks=0, days=0, hours=0, minutes=0, seconds=0):
        self._timedelta = td(
            seconds=get_raw_seconds(weeks=weeks, days=days, hours=hours, minutes=minutes, seconds=seconds)
        )

    def __eq__(self, other):
        if type(other) != Timedelta:
            return False
        return self._timedelta == other._timedelta

    def __hash__(self):
        return hash(self._timedelta)

    def __add__(self, other):
        if isinstance(other, Timedelta):
            return Timedelta(seconds=self.seconds + other.seconds)
        return NotImplemented

    @property
    def seconds(self):
        return int(self._timedelta.total_seconds())

    def __str__(self):
        return str(self._timedelta)

    def __repr__(self):
        return self.__str__()
