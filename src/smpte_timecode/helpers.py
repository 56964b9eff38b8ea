"""Helper functions for Timecode handling and byproducts."""

from __future__ import annotations

import datetime
import math
import sys
from fractions import Fraction
from typing import NewType

if sys.version_info >= (3, 11):
    _frate_type = Fraction | str | float | tuple[int, int]
else:
    from typing import Union
    _frate_type = Union[Fraction, str, float, tuple[int, int]]

_Framerate = NewType("_Framerate", _frate_type)


def round_half_up(value: float | Fraction) -> int:
    """Round a real number to the nearest integer, halves going up.

    Args:
        value (int | float | Fraction): The number to round.

    Returns:
        int: The rounded value. ``2.5`` gives 3, ``323.443`` gives 323.
    """
    return math.floor(Fraction(value) + Fraction(1, 2))


def utc_offset(moment: datetime.datetime) -> datetime.timedelta:
    """Return the UTC offset in effect at the given moment.

    Naive datetimes are interpreted as local time, so the offset of the local
    time zone at that moment (DST included) is returned.

    Args:
        moment (datetime.datetime): The moment to look the offset up for.

    Returns:
        datetime.timedelta: The offset, positive east of UTC.
    """
    if moment.tzinfo is None or moment.utcoffset() is None:
        moment = moment.astimezone()
    return moment.utcoffset()


def _as_utc(moment: datetime.datetime) -> datetime.datetime:
    return moment.astimezone(datetime.timezone.utc)


def midnight_of(moment: datetime.datetime) -> datetime.datetime:
    """Return the midnight starting the day of ``moment``, in its time zone."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def to_seconds(delta: datetime.timedelta) -> Fraction:
    """Convert a timedelta to an exact number of seconds."""
    return (
        Fraction(delta.days * 86400 + delta.seconds)
        + Fraction(delta.microseconds, 1000000)
    )


def wall_clock_elapsed(moment: datetime.datetime) -> Fraction:
    """Return the wall-clock seconds elapsed since midnight of ``moment``.

    The instant difference between midnight and ``moment`` is corrected by the
    difference of the two UTC offsets, each looked up for its own timestamp. A
    moment on a DST transition day therefore reads as its clock time: 03:30 on
    a spring-forward day is 3.5 hours after midnight, not 2.5.

    Args:
        moment (datetime.datetime): Naive (local) or aware datetime.

    Returns:
        Fraction: Seconds since midnight, exact to the microsecond.
    """
    midnight = midnight_of(moment)
    elapsed = _as_utc(moment) - _as_utc(midnight)
    return to_seconds(elapsed + utc_offset(moment) - utc_offset(midnight))


def local_time_of_day(
    seconds: float | Fraction, on: datetime.date | None = None
) -> datetime.datetime:
    """Return the local datetime showing ``seconds`` after midnight on a clock.

    The inverse of :func:`wall_clock_elapsed`: the offset is added to the local
    midnight of ``on`` and the difference between the offset at midnight and
    the offset at the resulting instant is cancelled out.

    Args:
        seconds (float | Fraction): Wall-clock seconds since midnight.
        on (datetime.date | None): The day to use, today if skipped.

    Returns:
        datetime.datetime: A naive local datetime.
    """
    if on is None:
        on = datetime.date.today()
    midnight = datetime.datetime.combine(on, datetime.time())
    offset = datetime.timedelta(seconds=float(seconds))
    moment = _as_utc(midnight) + offset
    correction = utc_offset(midnight) - utc_offset(moment.astimezone())
    return (moment + correction).astimezone().replace(tzinfo=None)
