"""Timecode class for handling SMPTE timecode calculations."""

# Standard Library Imports
from __future__ import annotations

import datetime
import logging
import math
import re
import sys
from collections.abc import Mapping
from fractions import Fraction
from numbers import Integral, Real
from typing import Any

from .helpers import _Framerate, local_time_of_day, round_half_up, wall_clock_elapsed

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

_logger = logging.getLogger(__name__)

DEFAULT_FRAMERATE = Fraction(30000, 1001)

SUPPORTED_FRAMERATES = frozenset([
    Fraction(24000, 1001),
    Fraction(24),
    Fraction(25),
    Fraction(30000, 1001),
    Fraction(30),
    Fraction(50),
    Fraction(60000, 1001),
    Fraction(60),
])

DROP_FRAME_FRAMERATES = frozenset([
    Fraction(30000, 1001),
    Fraction(60000, 1001),
])

TIMECODE_PATTERN = re.compile(r"([012]\d):(\d\d):(\d\d)([:;.])(\d\d)")

_COMPONENT_KEYS = ("hours", "minutes", "seconds", "frames")


def _rounded_frames(value: Real) -> int:
    """Round a real frame count half up, rejecting nan and infinities.

    Raises:
        ValidationError: If the value is not a finite number.
    """
    if not isinstance(value, Integral) and not math.isfinite(value):
        raise ValidationError(f"Frame count should be a finite number, not {value!r}")
    return round_half_up(value)


def _component(value: Any, key: str) -> int:
    """Return a timecode component of a mapping as an int.

    Raises:
        ValidationError: If the value is not a whole number.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Timecode {key} should be a whole number, not {value!r}")
    if isinstance(value, Integral):
        return int(value)
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"Timecode {key} should be a whole number, not {value!r}"
        ) from e
    if not number.is_integer():
        raise ValidationError(f"Timecode {key} should be a whole number, not {value!r}")
    return int(number)

#%%
class Timecode:
    """The main timecode class.

    Does all the calculation over frames, so the main data it holds is the
    frame count, then when required it converts the frame count to hours,
    minutes, seconds and frames by using the frame rate setting.

    Args:
        value (None | int | float | str | datetime | Mapping | Timecode): The
            source of the timecode. An int or float is a frame count (rounded
            half up). A str should look like "HH:MM:SS:FF", where a ";" or "."
            frame separator selects drop frame. A datetime gives the
            wall-clock time elapsed since its midnight. A mapping should hold
            "hours", "minutes", "seconds" and "frames" and may hold
            "frame_rate" and "drop_frame". Another Timecode is copied. If
            skipped the timecode is "00:00:00:00".
        frame_rate (Fraction | str | int | float | tuple): The frame rate,
            one of 23.976, 24, 25, 29.97, 30, 50, 59.94 or 60. A str may be a
            decimal or "NUMERATOR/DENOMINATOR". Defaults to 29.97, or to the
            rate of the mapping or Timecode given as ``value``.
        drop_frame (bool): Use drop frame counting. Only 29.97 and 59.94
            support it. Defaults to True for those rates, to the separator of
            a timecode string, or to the flag of the source Timecode.

    Raises:
        ConfigurationError: If the frame rate or the drop frame flag is not
            supported.
        FormatError: If a timecode string is malformed.
        ValidationError: If the timecode values are out of range.
    """
    def __init__(
        self,
        value: Any = None,
        frame_rate: _Framerate | None = None,
        drop_frame: bool | None = None,
    ) -> None:
        if frame_rate is None:
            if isinstance(value, Timecode):
                frame_rate = value.frame_rate
            elif isinstance(value, Mapping) and value.get("frame_rate"):
                frame_rate = value["frame_rate"]
            else:
                frame_rate = DEFAULT_FRAMERATE

        self._framerate, self._int_framerate = self._parse_framerate(frame_rate)

        if drop_frame is None:
            drop_frame = self._default_drop_frame(value)
        if drop_frame and self._framerate not in DROP_FRAME_FRAMERATES:
            raise ConfigurationError(
                "Drop frame is only supported for 29.97 and 59.94 fps, "
                f"not {float(self._framerate):g}"
            )
        self._drop_frame = bool(drop_frame)

        self._frame_count = 0
        self._components = (0, 0, 0, 0)
        self._set_frame_count(self._dispatch_frame_count(value))

    ####

    @staticmethod
    def _check_ntsc_rate(fps: Fraction) -> tuple[bool, int]:
        """Check if framerate is NTSC (multiple of 24000/1001 or 30000/1001).

        Args:
            fps (Fraction): The framerate to check.

        Returns:
            tuple: (is_ntsc, int_framerate) where is_ntsc is True if this is an
                NTSC rate, and int_framerate is the rounded integer framerate.
        """
        int_fps = round(fps * 1001 / 1000)
        expected_ntsc = Fraction(int_fps * 1000, 1001)
        # 23.98 or 29.97 are close enough to the exact value
        is_ntsc = abs(fps - expected_ntsc) < Fraction(5, 1000)
        return is_ntsc, int_fps

    @classmethod
    def _parse_framerate(cls, frame_rate: _Framerate) -> tuple[Fraction, int]:
        """Convert the given frame rate to an exact supported fraction.

        Args:
            frame_rate (_Framerate): The frame rate to use.

        Raises:
            ConfigurationError: If the rate can not be read or is not one of
                the supported broadcast rates.

        Returns:
            tuple: (frame_rate, int_framerate), the exact frame rate and the
                rounded integer frame rate used for the component math.
        """
        if isinstance(frame_rate, bool):
            raise ConfigurationError(f"Invalid frame rate: {frame_rate!r}")
        try:
            if isinstance(frame_rate, (tuple, list)):
                new_fps = Fraction(*map(int, frame_rate))
            else:
                new_fps = Fraction(frame_rate)
        except (TypeError, ValueError, ZeroDivisionError, OverflowError) as e:
            raise ConfigurationError(f"Invalid frame rate: {frame_rate!r}") from e

        if new_fps <= 0:
            raise ConfigurationError("Invalid frame rate (zero or negative).")

        is_ntsc, int_fps = cls._check_ntsc_rate(new_fps)
        # Fix ambiguous values like 23976/1000 or 23.98.
        if is_ntsc:
            new_fps = Fraction(int_fps * 1000, 1001)

        if new_fps not in SUPPORTED_FRAMERATES:
            raise ConfigurationError(f"Unsupported frame rate: {frame_rate!r}")
        return new_fps, round(new_fps)

    def _default_drop_frame(self, value: Any) -> bool:
        """Return the drop frame flag to use when none is given.

        Args:
            value: The source value of the constructor.

        Returns:
            bool: The drop frame setting implied by the source value.
        """
        eligible = self._framerate in DROP_FRAME_FRAMERATES
        if isinstance(value, str):
            match = TIMECODE_PATTERN.fullmatch(value)
            if match is not None:
                return match.group(4) != ":"
        elif isinstance(value, Timecode):
            return eligible and value.drop_frame
        elif isinstance(value, Mapping) and isinstance(value.get("drop_frame"), bool):
            return value["drop_frame"]
        return eligible

    def _dispatch_frame_count(self, value: Any) -> int:
        """Helper to compute the frame count from the constructor value.

        Args:
            value: The source value of the constructor.

        Returns:
            int: The frame count, wrapped into a single day.
        """
        if value is None:
            return 0
        if isinstance(value, Timecode):
            if (value.frame_rate, value.drop_frame) == (self._framerate, self._drop_frame):
                return value.frame_count
            _logger.debug(
                "Reinterpreting %s at %s fps (drop frame: %s)",
                value, self._framerate, self._drop_frame,
            )
            return self._validated_frames(value.components, source=value)
        if isinstance(value, bool):
            raise TypeError("Timecode() does not accept a bool as the frame count")
        if isinstance(value, Real):
            return self._wrap_frame_count(_rounded_frames(value))
        if isinstance(value, str):
            return self._validated_frames(self.parse_timecode(value), source=value)
        if isinstance(value, datetime.datetime):
            elapsed = wall_clock_elapsed(value)
            return self._wrap_frame_count(round_half_up(elapsed * self._framerate))
        if isinstance(value, Mapping):
            missing = [key for key in _COMPONENT_KEYS if key not in value]
            if missing:
                raise ValidationError(
                    f"Timecode components missing: {', '.join(missing)}"
                )
            components = tuple(
                _component(value[key], key) for key in _COMPONENT_KEYS
            )
            return self._validated_frames(components, source=value)
        raise TypeError(
            "Timecode() expects a frame count, a timecode string, a datetime, "
            f"a mapping of components or a Timecode, not a {value.__class__.__name__}"
        )

    def _wrap_frame_count(self, frame_count: int) -> int:
        if frame_count < 0:
            raise ValidationError(
                f"Frame count should be zero or positive, not {frame_count}"
            )
        if frame_count >= self.frames_per_day:
            _logger.debug("Frame count %d wraps past 24 hours", frame_count)
        return frame_count % self.frames_per_day

    def _validated_frames(
        self, components: tuple[int, int, int, int], source: Any
    ) -> int:
        self.validate(*components, source=source)
        return self.tc_to_frames(*components)

    def validate(
        self,
        hours: int,
        minutes: int,
        seconds: int,
        frames: int,
        source: Any = None,
    ) -> None:
        """Check the given timecode components against this Timecode settings.

        Args:
            hours (int): The hours, 0 to 23.
            minutes (int): The minutes, 0 to 59.
            seconds (int): The seconds, 0 to 59.
            frames (int): The frames, 0 to the integer frame rate minus one.
            source: The value the components came from, used in the message.

        Raises:
            ValidationError: If the components are out of range, or name a
                frame dropped by the drop frame counting.
        """
        if source is None:
            source = (hours, minutes, seconds, frames)
        if (
            min(hours, minutes, seconds, frames) < 0
            or hours > 23
            or minutes > 59
            or seconds > 59
            or frames >= self._int_framerate
        ):
            raise ValidationError(f"Invalid timecode {source!r}")
        if (
            self._drop_frame
            and seconds == 0
            and minutes % 10
            and frames < self.dropped_frames
        ):
            raise ValidationError(
                f"Invalid timecode {source!r}: frame {frames} is dropped in "
                "drop frame timecode"
            )

    @property
    def frame_rate(self) -> Fraction:
        """Framerate getter.

        Returns:
            Fraction: The Timecode framerate, as a fraction of two integers.
        """
        return self._framerate

    @property
    def drop_frame(self) -> bool:
        """Return True if this Timecode uses drop frame counting."""
        return self._drop_frame

    @property
    def dropped_frames(self) -> int:
        """Return the number of frame numbers skipped on the minute marks.

        Returns:
            int: 2 at 29.97, 4 at 59.94 and 0 for non drop frame timecodes.
        """
        if not self._drop_frame:
            return 0
        return self._int_framerate // 15

    @property
    def frames_per_day(self) -> int:
        """Return the number of frames after which the timecode rolls over.

        Returns:
            int: The frame count of "24:00:00:00" for this Timecode.
        """
        return self.tc_to_frames(24, 0, 0, 0)

    @property
    def frame_count(self) -> int:
        """Return the frame count of this Timecode.

        Returns:
            int: The frames elapsed since "00:00:00:00".
        """
        return self._frame_count

    def _set_frame_count(self, frame_count: int) -> None:
        self._components = self.frames_to_tc(frame_count)
        self._frame_count = frame_count

    def numeric_value(self) -> int:
        """Return the frame count, for use where a plain number is needed.

        Returns:
            int: The frame count of this Timecode.
        """
        return self._frame_count

    def tc_to_frames(self, hours: int, minutes: int, seconds: int, frames: int) -> int:
        """Convert the given timecode components to a frame count.

        Args:
            hours (int): The hours part of the timecode.
            minutes (int): The minutes part of the timecode.
            seconds (int): The seconds part of the timecode.
            frames (int): The frames part of the timecode.

        Returns:
            int: The number of frames in the given timecode.
        """
        ifps = self._int_framerate

        # Total number of minutes
        total_minutes = (60 * hours) + minutes

        frame_number = (
            ((3600 * hours) + (60 * minutes) + seconds) * ifps + frames
        )
        return frame_number - (
            self.dropped_frames * (total_minutes - (total_minutes // 10))
        )

    def frames_to_tc(self, frame_count: int) -> tuple[int, int, int, int]:
        """Convert a frame count back to timecode components.

        Args:
            frame_count (int): Number of frames.

        Returns:
            tuple: A tuple containing the hours, minutes, seconds and frames.
        """
        ifps = self._int_framerate
        drop_frames = self.dropped_frames
        frame_number = frame_count

        if drop_frames:
            # Number of frames per ten minutes and per dropping minute
            frames_per_10_minutes = ifps * 60 * 10 - drop_frames * 9
            frames_per_minute = ifps * 60 - drop_frames

            d, m = divmod(frame_number, frames_per_10_minutes)
            frame_number += drop_frames * 9 * d
            if m > drop_frames:
                frame_number += drop_frames * (
                    (m - drop_frames) // frames_per_minute
                )

        frs = frame_number % ifps
        secs = (frame_number // ifps) % 60
        mins = (frame_number // (ifps * 60)) % 60
        hrs = (frame_number // (ifps * 3600)) % 24

        return hrs, mins, secs, frs

    @classmethod
    def parse_timecode(cls, timecode: str) -> tuple[int, int, int, int]:
        """Parse the given timecode string.

        Args:
            timecode (str): A timecode like "01:23:45:12", "01:23:45;12" or
                "01:23:45.12".

        Raises:
            FormatError: If the string does not follow the timecode format.

        Returns:
            (int, int, int, int): A tuple containing the hours, minutes, seconds
                and frames part of the Timecode.
        """
        match = TIMECODE_PATTERN.fullmatch(timecode)
        if match is None:
            raise FormatError(
                f"Timecode string expected as HH:MM:SS:FF or HH:MM:SS;FF, "
                f"not {timecode!r}"
            )
        hrs, mins, secs, _, frs = match.groups()
        return int(hrs), int(mins), int(secs), int(frs)

    @property
    def frame_delimiter(self) -> str:
        """Return correct frame deliminator symbol based on the drop frame setting.

        Returns:
            str: ";" if this is a drop frame timecode or ":" in any other case.
        """
        return ";" if self._drop_frame else ":"

    def to_string(self, fmt: str | None = None) -> str:
        """Return the string representation of this Timecode.

        Args:
            fmt (str | None): Skip it for "HH:MM:SS:FF". Use "field" to
                append the field: ".0" up to 30 fps, and above 30 fps the
                frame pair number followed by ".0" or ".1".

        Raises:
            FormatError: If the format is not supported.

        Returns:
            str: The string of this Timecode.
        """
        hrs, mins, secs, frs = self._components
        field = ""
        if fmt is not None:
            if fmt != "field":
                raise FormatError(f"Unsupported string format: {fmt!r}")
            if self._framerate <= 30:
                field = ".0"
            else:
                frs //= 2
                field = f".{self._frame_count % 2}"

        return (
            f"{hrs:02d}:{mins:02d}:{secs:02d}{self.frame_delimiter}{frs:02d}{field}"
        )

    def to_date(self, on: datetime.date | None = None) -> datetime.datetime:
        """Convert this Timecode to a local wall-clock datetime.

        Args:
            on (datetime.date | None): The day of the result, today if skipped.
                Only the time of day is derived from the Timecode.

        Returns:
            datetime.datetime: A naive local datetime showing this Timecode
                as its time of day, DST changes since midnight accounted for.
        """
        return local_time_of_day(
            Fraction(self._frame_count) / self._framerate, on=on
        )

    def add(
        self,
        amount: Any,
        negative: bool = False,
        rollover_max_hours: float | None = None,
    ) -> Self:
        """Add the given amount to this Timecode, in place.

        Args:
            amount (int | float | str | datetime | Mapping | Timecode): A frame
                delta, or a timecode. A Timecode adds its own frame count, any
                other timecode is read at the frame rate and drop frame
                setting of this Timecode.
            negative (bool): Subtract the amount instead.
            rollover_max_hours (float | None): Allow a negative result to roll
                back over midnight, as long as the rolled over timecode is not
                later than this many hours.

        Raises:
            RangeError: If the result is negative and can not roll over.

        Returns:
            Timecode: Returns self, so calls can be chained.
        """
        delta = self._frames_of(amount)
        frame_count = self._frame_count + (-delta if negative else delta)

        if frame_count < 0 and rollover_max_hours is not None and rollover_max_hours > 0:
            frame_count += self.frames_per_day
            if frame_count / self._framerate / 3600 > rollover_max_hours:
                raise RangeError("Rollover arithmetic exceeds max permitted")
            _logger.debug("%s rolled back over midnight", self)
        if frame_count < 0:
            raise RangeError("Negative timecodes not supported")

        self._set_frame_count(frame_count % self.frames_per_day)
        return self

    def subtract(self, amount: Any, rollover_max_hours: float | None = None) -> Self:
        """Subtract the given amount from this Timecode, in place.

        Args:
            amount: Any amount accepted by :meth:`add`.
            rollover_max_hours (float | None): See :meth:`add`.

        Returns:
            Timecode: Returns self, so calls can be chained.
        """
        return self.add(amount, negative=True, rollover_max_hours=rollover_max_hours)

    def _frames_of(self, amount: Any) -> int:
        if isinstance(amount, Timecode):
            return amount.frame_count
        if isinstance(amount, Real) and not isinstance(amount, bool):
            return _rounded_frames(amount)
        return Timecode(amount, self._framerate, self._drop_frame).frame_count

    def next(self) -> Self:
        """Add one frame to this Timecode to go the next frame.

        Returns:
            Timecode: Returns self. So, this is the same Timecode instance with this
                one.
        """
        return self.add(1)

    def back(self) -> Self:
        """Subtract one frame from this Timecode to go back one frame.

        Returns:
            Timecode: Returns self. So, this is the same Timecode instance with this
                one.
        """
        return self.subtract(1)

    def copy(self) -> Timecode:
        """Return a new Timecode with the same settings and frame count."""
        return Timecode(self)

    @property
    def components(self) -> tuple[int, int, int, int]:
        """Return the hours, minutes, seconds and frames of this Timecode."""
        return self._components

    @property
    def hours(self) -> int:
        """Return the hours part of the timecode."""
        return self._components[0]

    @property
    def minutes(self) -> int:
        """Return the minutes part of the timecode."""
        return self._components[1]

    @property
    def seconds(self) -> int:
        """Return the seconds part of the timecode."""
        return self._components[2]

    @property
    def frames(self) -> int:
        """Return the frames part of the timecode."""
        return self._components[3]

    def _compared_frames(self, other: Any, operator: str) -> int | None:
        """Return the frame count to compare this Timecode with.

        Returns:
            int | None: The frame count of ``other``, or None if ``other`` is a
                Timecode at another frame rate.
        """
        if isinstance(other, Timecode):
            if self._framerate != other.frame_rate:
                return None
            return other.frame_count
        if isinstance(other, str):
            return Timecode(other, self._framerate).frame_count
        if isinstance(other, int) and not isinstance(other, bool):
            return other
        raise TypeError(
            f"'{operator}' not supported between instances of 'Timecode' and "
            f"'{other.__class__.__name__}'"
        )

    def __eq__(self, other: object) -> bool:
        """Override the equality operator.

        Args:
            other (int | str | Timecode): Either an int representing the
                number of frames, a str representing a Timecode with the same
                frame rate of this one, or a Timecode to compare with.

        Returns:
            bool: True if the other is equal to this Timecode instance.
        """
        if not isinstance(other, (Timecode, str, int)) or isinstance(other, bool):
            return False
        frames = self._compared_frames(other, "==")
        return frames is not None and self._frame_count == frames

    def __lt__(self, other: int | str | Timecode) -> bool:
        frames = self._compared_frames(other, "<")
        return frames is not None and self._frame_count < frames

    def __le__(self, other: int | str | Timecode) -> bool:
        frames = self._compared_frames(other, "<=")
        return frames is not None and self._frame_count <= frames

    def __gt__(self, other: int | str | Timecode) -> bool:
        frames = self._compared_frames(other, ">")
        return frames is not None and self._frame_count > frames

    def __ge__(self, other: int | str | Timecode) -> bool:
        frames = self._compared_frames(other, ">=")
        return frames is not None and self._frame_count >= frames

    def __add__(self, other: Any) -> Timecode:
        """Return a new Timecode with the given timecode or frames added to this one.

        Args:
            other: Any amount accepted by :meth:`add`.

        Returns:
            Timecode: The resultant Timecode instance.
        """
        return self.copy().add(other)

    def __sub__(self, other: Any) -> Timecode:
        """Return a new Timecode with the given timecode or frames subtracted.

        Args:
            other: Any amount accepted by :meth:`add`.

        Returns:
            Timecode: The resultant Timecode instance.
        """
        return self.copy().subtract(other)

    def __int__(self) -> int:
        return self._frame_count

    def __str__(self) -> str:
        """Return the actual Timecode as a string.

        Returns:
            str: The string of this Timecode.
        """
        return self.to_string()

    def __repr__(self) -> str:
        """Return the string representation of this Timecode instance.

        Returns:
            str: The string representation of this Timecode instance.
        """
        return (
            f"{self.__class__.__name__}({self._frame_count}, "
            f"frame_rate='{self._framerate}', drop_frame={self._drop_frame})"
        )
####

#%%
class TimecodeBuilder:
    """Helper class to pre-configure instantiation of Timecodes.

    A list of kwargs of class Timecode can be provided to the builder, which
    will be used when the builder instance is called to create new Timecodes.

    Args:
        kwargs (dict): list of pre-configured arguments for the Timecodes
        instantiated by calling this builder. Refer to Timecode docu.
    """

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs

    def __call__(self, *args, **kwargs) -> Timecode:
        """Create a Timecode combining the preconfigured and user arguments.

        Returns:
            Timecode: timecode instance given the arguments.
        """
        kwargs = {**self.kwargs, **kwargs}
        return Timecode(*args, **kwargs)
####

#%%
class TimecodeError(Exception):
    """Raised when an error occurred in timecode calculation."""


class ConstructionError(TimecodeError, ValueError):
    """Raised when a Timecode can not be built from the given values."""


class ValidationError(ConstructionError):
    """Raised when timecode values are out of range."""


class ConfigurationError(ValidationError):
    """Raised for an unsupported frame rate or drop frame setting."""


class FormatError(ConstructionError):
    """Raised for a malformed timecode string or an unknown string format."""


class RangeError(TimecodeError, ArithmeticError):
    """Raised when timecode arithmetic goes below zero."""
