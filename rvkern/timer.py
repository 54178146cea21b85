"""Timer ticks, alarms and the ordered queue of sleeping alarms.

The machine timer counts at ``TIMER_FREQ`` ticks per second. The queue keeps
sleeping alarms ordered by wake-up time and tracks the compare value that
raises the next timer interrupt: either the next periodic tick or the
earliest alarm, whichever comes first.
"""

from __future__ import annotations

import bisect

TIMER_FREQ = 10_000_000
TICK_FREQ = 50
TICK_PERIOD = TIMER_FREQ // TICK_FREQ
UINT64_MAX = (1 << 64) - 1


def _check_count(value: int, what: str) -> int:
    value = int(value)
    if value < 0:
        raise ValueError(f"{what} must not be negative")
    return value


def ticks_from_sec(sec: int) -> int:
    """Timer ticks in ``sec`` seconds."""
    return _check_count(sec, "seconds") * TIMER_FREQ


def ticks_from_ms(ms: int) -> int:
    """Timer ticks in ``ms`` milliseconds."""
    return _check_count(ms, "milliseconds") * (TIMER_FREQ // 1000)


def ticks_from_us(us: int) -> int:
    """Timer ticks in ``us`` microseconds."""
    return _check_count(us, "microseconds") * (TIMER_FREQ // 1000 // 1000)


class Alarm:
    """A wake-up time that advances relative to its last event.

    Each sleep is measured from the most recent init, wake-up or reset.
    """

    def __init__(self, name: str | None = None, now: int = 0) -> None:
        self.name = name if name is not None else "alarm"
        self.twake = _check_count(now, "time")
        self.fired = False

    def reset(self, now: int) -> None:
        """Make the next sleep relative to ``now``."""
        self.twake = _check_count(now, "time")

    def advance(self, ticks: int) -> int:
        """Move the wake-up time forward, saturating at 2**64 - 1."""
        ticks = _check_count(ticks, "tick count")
        if UINT64_MAX - self.twake < ticks:
            self.twake = UINT64_MAX
        else:
            self.twake += ticks
        return self.twake

    def __repr__(self) -> str:
        return f"Alarm(name={self.name!r}, twake={self.twake})"


class AlarmQueue:
    """Sleeping alarms ordered by wake-up time."""

    def __init__(self, tick_period: int = TICK_PERIOD) -> None:
        if tick_period <= 0:
            raise ValueError("tick period must be positive")
        self.tick_period = tick_period
        self.next_tick = 0
        self.compare = tick_period
        self._sleepers: list[Alarm] = []

    @property
    def sleepers(self) -> tuple[Alarm, ...]:
        """The sleeping alarms, earliest first."""
        return tuple(self._sleepers)

    def sleep(self, alarm: Alarm, ticks: int, now: int) -> bool:
        """Advance ``alarm`` by ``ticks`` and queue it.

        Returns ``False`` without queueing when the wake-up time has already
        passed, and ``True`` when the alarm now waits for an interrupt. An
        alarm goes ahead of those already queued with the same wake-up time.
        """
        if any(a is alarm for a in self._sleepers):
            raise ValueError(f"alarm {alarm.name!r} is already sleeping")
        alarm.advance(ticks)
        if alarm.twake < now:
            return False

        alarm.fired = False
        index = bisect.bisect_left(
            self._sleepers, alarm.twake, key=lambda a: a.twake
        )
        self._sleepers.insert(index, alarm)
        if index == 0 and alarm.twake < self.next_tick:
            self.compare = alarm.twake
        return True

    def handle_interrupt(self, now: int) -> list[Alarm]:
        """Wake every alarm due at ``now`` and set the next compare value.

        Returns the woken alarms in wake-up order.
        """
        woken: list[Alarm] = []
        while self._sleepers and self._sleepers[0].twake <= now:
            alarm = self._sleepers.pop(0)
            alarm.fired = True
            woken.append(alarm)

        if self.next_tick < now:
            self.next_tick += self.tick_period

        if self._sleepers and self._sleepers[0].twake < self.next_tick:
            self.compare = self._sleepers[0].twake
        else:
            self.compare = self.next_tick
        return woken

    def __len__(self) -> int:
        return len(self._sleepers)