# academy/services/conflict_detector.py
"""Weekly timetable conflict detection.

A course occupies one or more schedule slots, each a (day, start period,
end period) triple with inclusive period bounds. Courses may arrive in the
canonical form (a ``schedules`` list of slots) or in the legacy shorthand
(one ``day`` string such as ``"월/수"`` plus a single start/end pair applied
to every listed day); both are normalized to a list of ``ScheduleSlot``.

Callers guarantee ``start_period <= end_period`` for every slot; nothing in
this module validates it.
"""
from typing import Any, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from ..constants import DAYS, LEGACY_DAY_SEPARATOR, PERIODS

# Periods the legacy shorthand used when a course stored none
LEGACY_DEFAULT_START = 1
LEGACY_DEFAULT_END = 2


class ScheduleSlot(NamedTuple):
    day: str
    start_period: int
    end_period: int

    def as_dict(self) -> dict:
        return {"day": self.day, "start_period": self.start_period, "end_period": self.end_period}


def _field(source: Any, *names: str) -> Any:
    """Read the first present field from a mapping or an object."""
    for name in names:
        if isinstance(source, dict):
            if source.get(name) is not None:
                return source[name]
        elif getattr(source, name, None) is not None:
            return getattr(source, name)
    return None


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _slot_from(entry: Any) -> ScheduleSlot:
    if isinstance(entry, ScheduleSlot):
        return entry
    return ScheduleSlot(
        day=str(_field(entry, "day")).strip(),
        start_period=int(_field(entry, "start_period", "startPeriod")),
        end_period=int(_field(entry, "end_period", "endPeriod")),
    )


def normalize_schedules(course: Any) -> List[ScheduleSlot]:
    """Return the course's slots in canonical form."""
    schedules = _field(course, "schedules")
    if schedules:
        return [_slot_from(entry) for entry in schedules]

    legacy_day = _field(course, "day")
    if legacy_day:
        start = _as_int(_field(course, "start_period", "startPeriod"), LEGACY_DEFAULT_START)
        end = _as_int(_field(course, "end_period", "endPeriod"), LEGACY_DEFAULT_END)
        return [
            ScheduleSlot(day.strip(), start, end)
            for day in str(legacy_day).split(LEGACY_DAY_SEPARATOR)
            if day.strip()
        ]

    return []


def slots_overlap(a: ScheduleSlot, b: ScheduleSlot) -> bool:
    """Same day and the inclusive period ranges intersect."""
    return a.day == b.day and a.start_period <= b.end_period and a.end_period >= b.start_period


def has_time_conflict(course_a: Any, course_b: Any) -> bool:
    slots_b = normalize_schedules(course_b)
    return any(
        slots_overlap(slot_a, slot_b)
        for slot_a in normalize_schedules(course_a)
        for slot_b in slots_b
    )


def conflicting_slot_pairs(course_a: Any, course_b: Any) -> List[Tuple[ScheduleSlot, ScheduleSlot]]:
    """Every (slot of A, slot of B) pair that collides."""
    slots_b = normalize_schedules(course_b)
    return [
        (slot_a, slot_b)
        for slot_a in normalize_schedules(course_a)
        for slot_b in slots_b
        if slots_overlap(slot_a, slot_b)
    ]


def check_conflicts(candidate: Any, busy_courses: Iterable[Any]) -> List[Any]:
    """Busy courses that collide with ``candidate``, in input order."""
    return [busy for busy in busy_courses if has_time_conflict(candidate, busy)]


def to_legacy_format(schedules: Sequence[Any]) -> dict:
    """Combined day string plus the first slot's periods, for display."""
    slots = [_slot_from(entry) for entry in schedules or []]
    if not slots:
        return {"day": "", "start_period": LEGACY_DEFAULT_START, "end_period": LEGACY_DEFAULT_END}

    days = sorted({slot.day for slot in slots}, key=lambda d: DAYS.index(d) if d in DAYS else len(DAYS))
    return {
        "day": LEGACY_DAY_SEPARATOR.join(days),
        "start_period": slots[0].start_period,
        "end_period": slots[0].end_period,
    }


def format_schedule(day: str, start_period: int, end_period: int) -> str:
    start_time: Optional[str] = PERIODS.get(start_period)
    if start_time is None or end_period not in PERIODS:
        return f"{day} (시간 미정)"
    return f"{day} {start_time} ({start_period}교시) ~ {end_period}교시"
