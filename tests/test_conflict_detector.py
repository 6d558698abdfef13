import itertools

import pytest

from academy.services.conflict_detector import (
    ScheduleSlot, check_conflicts, conflicting_slot_pairs, format_schedule, has_time_conflict,
    normalize_schedules, slots_overlap, to_legacy_format
)


def course(*slots):
    return {"schedules": [{"day": d, "start_period": s, "end_period": e} for d, s, e in slots]}


COURSE_A = course(("월", 1, 2))
COURSE_B = course(("월", 2, 3))
COURSE_C = course(("화", 1, 2))


def test_overlapping_period_on_same_day_conflicts():
    assert has_time_conflict(COURSE_A, COURSE_B)


def test_different_day_never_conflicts():
    assert not has_time_conflict(COURSE_A, COURSE_C)
    assert not has_time_conflict(course(("월", 1, 12)), course(("화", 1, 12)))


def test_adjacent_periods_do_not_conflict():
    assert not has_time_conflict(course(("수", 1, 2)), course(("수", 3, 4)))


def test_empty_schedule_never_conflicts():
    empty = {"schedules": []}
    assert not has_time_conflict(empty, COURSE_A)
    assert not has_time_conflict(COURSE_A, empty)
    assert not has_time_conflict(empty, empty)


def test_conflict_is_symmetric():
    courses = [COURSE_A, COURSE_B, COURSE_C, course(("월", 3, 5), ("화", 2, 2)), {"schedules": []}]
    for a, b in itertools.product(courses, repeat=2):
        assert has_time_conflict(a, b) == has_time_conflict(b, a)


@pytest.mark.parametrize("start_a,end_a,start_b,end_b", [
    (1, 2, 2, 3),
    (1, 4, 2, 3),
    (5, 5, 5, 5),
    (1, 2, 3, 4),
    (7, 9, 1, 6),
])
def test_same_day_overlap_matches_interval_rule(start_a, end_a, start_b, end_b):
    expected = max(start_a, start_b) <= min(end_a, end_b)
    assert slots_overlap(ScheduleSlot("목", start_a, end_a), ScheduleSlot("목", start_b, end_b)) == expected


def test_any_slot_pair_is_enough():
    multi = course(("월", 1, 1), ("금", 7, 8))
    assert has_time_conflict(multi, course(("금", 8, 9)))
    pairs = conflicting_slot_pairs(multi, course(("금", 8, 9)))
    assert pairs == [(ScheduleSlot("금", 7, 8), ScheduleSlot("금", 8, 9))]


def test_legacy_day_string_expands_to_slots():
    legacy = {"day": "월/수", "start_period": 3, "end_period": 4}
    assert normalize_schedules(legacy) == [ScheduleSlot("월", 3, 4), ScheduleSlot("수", 3, 4)]


def test_legacy_without_periods_uses_default_periods():
    assert normalize_schedules({"day": "화"}) == [ScheduleSlot("화", 1, 2)]


def test_canonical_form_wins_over_legacy_fields():
    both = {"schedules": [{"day": "금", "start_period": 5, "end_period": 6}], "day": "월"}
    assert normalize_schedules(both) == [ScheduleSlot("금", 5, 6)]


def test_camel_case_keys_are_accepted():
    assert normalize_schedules({"schedules": [{"day": "토", "startPeriod": 2, "endPeriod": 3}]}) == [
        ScheduleSlot("토", 2, 3)
    ]


def test_legacy_and_canonical_courses_are_compared():
    assert has_time_conflict({"day": "월/수", "start_period": 2, "end_period": 2}, COURSE_A)


def test_check_conflicts_keeps_input_order():
    busy = [COURSE_C, COURSE_B, COURSE_A]
    assert check_conflicts(COURSE_A, busy) == [COURSE_B, COURSE_A]


def test_to_legacy_format_joins_days_in_week_order():
    legacy = to_legacy_format([
        {"day": "수", "start_period": 3, "end_period": 4},
        {"day": "월", "start_period": 3, "end_period": 4},
    ])
    assert legacy == {"day": "월/수", "start_period": 3, "end_period": 4}


def test_format_schedule():
    assert format_schedule("월", 1, 2) == "월 08:20 (1교시) ~ 2교시"
    assert format_schedule("월", 0, 2) == "월 (시간 미정)"
