# academy/constants.py
"""Academy-wide vocabularies: weekdays, periods, categories and levels."""

# Days of the week, in timetable order
DAYS = ['월', '화', '수', '목', '금', '토', '일']

# Legacy schedules join several days with this separator, e.g. "월/수"
LEGACY_DAY_SEPARATOR = '/'

# Academy periods: id -> start time
PERIODS = {
    1: '08:20',
    2: '09:10',
    3: '10:20',
    4: '11:10',
    # lunch
    5: '14:30',
    6: '15:20',
    7: '16:30',
    8: '17:20',
    # dinner
    9: '19:40',
    10: '20:30',
    11: '21:40',
    12: '22:50',
}
FIRST_PERIOD = min(PERIODS)
LAST_PERIOD = max(PERIODS)

# CSAT subject categories
CATEGORIES = ["국어", "수학", "영어", "과탐", "사탐", "수리논술", "인문논술"]
DEFAULT_CATEGORY = "수학"

LEVELS = ['초급', '중급', '고급', '실전']
DEFAULT_LEVEL = '중급'

DEFAULT_COURSE_CAPACITY = 20
DEFAULT_CLASS_CAPACITY = 30
