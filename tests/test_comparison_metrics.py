from germansphere_client.comparison_metrics import (
    available_spots,
    cheapest_index,
    cheapest_school_index,
    course_weeks,
    experience_years,
    highest_rated_index,
    most_available_index,
    most_experienced_index,
    most_reviewed_index,
    price_of,
    price_per_hour,
    school_price_range,
    tutor_available_hours,
    winner_index,
)
from germansphere_client.schemas import ComparisonItem


def _item(item_id, item_type, **data):
    return ComparisonItem(id=item_id, type=item_type, data=data)


def test_winner_index_first_wins_on_ties():
    assert winner_index([5, 3, 3, 7], "min") == 1
    assert winner_index([5, 7, 3, 7], "max") == 1


def test_winner_index_skips_missing_values():
    assert winner_index([None, 4, None, 2], "min") == 3
    assert winner_index([None, None], "max") == -1
    assert winner_index([], "min") == -1


def test_cheapest_index_tie_goes_to_first_added():
    school_a = _item(1, "school", name="A", price=899)
    school_b = _item(2, "school", name="B", price=899)

    assert cheapest_index([school_a, school_b]) == 0
    assert cheapest_index([school_b, school_a]) == 0


def test_cheapest_index_reads_type_specific_price():
    tutors = [
        _item(1, "tutor", hourly_rate="250.00"),
        _item(2, "tutor", hourlyRate=180),
        _item(3, "tutor"),
    ]
    courses = [_item(4, "course", price=1500), _item(5, "course", price=1200)]

    assert cheapest_index(tutors) == 1
    assert cheapest_index(courses) == 1
    assert price_of(tutors[0]) == 250.0
    assert price_of(tutors[2]) is None


def test_cheapest_index_accepts_plain_dicts():
    assert cheapest_index([{"price": 10}, {"price": 5}, {"price": 5}]) == 1


def test_most_available_index_uses_open_seats():
    courses = [
        _item(1, "course", max_students=12, enrolled_students=10),
        _item(2, "course", maxStudents=15, currentStudents=9),
        _item(3, "course", max_students=20, enrolled_students=14),
        _item(4, "course"),
    ]

    assert [available_spots(c) for c in courses] == [2, 6, 6, None]
    assert most_available_index(courses) == 1


def test_rating_review_and_experience_winners():
    tutors = [
        _item(1, "tutor", rating=4.8, review_count=10, experience="5 Jahre"),
        _item(2, "tutor", rating="4.9", reviewCount=30, experience_years=8),
        _item(3, "tutor", rating=None, review_count=30, experience="10+ Jahre"),
    ]

    assert highest_rated_index(tutors) == 1
    assert most_reviewed_index(tutors) == 1
    assert [experience_years(t) for t in tutors] == [5, 8, 10]
    assert most_experienced_index(tutors) == 2


def test_price_per_hour_uses_weeks_five_days_three_hours():
    assert course_weeks({"duration_weeks": 4}) == 4
    assert course_weeks({"duration": "6 Wochen"}) == 6
    assert course_weeks({"duration": "intensiv"}) == 8
    assert course_weeks({}) == 8

    # 8 weeks * 5 days * 3 hours = 120 hours
    assert price_per_hour({"price": 1200}) == 10
    assert price_per_hour({"price": 1260}) == 11
    assert price_per_hour({"price": 900, "duration_weeks": 4}) == 15
    assert price_per_hour({}) is None


def test_school_price_range_and_cheapest_school():
    courses = [
        {"id": 1, "school_id": 10, "price": 1500},
        {"id": 2, "school_id": 10, "price": "899.00"},
        {"id": 3, "school_id": 20, "price": 950},
        {"id": 4, "school_id": 20, "price": None},
    ]
    schools = [_item(30, "school"), _item(10, "school"), _item(20, "school")]

    assert school_price_range(10, courses) == (899.0, 1500.0)
    assert school_price_range(20, courses) == (950.0, 950.0)
    assert school_price_range(30, courses) is None
    assert cheapest_school_index(schools, courses) == 1


def test_tutor_available_hours_counts_enabled_available_slots():
    availability = {
        "weeklySchedule": {
            "monday": {
                "enabled": True,
                "timeSlots": [
                    {"start": "9", "end": "10", "available": True},
                    {"start": "10", "end": "11", "available": False},
                ],
            },
            "tuesday": {
                "enabled": False,
                "timeSlots": [{"start": "9", "end": "10", "available": True}],
            },
            "friday": {
                "enabled": True,
                "timeSlots": [
                    {"start": "14", "end": "15", "available": True},
                    {"start": "15", "end": "16", "available": True},
                ],
            },
        }
    }

    assert tutor_available_hours(availability) == 3
    assert tutor_available_hours({"monday": ["09:00", "10:00"], "friday": ["14:00"]}) == 3
    assert tutor_available_hours(None) == 0
