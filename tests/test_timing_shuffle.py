import random
from datetime import timedelta

from app.utils.shuffle import shuffled
from app.utils.timing import deadline_for, elapsed_seconds, is_time_expired, remaining_seconds
from tests.fakes import T0


def test_remaining_seconds_counts_down_and_floors():
    now = T0 + timedelta(minutes=4, seconds=30, milliseconds=400)

    assert remaining_seconds(T0, 5, now) == 29


def test_remaining_seconds_never_negative():
    assert remaining_seconds(T0, 5, T0 + timedelta(minutes=6)) == 0


def test_expiry_is_strictly_after_duration():
    assert is_time_expired(T0, 5, T0 + timedelta(minutes=5)) is False
    assert is_time_expired(T0, 5, T0 + timedelta(minutes=5, seconds=1)) is True


def test_naive_timestamps_are_treated_as_utc():
    naive_start = T0.replace(tzinfo=None)

    assert elapsed_seconds(naive_start, T0 + timedelta(seconds=90)) == 90


def test_clock_skew_does_not_produce_negative_elapsed():
    assert elapsed_seconds(T0, T0 - timedelta(seconds=10)) == 0


def test_deadline():
    assert deadline_for(T0, 30) == T0 + timedelta(minutes=30)


def test_shuffled_is_a_permutation_and_leaves_input_alone():
    items = list(range(20))

    result = shuffled(items, random.Random(7))

    assert sorted(result) == items
    assert items == list(range(20))


def test_shuffled_draws_a_fresh_order_each_call():
    items = list(range(10))
    rng = random.Random(1)

    orders = {tuple(shuffled(items, rng)) for _ in range(20)}

    assert len(orders) > 1


def test_shuffled_handles_short_inputs():
    assert shuffled([]) == []
    assert shuffled(["only"]) == ["only"]
