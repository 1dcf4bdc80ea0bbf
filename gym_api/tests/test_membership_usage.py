from gym_api.services.membership_usage import compute_usage, usage_percentage


def test_percentage_rounds_half_up():
    assert usage_percentage(1, 3) == 33
    assert usage_percentage(2, 3) == 67
    assert usage_percentage(1, 8) == 13  # 12.5


def test_no_enrolled_clients_means_zero():
    assert usage_percentage(0, 0) == 0
    assert compute_usage({1: 0, 2: 0}) == {1: 0, 2: 0}


def test_usage_sums_to_about_one_hundred():
    usage = compute_usage({1: 3, 2: 1})
    assert usage == {1: 75, 2: 25}
    assert abs(sum(compute_usage({1: 1, 2: 1, 3: 1}).values()) - 100) <= 1


def test_negative_counts_are_ignored():
    assert compute_usage({1: -2, 2: 2}) == {1: 0, 2: 100}
