"""Point and reward math in isolation from any storage."""
import pytest

from errors import InvalidDelta
from reward_accounting import PointState, apply, cycle_points, validate_delta


class TestClamping:
    @pytest.mark.parametrize("points,delta", [(0, -1), (3, -10), (7, 5), (0, 0), (42, -42), (5, -100000)])
    def test_points_never_negative(self, points, delta):
        result = apply(PointState(points, 0), delta, threshold=10)
        assert result.after.points == max(0, points + delta)
        assert result.after.points >= 0

    def test_clamped_to_zero(self):
        result = apply(PointState(3, 0), -10, threshold=10)
        assert result.after.points == 0
        assert result.rewards_earned == 0


class TestRewards:
    def test_multiple_thresholds_in_one_delta(self):
        result = apply(PointState(5, 0), 25, threshold=10)
        # 5 -> 30 passes 10, 20 and 30
        assert result.after.points == 30
        assert result.rewards_earned == 3
        assert result.after.rewards == 3
        assert result.reward_fired is True

    def test_two_thresholds_in_one_delta(self):
        result = apply(PointState(5, 0), 15, threshold=10)
        assert result.after == PointState(20, 2)
        assert result.rewards_earned == 2

    def test_landing_exactly_on_threshold(self):
        result = apply(PointState(9, 1), 1, threshold=10)
        assert result.after == PointState(10, 2)
        assert result.rewards_earned == 1

    def test_below_threshold_earns_nothing(self):
        result = apply(PointState(2, 0), 5, threshold=10)
        assert result.rewards_earned == 0
        assert result.reward_fired is False

    def test_increase_within_a_cycle_earns_nothing(self):
        result = apply(PointState(11, 1), 5, threshold=10)
        assert result.after.points == 16
        assert result.rewards_earned == 0
        assert result.after.rewards == 1

    def test_downward_crossing_earns_nothing(self):
        result = apply(PointState(25, 2), -10, threshold=10)
        assert result.after == PointState(15, 2)
        assert result.rewards_earned == 0

    def test_zero_delta_at_threshold_earns_nothing(self):
        result = apply(PointState(10, 1), 0, threshold=10)
        assert result.rewards_earned == 0
        assert result.after == PointState(10, 1)

    def test_recrossing_after_drop_earns_again(self):
        dropped = apply(PointState(12, 1), -5, threshold=10).after
        result = apply(dropped, 5, threshold=10)
        assert result.after.points == 12
        assert result.rewards_earned == 1
        assert result.after.rewards == 2

    @pytest.mark.parametrize("points,delta", [(30, -5), (30, -30), (0, -3), (14, 0)])
    def test_non_increase_never_rewards(self, points, delta):
        assert apply(PointState(points, 3), delta, threshold=10).rewards_earned == 0

    def test_large_threshold(self):
        result = apply(PointState(999, 0), 1, threshold=1000)
        assert result.rewards_earned == 1


class TestRoundTrip:
    @pytest.mark.parametrize("start,delta", [(0, 7), (5, 25), (13, 4), (40, 60)])
    def test_delta_then_negated_delta_restores_points(self, start, delta):
        first = apply(PointState(start, 0), delta, threshold=10)
        second = apply(first.after, -delta, threshold=10)
        assert second.after.points == start
        # rewards are monotonic and do not roll back
        assert second.after.rewards == first.after.rewards


class TestDeterminism:
    def test_same_inputs_same_outputs(self):
        before = PointState(8, 4)
        assert apply(before, 13, threshold=10) == apply(before, 13, threshold=10)
        assert before == PointState(8, 4)


class TestValidation:
    @pytest.mark.parametrize("delta", ["5", None, 1.5, float("nan"), float("inf"), True, [1]])
    def test_rejects_non_integers(self, delta):
        with pytest.raises(InvalidDelta):
            apply(PointState(0, 0), delta, threshold=10)

    @pytest.mark.parametrize("delta", [100001, -100001, 10 ** 9])
    def test_rejects_out_of_range(self, delta):
        with pytest.raises(InvalidDelta):
            validate_delta(delta, max_delta=100000)

    def test_accepts_limit_and_integral_floats(self):
        assert validate_delta(100000, max_delta=100000) == 100000
        assert validate_delta(-100000, max_delta=100000) == -100000
        assert validate_delta(5.0) == 5
        assert isinstance(validate_delta(5.0), int)


def test_cycle_points():
    assert cycle_points(0, 10) == 0
    assert cycle_points(23, 10) == 3
    assert cycle_points(30, 10) == 0
