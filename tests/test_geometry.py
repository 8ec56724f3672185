"""
Tests for landmark geometry helpers
"""
import math

import numpy as np
import pytest

from tests.conftest import eye


class TestDistance:
    """Tests for distance()"""

    def test_euclidean(self):
        from interview_proctor.proctor.utils.geometry import distance

        assert distance((0, 0), (3, 4)) == 5.0

    def test_extra_coordinates_ignored(self):
        from interview_proctor.proctor.utils.geometry import distance

        assert distance((0, 0, 9), (3, 4, -2)) == 5.0

    def test_numpy_points(self):
        from interview_proctor.proctor.utils.geometry import distance

        assert distance(np.array([1.0, 1.0]), np.array([4.0, 5.0])) == 5.0

    @pytest.mark.parametrize("bad", [None, (), (1,), ("a", 1), (math.nan, 0), 5])
    def test_malformed_point_yields_zero(self, bad):
        from interview_proctor.proctor.utils.geometry import distance

        assert distance(bad, (1, 1)) == 0.0
        assert distance((1, 1), bad) == 0.0


class TestEyeAspectRatio:
    """Tests for EAR computation"""

    def test_open_and_closed(self):
        from interview_proctor.proctor.utils.geometry import eye_landmarks_ear

        assert eye_landmarks_ear(eye(True)) == pytest.approx(1.0)
        assert eye_landmarks_ear(eye(False)) == pytest.approx(0.1)

    def test_too_few_points_reads_open(self):
        from interview_proctor.proctor.utils.geometry import eye_aspect_ratio, OPEN_EYE_EAR

        assert eye_aspect_ratio([(0, 0), (1, 1)], [(0, 0), (1, 1), (2, 2)]) == OPEN_EYE_EAR
        assert eye_aspect_ratio([], []) == OPEN_EYE_EAR

    def test_zero_width_reads_open(self):
        from interview_proctor.proctor.utils.geometry import eye_aspect_ratio, OPEN_EYE_EAR

        upper = [(1, 0), (1, -1), (1, -1), (1, 0)]
        lower = [(1, 0), (1, 1), (1, 1), (1, 0)]
        assert eye_aspect_ratio(upper, lower) == OPEN_EYE_EAR

    def test_average_with_missing_eye(self):
        """A missing eye counts as open"""
        from interview_proctor.proctor.utils.geometry import average_ear

        assert average_ear(eye(False), None) == pytest.approx(0.55)
        assert average_ear(None, None) == 1.0


class TestRoundHalfUp:
    """Tests for round_half_up"""

    @pytest.mark.parametrize("value,expected", [(10.5, 11), (12.5, 13), (2.4, 2), (0.0, 0), (99.5, 100)])
    def test_halves_go_up(self, value, expected):
        from interview_proctor.proctor.utils.geometry import round_half_up

        assert round_half_up(value) == expected
