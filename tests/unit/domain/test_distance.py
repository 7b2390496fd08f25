"""Unit tests for great-circle distance."""

import pytest

from domain.services.distance import haversine_km


class TestHaversine:
    def test_same_point_is_zero(self) -> None:
        assert haversine_km(22.5535, 88.352, 22.5535, 88.352) == pytest.approx(0.0)

    def test_one_degree_of_longitude_at_equator(self) -> None:
        assert haversine_km(0.0, 0.0, 0.0, 1.0) == pytest.approx(111.195, abs=0.01)

    def test_symmetric(self) -> None:
        there = haversine_km(22.5535, 88.352, 12.9716, 77.5946)
        back = haversine_km(12.9716, 77.5946, 22.5535, 88.352)

        assert there == pytest.approx(back)
