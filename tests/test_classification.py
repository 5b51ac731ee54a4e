"""Tests de la regla de anomalía."""

import pytest

from relay_api.classification import classify


class TestClassify:
    """weight > threshold es anómalo; todo lo demás es normal."""

    @pytest.mark.parametrize("weight", [0.0, 1.0, 3000.0, 4999.999, -10.0])
    def test_below_threshold_is_normal(self, weight):
        assert classify(weight, 5000.0) is False

    def test_boundary_is_normal(self):
        """weight == threshold NO es anomalía."""
        assert classify(5000.0, 5000.0) is False

    @pytest.mark.parametrize("weight", [5000.0001, 6000.0, 9000.0, 1e9])
    def test_above_threshold_is_anomaly(self, weight):
        assert classify(weight, 5000.0) is True

    def test_uses_given_threshold(self):
        assert classify(150.0, 100.0) is True
        assert classify(150.0, 200.0) is False
