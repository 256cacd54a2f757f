import numpy as np
import pytest

from properties import GasDomain, PropertyTable, saturation_pressure


def test_linear_interpolation():
    table = PropertyTable([0.0, 10.0, 20.0], [0.0, 100.0, 300.0])
    assert table(5.0) == pytest.approx(50.0)
    assert table(15.0) == pytest.approx(200.0)
    assert table(10.0) == pytest.approx(100.0)


def test_linear_extrapolation():
    table = PropertyTable([0.0, 10.0, 20.0], [0.0, 100.0, 300.0], extrapolation="linear")
    assert table(-5.0) == pytest.approx(-50.0)
    assert table(25.0) == pytest.approx(400.0)


def test_nearest_extrapolation():
    table = PropertyTable([0.0, 10.0, 20.0], [0.0, 100.0, 300.0], extrapolation="nearest")
    assert table(-5.0) == pytest.approx(0.0)
    assert table(25.0) == pytest.approx(300.0)


@pytest.mark.parametrize("x, y, policy", [
    ([0.0, 1.0], [1.0], "linear"),
    ([0.0], [1.0], "linear"),
    ([0.0, 0.0, 1.0], [1.0, 2.0, 3.0], "linear"),
    ([0.0, 1.0], [1.0, 2.0], "cubic"),
])
def test_invalid_tables(x, y, policy):
    with pytest.raises(ValueError):
        PropertyTable(x, y, extrapolation=policy)


def test_saturation_pressure_reference_values():
    assert saturation_pressure(373.15) == pytest.approx(101325.0, rel=0.05)
    assert saturation_pressure(353.15) == pytest.approx(47390.0, rel=0.02)


def test_domain_tables():
    anode = GasDomain.anode()
    cathode = GasDomain.cathode()
    assert np.exp(anode.log_p_sat(353.15)) == pytest.approx(saturation_pressure(353.15), rel=1e-3)
    assert anode.h_gas(273.15) == pytest.approx(0.0, abs=1e-6)
    assert anode.h_water(298.15) > cathode.h_water(273.15)
    assert 5e-6 < anode.viscosity(353.15) < cathode.viscosity(353.15)


def test_domain_honours_table_config():
    domain = GasDomain.cathode({'temperature_min_K': 300.0, 'temperature_max_K': 320.0,
                                'num_points': 3, 'extrapolation': 'nearest'})
    assert list(domain.h_gas.x) == [300.0, 310.0, 320.0]
    assert domain.h_gas(400.0) == pytest.approx(domain.h_gas(320.0))
