import pytest

from energy import EnergyBalance


@pytest.fixture(scope="module")
def energy(params):
    return EnergyBalance(params, params.anode_domain, params.cathode_domain)


def test_species_rates_follow_faraday(energy, params):
    rates = energy.calculate_species_rates(5000.0)
    current = 400 * 5000.0 * params.stack.cell_area
    F = params.constants.F
    assert rates.hydrogen_consumed == pytest.approx(current / (2 * F))
    assert rates.oxygen_consumed == pytest.approx(rates.hydrogen_consumed / 2)
    assert rates.water_produced == pytest.approx(rates.hydrogen_consumed)


def test_no_current_no_power(energy):
    balance = energy.calculate_power_balance(0.0, 1.1, 0.0, 353.15, 353.15, 353.15)
    assert balance.electrical == 0.0
    assert balance.reaction == 0.0
    assert balance.net == pytest.approx(0.0, abs=1e-12)
    assert balance.heat_flow == pytest.approx(0.0, abs=1e-12)


def test_sensible_term_vanishes_at_standard_temperature(energy, params):
    rates = energy.calculate_species_rates(5000.0)
    assert energy.calculate_sensible_power(rates, params.constants.T_std) == pytest.approx(0.0, abs=1e-6)


def test_transport_term_zero_for_equal_channel_temperatures(energy):
    assert energy.calculate_transport_power(0.05, 353.15, 353.15) == pytest.approx(0.0, abs=1e-9)
    assert energy.calculate_transport_power(0.05, 358.15, 353.15) > 0.0


def test_heat_flow_is_negative_dissipation(energy, params):
    balance = energy.calculate_power_balance(5000.0, 0.7, 0.01, 353.15, 353.15, 353.15)
    assert balance.electrical == pytest.approx(400 * 0.7 * 5000.0 * params.stack.cell_area)
    assert balance.net == pytest.approx(balance.reaction + balance.sensible + balance.water_transport)
    assert balance.dissipated == pytest.approx(balance.net - balance.electrical)
    assert balance.heat_flow == -balance.dissipated
    assert balance.dissipated > 0.0
