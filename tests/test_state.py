import numpy as np
import pytest

from state import (Activities, GasState, PortStates, average_state, channel_conditions,
                   clamp_activity, extract_state, raw_activities)


def test_clamp_floors_tiny_activity_to_exact_value():
    assert clamp_activity(1e-10) == 1e-6
    assert clamp_activity(0.0) == 1e-6
    assert clamp_activity(-0.3) == 1e-6


def test_clamp_leaves_other_values_untouched():
    assert clamp_activity(1e-9) == 1e-9
    assert clamp_activity(5e-7) == 5e-7
    assert clamp_activity(0.73) == 0.73


def test_average_state():
    inflow = GasState(150000.0, 350.0, 0.2, 0.8)
    outflow = GasState(140000.0, 356.0, 0.3, 0.6)
    mean = average_state(inflow, outflow)
    assert mean.pressure == pytest.approx(145000.0)
    assert mean.temperature == pytest.approx(353.0)
    assert mean.water_mole_fraction == pytest.approx(0.25)
    assert mean.reactant_mole_fraction == pytest.approx(0.7)


def test_from_vector_reads_named_elements():
    vector = [120000.0, 345.0, 0.5, 0.01, 0.12, 0.0, 0.0, 0.85]
    state = GasState.from_vector(vector)
    assert state == GasState(120000.0, 345.0, 0.12, 0.85)


def test_from_vector_rejects_wrong_length():
    with pytest.raises(ValueError):
        GasState.from_vector([1.0, 2.0, 3.0])


def test_pressure_ratio_against_saturation_table(params):
    domain = params.anode_domain
    state = GasState(100000.0, 353.15, 0.2, 0.8)
    conditions = channel_conditions(state, state, domain, 353.15)
    expected = 100000.0 / np.exp(domain.log_p_sat(353.15))
    assert conditions.pressure_ratio == pytest.approx(expected, rel=1e-12)
    assert conditions.p_sat == pytest.approx(np.exp(domain.log_p_sat(353.15)))


def test_raw_activities(params):
    domain = params.cathode_domain
    anode = channel_conditions(GasState(202650.0, 353.15, 0.1, 0.5),
                               GasState(202650.0, 353.15, 0.1, 0.5), domain, 353.15)
    cathode = channel_conditions(GasState(101325.0, 353.15, 0.2, 0.21),
                                 GasState(101325.0, 353.15, 0.2, 0.21), domain, 353.15)
    a = raw_activities(anode, cathode, params.constants)
    assert a.hydrogen == pytest.approx(1.0)
    assert a.oxygen == pytest.approx(0.21)
    assert a.water_anode == pytest.approx(0.1 * anode.pressure_ratio)
    assert a.water_cathode == pytest.approx(0.2 * cathode.pressure_ratio)


def test_dry_inlet_activity_is_clamped(params):
    dry = GasState(150000.0, 353.15, 0.0, 1.0)
    humid = GasState(150000.0, 353.15, 0.25, 0.2)
    ports = PortStates(anode_in=dry, anode_out=dry, cathode_in=humid, cathode_out=humid)
    _, _, activities = extract_state(ports, params.anode_domain, params.cathode_domain,
                                     353.15, params.constants)
    assert isinstance(activities, Activities)
    assert activities.water_anode == 1e-6
    assert activities.water_cathode > 0.5


def test_port_states_from_config(params):
    ports = PortStates.from_config(params.config['operating_conditions'])
    assert ports.anode_in.pressure == 150000.0
    assert ports.cathode_out.water_mole_fraction == 0.28
