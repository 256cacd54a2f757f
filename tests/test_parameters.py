import pytest

from parameters import (ConfigurationError, Parameters, derive_constants,
                        validate_parameters)
from properties import GasDomain


def test_units_converted_to_si(params):
    s = params.stack
    assert s.num_cells == 400
    assert s.cell_area == pytest.approx(0.028)
    assert s.membrane_thickness == pytest.approx(125e-6)
    assert s.gdl_thickness == pytest.approx(250e-6)
    assert s.exchange_current_density == pytest.approx(1e-2)
    assert s.limiting_current_density == pytest.approx(1.4e4)
    assert s.gdl_water_diffusivity == pytest.approx(7e-6)
    assert s.membrane_dry_density == pytest.approx(2000.0)


def test_derived_constants(params):
    c = params.constants
    assert c.E0 == pytest.approx(1.2289, abs=1e-4)
    assert c.M_H2O == pytest.approx(18.015e-3, rel=1e-3)
    assert c.M_O2 == pytest.approx(32.0e-3, rel=1e-3)
    assert c.M_H2 == pytest.approx(2.016e-3, rel=1e-3)
    assert c.latent_heat == pytest.approx(2.4418e6, rel=1e-4)
    assert c.LHV == pytest.approx(241.8e3, rel=1e-3)
    assert c.LHV < c.HHV


def test_constant_derivation_is_deterministic(params):
    again = derive_constants(GasDomain.anode(params.config['property_tables']),
                             GasDomain.cathode(params.config['property_tables']))
    assert again == params.constants


def test_get_value_and_get_all(params):
    assert params.get_value('num_cells') == 400
    assert params.get_value('solver_max_iterations') == 400
    everything = params.get_all()
    everything['num_cells'] = 1
    assert params.get_value('num_cells') == 400
    with pytest.raises(KeyError):
        params.get_value('no_such_parameter')


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Parameters(str(tmp_path / "missing.yaml"))


def test_malformed_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("stack_parameters: [unclosed\n")
    with pytest.raises(ValueError):
        Parameters(str(path))


def test_all_violations_reported(config):
    config['stack_parameters']['cell_area_cm2'] = -1.0
    config['stack_parameters']['membrane_thickness_um'] = 0.0
    with pytest.raises(ConfigurationError) as excinfo:
        Parameters.from_dict(config)
    violations = excinfo.value.violations
    assert len(violations) == 2
    assert any('cell_area' in v for v in violations)
    assert any('membrane_thickness' in v for v in violations)


def test_limiting_must_exceed_exchange_current(config):
    config['stack_parameters']['exchange_current_density_Acm2'] = 2.0
    with pytest.raises(ConfigurationError, match='limiting_current_density'):
        Parameters.from_dict(config)


def test_missing_stack_parameter(config):
    del config['stack_parameters']['gdl_thickness_um']
    with pytest.raises(ConfigurationError, match='gdl_thickness_um'):
        Parameters.from_dict(config)


def test_fractional_cell_count_rejected(params):
    from dataclasses import replace
    with pytest.raises(ConfigurationError, match='whole number'):
        validate_parameters(replace(params.stack, num_cells=10.5))


def test_configuration_error_is_value_error():
    assert issubclass(ConfigurationError, ValueError)
