import logging
import numpy as np
import pandas as pd
import pytest

from solver import Solver


def test_reference_point_satisfies_flux_equations(solver, reference_inputs):
    result = solver.solve_operating_point(reference_inputs)
    assert result.converged, result.message
    assert result.residual_norm < 1e-8
    residual = solver.stack.flux_residual(reference_inputs, result.activities)
    assert residual == pytest.approx([0.0, 0.0], abs=1e-8)
    assert 0.0 < result.activities.anode < 1.5
    assert 0.0 < result.activities.cathode < 1.5


def test_reference_point_solution_is_reproducible(solver, reference_inputs):
    first = solver.solve_operating_point(reference_inputs)
    second = solver.solve_operating_point(reference_inputs)
    assert first.activities == second.activities
    assert first.outputs.v_cell == second.outputs.v_cell


def test_solution_independent_of_starting_point(solver, reference_inputs):
    default = solver.solve_operating_point(reference_inputs)
    other = solver.solve_operating_point(reference_inputs, initial_guess=(0.4, 0.95))
    assert other.converged
    assert other.activities.anode == pytest.approx(default.activities.anode, abs=1e-6)
    assert other.activities.cathode == pytest.approx(default.activities.cathode, abs=1e-6)


def test_cathode_wetter_than_channel_under_load(solver, reference_inputs):
    result = solver.solve_operating_point(reference_inputs)
    channel = solver.stack.channel_activities(reference_inputs)
    # Product water has to diffuse out through the cathode GDL
    assert result.activities.cathode > channel.cathode


def test_polarization_curve(solver, ports):
    J = np.linspace(0.0, 1.2e4, 7)
    results = solver.solve_polarization_curve(J, ports, 353.15)
    assert isinstance(results, pd.DataFrame)
    assert len(results) == len(J)
    assert results['converged'].all()
    assert (results['residual_norm'] < 1e-8).all()
    v_cell = results['V_cell'].to_numpy()
    assert np.all(np.diff(v_cell) < 0.0)
    assert results['P_electrical'].iloc[0] == 0.0
    assert v_cell[0] == pytest.approx(results['V_nernst'].iloc[0])


def test_solve_schedule(solver, ports):
    schedule = pd.DataFrame({'J': [2000.0, 5000.0], 'T_stack': [343.15, 353.15]})
    results = solver.solve_schedule(schedule, ports)
    assert list(results['T_stack']) == [343.15, 353.15]
    assert results['converged'].all()


def test_non_convergence_is_reported(stack, reference_inputs, caplog):
    starved = Solver(stack, tolerance=1e-14, max_iterations=3)
    with caplog.at_level(logging.WARNING, logger="solver"):
        result = starved.solve_operating_point(reference_inputs)
    assert not result.converged
    assert result.iterations <= 10
    assert "did not converge" in caplog.text


def test_solver_settings_default_when_not_configured(config):
    from parameters import Parameters
    from solver import DEFAULT_MAX_ITERATIONS, DEFAULT_TOLERANCE

    config.pop('solver_parameters', None)
    default = Solver.from_params(Parameters.from_dict(config))
    assert default.tolerance == DEFAULT_TOLERANCE
    assert default.max_iterations == DEFAULT_MAX_ITERATIONS

    config['solver_parameters'] = {'solver_tolerance': 1e-8, 'solver_max_iterations': 50}
    configured = Solver.from_params(Parameters.from_dict(config))
    assert configured.tolerance == 1e-8
    assert configured.max_iterations == 50


def test_empty_sweep_keeps_result_columns(solver, ports):
    from solver import RESULT_COLUMNS

    results = solver.solve_polarization_curve([], ports, 353.15)
    assert results.empty
    assert list(results.columns) == RESULT_COLUMNS
    schedule = solver.solve_schedule(pd.DataFrame({'J': [], 'T_stack': []}), ports)
    assert list(schedule.columns) == RESULT_COLUMNS + ['T_stack']
