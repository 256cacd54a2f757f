import logging
import numpy as np
import pandas as pd
from dataclasses import dataclass
from scipy.optimize import fsolve
from typing import Any, Dict, List, Optional, Sequence

from residual import FuelCellStack, StackInputs, StackOutputs, UnknownActivities
from state import PortStates

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-10
DEFAULT_MAX_ITERATIONS = 400

# Column order of the result tables, one row per solved operating point
RESULT_COLUMNS = [
    'J', 'V_cell', 'V_stack', 'V_nernst', 'V_act', 'V_ohmic', 'V_conc', 'R_membrane',
    'a_ACL', 'a_CCL', 'lambda_anode', 'lambda_cathode', 'sigma_membrane',
    'N_diffusion', 'N_drag', 'N_hydraulic', 'N_total', 'n_H2', 'n_O2', 'n_H2O',
    'P_electrical', 'P_net', 'P_dissipated', 'Q_heat_flow', 'converged', 'residual_norm',
]


@dataclass(frozen=True)
class SolverResult:
    activities: UnknownActivities
    outputs: StackOutputs
    converged: bool
    residual_norm: float
    iterations: int
    message: str


class Solver:
    """
    Drives the stack residual to zero. For each operating point the two
    catalyst-layer water activities are found with a Newton-type root solve
    (MINPACK hybrd via scipy.optimize.fsolve); the stack itself has no
    internal iteration.
    """

    def __init__(self, stack: FuelCellStack, tolerance: float = DEFAULT_TOLERANCE,
                 max_iterations: int = DEFAULT_MAX_ITERATIONS):
        """
        Args:
            stack (FuelCellStack): Residual model to solve.
            tolerance (float): Relative tolerance between iterates passed to fsolve.
            max_iterations (int): Upper bound on residual evaluations.
        """
        self.stack = stack
        self.tolerance = tolerance
        self.max_iterations = max_iterations

    @classmethod
    def from_params(cls, params: "Parameters") -> "Solver":
        return cls(
            FuelCellStack(params),
            tolerance=params.get_all().get('solver_tolerance', DEFAULT_TOLERANCE),
            max_iterations=params.get_all().get('solver_max_iterations', DEFAULT_MAX_ITERATIONS),
        )

    def build_inputs(self, ports: PortStates, stack_temperature: float,
                     current_density: float) -> StackInputs:
        """Stack inputs for a discharging current density (A/m^2)."""
        branch_current = -current_density * self.stack.stack.cell_area
        return StackInputs(ports=ports, stack_temperature=stack_temperature,
                           branch_current=branch_current)

    def solve_operating_point(self, inputs: StackInputs,
                              initial_guess: Optional[Sequence[float]] = None) -> SolverResult:
        """
        Solves the flux-continuity equations for the catalyst-layer activities.

        Args:
            inputs (StackInputs): Operating point.
            initial_guess (Sequence[float], optional): Starting activities; the
                clamped channel activities are used when omitted.

        Returns:
            SolverResult: Converged (or last) activities and the stack outputs there.
        """
        if initial_guess is None:
            initial_guess = self.stack.channel_activities(inputs)
        x0 = np.asarray(initial_guess, dtype=float)

        solution, info, ier, message = fsolve(
            lambda x: self.stack.flux_residual(inputs, x),
            x0,
            xtol=self.tolerance,
            maxfev=self.max_iterations,
            full_output=True,
        )

        activities = UnknownActivities(float(solution[0]), float(solution[1]))
        outputs = self.stack.evaluate(inputs, activities)
        residual_norm = float(np.linalg.norm(outputs.flux_residual))
        converged = ier == 1
        if not converged:
            logger.warning(
                "Activity solve did not converge at i = %.1f A/m^2, T = %.2f K: %s (|r| = %.3e)",
                outputs.current_density, inputs.stack_temperature, message, residual_norm,
            )
        else:
            logger.debug("Solved i = %.1f A/m^2 in %d evaluations, |r| = %.3e",
                         outputs.current_density, info['nfev'], residual_norm)

        return SolverResult(
            activities=activities,
            outputs=outputs,
            converged=converged,
            residual_norm=residual_norm,
            iterations=int(info['nfev']),
            message=message,
        )

    def solve_polarization_curve(self, current_densities: Sequence[float], ports: PortStates,
                                 stack_temperature: float) -> pd.DataFrame:
        """
        Solves a sequence of operating points at fixed port states and stack
        temperature, warm-starting each point from the previous solution.

        Args:
            current_densities (Sequence[float]): Current densities (A/m^2).
            ports (PortStates): Inflow/outflow states of both channels.
            stack_temperature (float): Stack temperature (K).

        Returns:
            pd.DataFrame: One row per current density with voltages, losses,
            water fluxes, power terms and convergence information.
        """
        rows: List[Dict[str, Any]] = []
        guess: Optional[UnknownActivities] = None

        for i_cell in current_densities:
            inputs = self.build_inputs(ports, stack_temperature, float(i_cell))
            result = self.solve_operating_point(inputs, guess)
            if result.converged:
                guess = result.activities
            rows.append(self.to_record(result))

        return pd.DataFrame(rows, columns=RESULT_COLUMNS)

    def solve_schedule(self, schedule: pd.DataFrame, ports: PortStates) -> pd.DataFrame:
        """
        Solves the operating points of a schedule (columns 'J' in A/m^2 and
        'T_stack' in K) in order. Each point starts from the previous solution.
        """
        rows: List[Dict[str, Any]] = []
        guess: Optional[UnknownActivities] = None

        for i_cell, T_stack in zip(schedule['J'], schedule['T_stack']):
            inputs = self.build_inputs(ports, float(T_stack), float(i_cell))
            result = self.solve_operating_point(inputs, guess)
            if result.converged:
                guess = result.activities
            record = self.to_record(result)
            record['T_stack'] = float(T_stack)
            rows.append(record)

        return pd.DataFrame(rows, columns=RESULT_COLUMNS + ['T_stack'])

    @staticmethod
    def to_record(result: SolverResult) -> Dict[str, Any]:
        out = result.outputs
        d = out.derived
        return {
            'J': out.current_density,
            'V_cell': out.v_cell,
            'V_stack': out.v_stack,
            'V_nernst': d.v_nernst,
            'V_act': d.v_act,
            'V_ohmic': d.v_ohmic,
            'V_conc': d.v_conc,
            'R_membrane': d.r_membrane,
            'a_ACL': result.activities.anode,
            'a_CCL': result.activities.cathode,
            'lambda_anode': d.water.lambda_anode,
            'lambda_cathode': d.water.lambda_cathode,
            'sigma_membrane': d.water.conductivity,
            'N_diffusion': d.water.diffusion,
            'N_drag': d.water.drag,
            'N_hydraulic': d.water.hydraulic,
            'N_total': d.water.total,
            'n_H2': out.hydrogen_consumption,
            'n_O2': out.oxygen_consumption,
            'n_H2O': out.water_production,
            'P_electrical': d.power.electrical,
            'P_net': d.power.net,
            'P_dissipated': d.power.dissipated,
            'Q_heat_flow': out.heat_flow,
            'converged': result.converged,
            'residual_norm': result.residual_norm,
        }
