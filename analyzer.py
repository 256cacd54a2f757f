import numpy as np
import pandas as pd
from typing import Dict

from parameters import Parameters


class Analyzer:
    """
    Post-processing of solved operating points: stack efficiency, voltage
    loss breakdown, water-management indicators and deviation from
    reference polarization data.
    """

    def __init__(self, params: Parameters):
        """
        Args:
            params (Parameters): Loaded stack parameters and derived constants.
        """
        self.F: float = params.constants.F
        self.LHV: float = params.constants.LHV
        self.HHV: float = params.constants.HHV

    def calculate_efficiency(self, results: pd.DataFrame) -> pd.Series:
        """
        Electrical efficiency on a lower-heating-value basis,
        P_electrical / (n_H2 * LHV). Zero where no hydrogen is consumed.
        """
        fuel_power = results['n_H2'].to_numpy(dtype=float) * self.LHV
        electrical = results['P_electrical'].to_numpy(dtype=float)
        efficiency = np.zeros_like(fuel_power, dtype=float)
        consuming = fuel_power > 0.0
        efficiency[consuming] = electrical[consuming] / fuel_power[consuming]
        return pd.Series(efficiency, index=results.index, name='efficiency_LHV')

    def calculate_voltage_efficiency(self, v_cell: np.ndarray) -> np.ndarray:
        """Cell voltage relative to the thermoneutral (HHV) voltage."""
        return np.asarray(v_cell, dtype=float) / (self.HHV / (2 * self.F))

    def calculate_loss_breakdown(self, results: pd.DataFrame) -> Dict[str, np.ndarray]:
        """
        Splits the cell voltage into Nernst voltage and the three losses.

        Returns:
            Dict[str, np.ndarray]: 'V_nernst', 'V_act', 'V_ohmic', 'V_conc'
            and 'V_loss_total'.
        """
        v_act = results['V_act'].to_numpy()
        v_ohmic = results['V_ohmic'].to_numpy()
        v_conc = results['V_conc'].to_numpy()
        return {
            'V_nernst': results['V_nernst'].to_numpy(),
            'V_act': v_act,
            'V_ohmic': v_ohmic,
            'V_conc': v_conc,
            'V_loss_total': v_act + v_ohmic + v_conc,
        }

    def calculate_net_drag_ratio(self, results: pd.DataFrame) -> np.ndarray:
        """
        Net water transport per proton, N_total * F / i. Positive values mean
        the anode is being dried by drag faster than back-diffusion returns
        water. NaN where no current flows.
        """
        J = results['J'].to_numpy(dtype=float)
        N_total = results['N_total'].to_numpy(dtype=float)
        ratio = np.full_like(J, np.nan, dtype=float)
        flowing = J > 0.0
        ratio[flowing] = N_total[flowing] * self.F / J[flowing]
        return ratio

    def check_convergence(self, results: pd.DataFrame, tolerance: float = 1e-8) -> Dict[str, float]:
        """Summary of solver convergence across all rows."""
        residuals = results['residual_norm'].to_numpy(dtype=float)
        return {
            'points': float(len(results)),
            'converged': float(results['converged'].sum()),
            'max_residual': float(np.max(residuals)) if residuals.size else 0.0,
            'within_tolerance': float(np.sum(residuals <= tolerance)),
        }

    def calculate_deviation(self, model_data: np.ndarray, exp_data: np.ndarray) -> Dict[str, float]:
        """
        Difference between model predictions and reference data: maximum
        absolute percentage deviation, RMSE and MAPE.

        Raises:
            ValueError: If the arrays have different shapes.
        """
        model_data = np.asarray(model_data, dtype=float)
        exp_data = np.asarray(exp_data, dtype=float)
        if model_data.size == 0 or exp_data.size == 0:
            return {"max_abs_deviation_pct": 0.0, "rmse": 0.0, "mape": 0.0}

        if model_data.shape != exp_data.shape:
            raise ValueError(
                f"Model data shape {model_data.shape} does not match "
                f"experimental data shape {exp_data.shape}."
            )

        rmse = float(np.sqrt(np.mean((model_data - exp_data)**2)))

        non_zero = np.abs(exp_data) > 1e-9
        if not np.any(non_zero):
            return {"max_abs_deviation_pct": 0.0, "rmse": rmse, "mape": 0.0}

        relative = np.abs(model_data[non_zero] - exp_data[non_zero]) / np.abs(exp_data[non_zero])
        return {
            "max_abs_deviation_pct": float(np.max(relative) * 100.0),
            "rmse": rmse,
            "mape": float(np.mean(relative) * 100.0),
        }
