import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import os
import pandas as pd
import re
from typing import Dict, List, Optional, Union


class Plotter:
    """
    Visualization of solved polarization sweeps. Current densities are
    plotted in A/cm^2; all inputs are in the internal A/m^2.
    """

    def __init__(self, output_dir: str = "results/plots"):
        """
        Args:
            output_dir (str): Directory where figures are saved. Created if missing.
        """
        self.output_dir: str = output_dir
        os.makedirs(self.output_dir, exist_ok=True)

        plt.rcParams.update({
            'font.size': 12,
            'axes.labelsize': 14,
            'axes.titlesize': 16,
            'xtick.labelsize': 12,
            'ytick.labelsize': 12,
            'legend.fontsize': 10,
            'figure.figsize': (8, 6),
            'lines.linewidth': 2,
            'axes.grid': True,
            'grid.alpha': 0.75
        })

    def _convert_j_to_acm2(self, J_Am2: np.ndarray) -> np.ndarray:
        return np.asarray(J_Am2, dtype=float) / 10000.0

    def _extract_numeric_value(self, s: str) -> float:
        """
        First number in a legend label (e.g. "353 K"), used to sort curves.
        Defaults to 0.0 when the label has none.
        """
        match: Union[re.Match, None] = re.search(r"[-+]?\d*\.?\d+", s)
        if match:
            return float(match.group(0))
        return 0.0

    def _save(self, fig, filename: str) -> str:
        path = os.path.join(self.output_dir, filename)
        fig.tight_layout()
        fig.savefig(path)
        plt.close(fig)
        return path

    def plot_polarization_curve(
        self,
        results: pd.DataFrame,
        title: str,
        filename: str,
        reference: Optional[pd.DataFrame] = None
    ) -> str:
        """
        Cell voltage and power density against current density.

        Args:
            results (pd.DataFrame): Solver output with 'J' and 'V_cell' columns.
            title (str): Plot title.
            filename (str): File name inside the output directory.
            reference (pd.DataFrame, optional): Reference data with 'J' and 'V_exp'.

        Returns:
            str: Path of the saved figure.
        """
        fig, ax = plt.subplots()
        J_Acm2 = self._convert_j_to_acm2(results['J'])
        V_cell = results['V_cell'].to_numpy()

        ax.plot(J_Acm2, V_cell, label="Model", color='blue')
        if reference is not None:
            ax.plot(self._convert_j_to_acm2(reference['J']), reference['V_exp'].to_numpy(), 'o',
                    label="Reference", color='red', markersize=5)

        ax.set_xlabel("Current density (A/cm$^2$)")
        ax.set_ylabel("Cell voltage (V)")
        ax.set_title(title)

        ax_power = ax.twinx()
        ax_power.plot(J_Acm2, J_Acm2 * V_cell, linestyle='--', color='gray', label="Power density")
        ax_power.set_ylabel("Power density (W/cm$^2$)")
        ax_power.grid(False)

        lines, labels = ax.get_legend_handles_labels()
        lines_p, labels_p = ax_power.get_legend_handles_labels()
        ax.legend(lines + lines_p, labels + labels_p, loc='best')
        return self._save(fig, filename)

    def plot_loss_breakdown(
        self,
        J_values_Am2: np.ndarray,
        losses: Dict[str, np.ndarray],
        title: str,
        filename: str
    ) -> str:
        """
        Cumulative voltage curves: Nernst voltage, then each loss subtracted
        in turn down to the cell voltage.

        Args:
            losses (Dict[str, np.ndarray]): 'V_nernst', 'V_act', 'V_ohmic', 'V_conc'.
        """
        fig, ax = plt.subplots()
        J_Acm2 = self._convert_j_to_acm2(J_values_Am2)

        v_nernst = losses['V_nernst']
        after_act = v_nernst - losses['V_act']
        after_ohmic = after_act - losses['V_ohmic']
        after_conc = after_ohmic - losses['V_conc']

        ax.plot(J_Acm2, v_nernst, label="Nernst voltage", linestyle='--', color='brown')
        ax.plot(J_Acm2, after_act, label="Activation loss subtracted", color='purple')
        ax.plot(J_Acm2, after_ohmic, label="Ohmic loss subtracted", color='orange')
        ax.plot(J_Acm2, after_conc, label="Concentration loss subtracted (cell voltage)", color='blue')

        ax.set_xlabel("Current density (A/cm$^2$)")
        ax.set_ylabel("Voltage (V)")
        ax.set_title(title)
        ax.legend(loc='best')
        return self._save(fig, filename)

    def plot_water_fluxes(self, results: pd.DataFrame, title: str, filename: str) -> str:
        """Membrane water-flux components (anode -> cathode positive)."""
        fig, ax = plt.subplots()
        J_Acm2 = self._convert_j_to_acm2(results['J'])

        ax.plot(J_Acm2, results['N_diffusion'].to_numpy(), label="Back-diffusion", color='green')
        ax.plot(J_Acm2, results['N_drag'].to_numpy(), label="Electro-osmotic drag", color='red')
        ax.plot(J_Acm2, results['N_hydraulic'].to_numpy(), label="Hydraulic", color='purple')
        ax.plot(J_Acm2, results['N_total'].to_numpy(), label="Total", color='black', linestyle='--')

        ax.set_xlabel("Current density (A/cm$^2$)")
        ax.set_ylabel("Water flux (mol m$^{-2}$ s$^{-1}$)")
        ax.set_title(title)
        ax.legend(loc='best')
        return self._save(fig, filename)

    def plot_sensitivity(
        self,
        J_values_Am2: np.ndarray,
        data_map: Dict[str, np.ndarray],
        y_axis_label: str,
        legend_title: str,
        title: str,
        filename: str
    ) -> str:
        """
        One curve per value of a varied parameter. Keys of `data_map` are
        legend labels such as "353 K"; curves are ordered by their number.
        """
        fig, ax = plt.subplots()
        J_Acm2 = self._convert_j_to_acm2(J_values_Am2)

        sorted_labels: List[str] = sorted(data_map.keys(), key=self._extract_numeric_value)
        for label in sorted_labels:
            ax.plot(J_Acm2, data_map[label], label=label)

        ax.set_xlabel("Current density (A/cm$^2$)")
        ax.set_ylabel(y_axis_label)
        ax.set_title(title)
        ax.legend(title=legend_title, loc='best')
        return self._save(fig, filename)
