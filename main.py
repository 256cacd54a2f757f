import logging
import numpy as np
import os
import sys
from typing import Any, Dict

from analyzer import Analyzer
from data_loader import DataLoader
from parameters import ACM2_TO_AM2, Parameters
from plotter import Plotter
from solver import Solver
from state import PortStates


class Main:
    """
    Entry point of the fuel-cell stack model. Loads the configuration,
    solves the reference operating point and the polarization sweep, runs
    the temperature sensitivity study and writes results and plots.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Args:
            config_path (str): Path to the YAML configuration file.
        """
        self.config_path = config_path
        self.params = Parameters(config_path)
        self.config: Dict[str, Any] = self.params.config

        self.solver = Solver.from_params(self.params)
        self.analyzer = Analyzer(self.params)
        self.data_loader = DataLoader()

        output_cfg = self.config.get('output', {})
        self.results_dir: str = output_cfg.get('results_dir', 'results')
        self.plotter = Plotter(output_cfg.get('plots_dir', os.path.join(self.results_dir, 'plots')))
        self.reference_data_file = output_cfg.get('reference_data_file')
        self.schedule_file = output_cfg.get('schedule_file')

        operating_cfg = self.config['operating_conditions']
        self.ports: PortStates = PortStates.from_config(operating_cfg)
        self.base_temp_K: float = operating_cfg['stack_temperature_K']
        self.base_current_density_Am2: float = operating_cfg['current_density_Acm2'] * ACM2_TO_AM2

        sweep_cfg = self.config['polarization_sweep']
        self.J_values_Am2: np.ndarray = np.linspace(
            sweep_cfg['start_Acm2'], sweep_cfg['end_Acm2'], int(sweep_cfg['num_points'])
        ) * ACM2_TO_AM2

    def run_simulation(self) -> None:
        print("Starting PEM fuel-cell stack simulation...\n")

        self._print_parameters()
        self._run_reference_point()
        self._run_polarization_curve()
        self._run_temperature_sensitivity()
        if self.schedule_file:
            self._run_schedule()

        print(f"\nSimulation complete. Results saved to '{self.results_dir}'.")

    def _print_parameters(self) -> None:
        c = self.params.constants
        s = self.params.stack
        print("--- Stack Parameters ---")
        print(f"  Cells: {s.num_cells}, active area: {s.cell_area * 1e4:.1f} cm^2")
        print(f"  E0 = {c.E0:.4f} V, LHV = {c.LHV / 1e3:.2f} kJ/mol, HHV = {c.HHV / 1e3:.2f} kJ/mol")
        print(f"  M(H2O) = {c.M_H2O * 1e3:.3f} g/mol, M(O2) = {c.M_O2 * 1e3:.3f} g/mol, "
              f"M(H2) = {c.M_H2 * 1e3:.3f} g/mol")
        print("------------------------\n")

    def _run_reference_point(self) -> None:
        print("--- Reference Operating Point ---")
        inputs = self.solver.build_inputs(self.ports, self.base_temp_K, self.base_current_density_Am2)
        result = self.solver.solve_operating_point(inputs)
        out = result.outputs
        d = out.derived

        status = "converged" if result.converged else f"NOT converged ({result.message})"
        print(f"  Solver {status} after {result.iterations} evaluations, |r| = {result.residual_norm:.2e}")
        print(f"  a_ACL = {result.activities.anode:.4f}, a_CCL = {result.activities.cathode:.4f}")
        print(f"  V_cell = {out.v_cell:.4f} V (Nernst {d.v_nernst:.4f}, act {d.v_act:.4f}, "
              f"ohmic {d.v_ohmic:.4f}, conc {d.v_conc:.4f})")
        print(f"  V_stack = {out.v_stack:.2f} V, I = {-out.current:.1f} A")
        print(f"  P_electrical = {d.power.electrical / 1e3:.2f} kW, heat flow = {out.heat_flow / 1e3:.2f} kW")
        print(f"  H2 consumption = {out.hydrogen_consumption:.4f} mol/s, "
              f"O2 consumption = {out.oxygen_consumption:.4f} mol/s, "
              f"H2O production = {out.water_production:.4f} mol/s")
        print("---------------------------------\n")

    def _run_polarization_curve(self) -> None:
        print("--- Polarization Curve ---")
        results = self.solver.solve_polarization_curve(self.J_values_Am2, self.ports, self.base_temp_K)
        results['efficiency_LHV'] = self.analyzer.calculate_efficiency(results)
        results['net_drag_ratio'] = self.analyzer.calculate_net_drag_ratio(results)

        summary = self.analyzer.check_convergence(results)
        print(f"  {int(summary['converged'])}/{int(summary['points'])} points converged, "
              f"max |r| = {summary['max_residual']:.2e}")

        path = self.data_loader.save_results(results, os.path.join(self.results_dir, "polarization_curve.csv"))
        print(f"  Results saved: {path}")

        reference = None
        if self.reference_data_file:
            try:
                reference = self.data_loader.load_reference_data(self.reference_data_file)
                model_V = np.interp(reference['J'].to_numpy(), results['J'].to_numpy(),
                                    results['V_cell'].to_numpy())
                deviation = self.analyzer.calculate_deviation(model_V, reference['V_exp'].to_numpy())
                print(f"  Deviation from reference: max {deviation['max_abs_deviation_pct']:.2f}%, "
                      f"RMSE {deviation['rmse']:.4f} V, MAPE {deviation['mape']:.2f}%")
            except (FileNotFoundError, ValueError) as e:
                print(f"  Error: {e}. Skipping reference comparison.")
                reference = None

        self.plotter.plot_polarization_curve(results, "Stack Polarization Curve",
                                             "polarization_curve.png", reference)
        self.plotter.plot_loss_breakdown(results['J'].to_numpy(),
                                         self.analyzer.calculate_loss_breakdown(results),
                                         "Voltage Loss Breakdown", "loss_breakdown.png")
        self.plotter.plot_water_fluxes(results, "Membrane Water Transport", "water_fluxes.png")
        print("  Polarization, loss breakdown and water transport plots generated.")
        print("--------------------------\n")

    def _run_temperature_sensitivity(self) -> None:
        temperatures = self.config.get('sensitivity_analysis', {}).get('stack_temperatures_K', [])
        if not temperatures:
            return

        print("--- Temperature Sensitivity ---")
        v_cell_by_temp: Dict[str, np.ndarray] = {}
        for T in temperatures:
            results = self.solver.solve_polarization_curve(self.J_values_Am2, self.ports, float(T))
            v_cell_by_temp[f"{T:.0f} K"] = results['V_cell'].to_numpy()
            print(f"  {T:.2f} K: {int(results['converged'].sum())}/{len(results)} points converged")

        self.plotter.plot_sensitivity(self.J_values_Am2, v_cell_by_temp, "Cell voltage (V)",
                                      "Stack temperature", "Effect of Stack Temperature",
                                      "temperature_sensitivity.png")
        print("-------------------------------\n")

    def _run_schedule(self) -> None:
        print("--- Operating Schedule ---")
        try:
            schedule = self.data_loader.load_operating_schedule(self.schedule_file)
        except (FileNotFoundError, ValueError) as e:
            print(f"  Error: {e}. Skipping schedule.")
            return

        results = self.solver.solve_schedule(schedule, self.ports)
        path = self.data_loader.save_results(results, os.path.join(self.results_dir, "schedule_results.csv"))
        print(f"  Solved {len(results)} operating points, results saved: {path}")
        print("--------------------------\n")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    main_app = Main(sys.argv[1] if len(sys.argv) > 1 else "config.yaml")
    main_app.run_simulation()
