import numpy as np

# Fraction of the limiting current density above which the concentration
# loss is continued linearly
CONCENTRATION_LINEAR_FRACTION = 0.999


class Model:
    """
    Electrochemical model of a PEM fuel-cell stack. Each voltage component
    (Nernst voltage, activation, concentration and ohmic losses) is a
    dedicated method; all are pure functions of their arguments and of the
    immutable parameter set.
    """

    def __init__(self, params: "Parameters"):
        """
        Initializes the Model with a Parameters object.

        Args:
            params (Parameters): Loaded stack parameters and derived constants.
        """
        self.stack = params.stack
        self.constants = params.constants

    def calculate_current_density(self, branch_current: float) -> float:
        """
        Converts the terminal branch current into cell current density.

        Logic:
        - The stack discharges when the branch current is zero or negative;
          the current density is then -I / A_cell.
        - Charging (positive branch current) is not modelled; the current
          density is zero.

        Args:
            branch_current (float): Current through the electrical branch (A).

        Returns:
            float: Current density (A/m^2), never negative.
        """
        if branch_current <= 0.0:
            return -branch_current / self.stack.cell_area
        return 0.0

    def calculate_v_nernst(self, T: float, a_H2: float, a_O2: float, a_H2O: float) -> float:
        """
        Calculates the Nernst voltage for H2 + 1/2 O2 -> H2O.

        Args:
            T (float): Stack temperature (K).
            a_H2 (float): Hydrogen activity (-).
            a_O2 (float): Oxygen activity (-).
            a_H2O (float): Product water activity (-).

        Returns:
            float: Nernst voltage (V).
        """
        R = self.constants.R
        F = self.constants.F
        return self.constants.E0 + (R * T / (2 * F)) * np.log(a_H2 * np.sqrt(a_O2) / a_H2O)

    def calculate_tafel_slope(self, T: float) -> float:
        R = self.constants.R
        F = self.constants.F
        alpha = self.stack.charge_transfer_coefficient
        return R * T / (2 * alpha * F)

    def calculate_v_act(self, i_cell: float, T: float) -> float:
        """
        Calculates the activation overpotential in Tafel form.

        Logic:
        - Below the exchange current density the loss is exactly zero.
        - At and above it the loss is b * ln(i / io), which is zero at i = io.

        Args:
            i_cell (float): Current density (A/m^2).
            T (float): Stack temperature (K).

        Returns:
            float: Activation overpotential (V).
        """
        io = self.stack.exchange_current_density
        if i_cell < io:
            return 0.0
        return self.calculate_tafel_slope(T) * np.log(i_cell / io)

    def calculate_v_conc(self, i_cell: float, T: float) -> float:
        """
        Calculates the concentration overpotential.

        Logic:
        - Up to 0.999 * iL: -(R T / 2F) * ln(1 - i / iL).
        - Above that point the curve is continued by its tangent at 0.999 * iL,
          so the loss stays finite at and beyond the limiting current density.

        Args:
            i_cell (float): Current density (A/m^2).
            T (float): Stack temperature (K).

        Returns:
            float: Concentration overpotential (V).
        """
        R = self.constants.R
        F = self.constants.F
        iL = self.stack.limiting_current_density
        c = R * T / (2 * F)

        i_anchor = CONCENTRATION_LINEAR_FRACTION * iL
        if i_cell <= i_anchor:
            return -c * np.log(1 - i_cell / iL)

        v_anchor = -c * np.log(1 - CONCENTRATION_LINEAR_FRACTION)
        slope = c / (iL - i_anchor)
        return v_anchor + slope * (i_cell - i_anchor)

    def calculate_r_membrane(self, sigma_mem: float) -> float:
        """
        Area-specific membrane resistance (Ohm m^2) from its thickness and
        conductivity (S/m).
        """
        return self.stack.membrane_thickness / sigma_mem

    def calculate_v_ohmic(self, i_cell: float, r_mem: float) -> float:
        return r_mem * i_cell

    def calculate_v_cell(self, v_nernst: float, v_act: float, v_ohmic: float, v_conc: float) -> float:
        return v_nernst - v_act - v_ohmic - v_conc

    def calculate_v_stack(self, v_cell: float) -> float:
        return self.stack.num_cells * v_cell
