import numpy as np
from typing import NamedTuple

T_REF_MEMBRANE = 303.15   # K, reference temperature of the Springer correlations

# Water uptake of the membrane vs. water activity
LAMBDA_C0 = 0.043
LAMBDA_C1 = 17.81
LAMBDA_C2 = -39.85
LAMBDA_C3 = 36.0
LAMBDA_AT_SATURATION = LAMBDA_C0 + LAMBDA_C1 + LAMBDA_C2 + LAMBDA_C3   # 14.003
LAMBDA_SLOPE_ABOVE_SATURATION = 1.4

# S/m, lower bound of the conductivity for a dry or over-dried membrane
MIN_MEMBRANE_CONDUCTIVITY = 1e-6


def membrane_water(a: float) -> float:
    """
    Membrane water content lambda (mol H2O per mol SO3-) as a function of
    water activity.

    Linear below a = 0, cubic fit on [0, 1], and linear with slope 1.4
    above a = 1. Both joins are continuous.
    """
    if a < 0.0:
        return LAMBDA_C0 + LAMBDA_C1 * a
    if a <= 1.0:
        return LAMBDA_C0 + LAMBDA_C1 * a + LAMBDA_C2 * a**2 + LAMBDA_C3 * a**3
    return LAMBDA_AT_SATURATION + LAMBDA_SLOPE_ABOVE_SATURATION * (a - 1.0)


def membrane_conductivity_30C(lambda_val: float) -> float:
    """
    Membrane conductivity (S/m) at 30 degC. Linear in lambda for lambda >= 1;
    below that the line through the origin that meets it at lambda = 1,
    floored at MIN_MEMBRANE_CONDUCTIVITY so the membrane resistance stays
    finite and positive.
    """
    if lambda_val >= 1.0:
        return 0.5139 * lambda_val - 0.326
    return max((0.5139 - 0.326) * lambda_val, MIN_MEMBRANE_CONDUCTIVITY)


def membrane_conductivity(lambda_val: float, T: float) -> float:
    """Membrane conductivity (S/m) corrected to temperature T (K)."""
    return membrane_conductivity_30C(lambda_val) * np.exp(1268.0 * (1.0 / T_REF_MEMBRANE - 1.0 / T))


def drag_coefficient(lambda_val: float) -> float:
    """Electro-osmotic drag coefficient (H2O per proton)."""
    if lambda_val >= 0.0:
        return 0.0029 * lambda_val**2 + 0.05 * lambda_val - 3.4e-19
    return 0.05 * lambda_val - 3.4e-19


class WaterFluxes(NamedTuple):
    """Water molar fluxes across the membrane, anode -> cathode positive (mol/(m^2 s))."""
    lambda_anode: float
    lambda_cathode: float
    lambda_average: float
    conductivity: float
    diffusivity: float
    drag_coefficient: float
    diffusion: float
    drag: float
    hydraulic: float
    total: float


class MembraneModel:
    """
    Water transport through the membrane and gas diffusion layers.

    Three contributions are summed for the anode -> cathode water flux:
    Fickian back-diffusion driven by the water-content gradient,
    electro-osmotic drag proportional to current density, and Darcy flow
    driven by the anode/cathode pressure difference.
    """

    def __init__(self, params: "Parameters"):
        self.stack = params.stack
        self.constants = params.constants

    def calculate_membrane_diffusivity(self, T: float) -> float:
        """Water diffusivity in the membrane (m^2/s) at temperature T (K)."""
        D_30 = self.stack.membrane_water_diffusivity
        return D_30 * np.exp(2416.0 * (1.0 / T_REF_MEMBRANE - 1.0 / T))

    def calculate_diffusion_flux(self, lambda_anode: float, lambda_cathode: float, T: float) -> float:
        """
        Fickian water flux across the membrane (mol/(m^2 s)). Positive when
        the anode side is wetter than the cathode side.
        """
        c_sites = self.stack.membrane_dry_density / self.stack.membrane_equivalent_weight
        D = self.calculate_membrane_diffusivity(T)
        return -c_sites * D * (lambda_cathode - lambda_anode) / self.stack.membrane_thickness

    def calculate_drag_flux(self, lambda_anode: float, i_cell: float) -> float:
        """Electro-osmotic drag flux (mol/(m^2 s)), using the anode-side water content."""
        return drag_coefficient(lambda_anode) * i_cell / self.constants.F

    def calculate_hydraulic_flux(self, p_anode: float, p_cathode: float,
                                 x_w_anode: float, x_w_cathode: float,
                                 mu_anode: float, mu_cathode: float, T: float) -> float:
        """
        Pressure-driven Darcy flux of water vapour through the membrane
        (mol/(m^2 s)).

        Logic:
        - The flow carries the water content of its upstream side: anode-side
          mole fraction, pressure and viscosity when p_A >= p_C, cathode-side
          otherwise.
        - The flux is proportional to (p_A - p_C), so it vanishes at equal
          pressures on either branch.

        Args:
            p_anode, p_cathode (float): Averaged channel pressures (Pa).
            x_w_anode, x_w_cathode (float): Water-vapour mole fractions (-).
            mu_anode, mu_cathode (float): Gas viscosities (Pa s).
            T (float): Stack temperature (K).

        Returns:
            float: Hydraulic water flux, anode -> cathode positive.
        """
        K = self.constants.darcy_permeability
        R = self.constants.R
        t_mem = self.stack.membrane_thickness
        dp = p_anode - p_cathode

        if dp >= 0.0:
            c_water = x_w_anode * p_anode / (R * T)
            mu = mu_anode
        else:
            c_water = x_w_cathode * p_cathode / (R * T)
            mu = mu_cathode
        return c_water * K / mu * dp / t_mem

    def calculate_gdl_conductance(self, p_sat: float, T: float) -> float:
        """
        Molar flux through one gas diffusion layer per unit difference in
        water activity (mol/(m^2 s)).
        """
        D = self.stack.gdl_water_diffusivity
        return D / self.stack.gdl_thickness * p_sat / (self.constants.R * T)

    def calculate_water_fluxes(self, a_acl: float, a_ccl: float, i_cell: float, T: float,
                               p_anode: float, p_cathode: float,
                               x_w_anode: float, x_w_cathode: float,
                               mu_anode: float, mu_cathode: float) -> WaterFluxes:
        """
        Evaluates membrane hydration, conductivity and all water-flux terms
        for candidate catalyst-layer water activities.
        """
        lambda_anode = membrane_water(a_acl)
        lambda_cathode = membrane_water(a_ccl)
        lambda_average = (lambda_anode + lambda_cathode) / 2.0

        diffusion = self.calculate_diffusion_flux(lambda_anode, lambda_cathode, T)
        drag = self.calculate_drag_flux(lambda_anode, i_cell)
        hydraulic = self.calculate_hydraulic_flux(p_anode, p_cathode, x_w_anode, x_w_cathode,
                                                  mu_anode, mu_cathode, T)
        return WaterFluxes(
            lambda_anode=lambda_anode,
            lambda_cathode=lambda_cathode,
            lambda_average=lambda_average,
            conductivity=membrane_conductivity(lambda_average, T),
            diffusivity=self.calculate_membrane_diffusivity(T),
            drag_coefficient=drag_coefficient(lambda_anode),
            diffusion=diffusion,
            drag=drag,
            hydraulic=hydraulic,
            total=diffusion + drag + hydraulic,
        )
