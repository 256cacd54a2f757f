import numpy as np
from dataclasses import dataclass
from scipy.interpolate import interp1d
from typing import Any, Dict, Optional

# Specific gas constants (J/(kg K))
R_WATER_VAPOR = 461.523
R_HYDROGEN = 4124.24
R_OXYGEN = 259.837

# Reference state of the tabulated enthalpies: zero at 273.15 K, with the
# latent heat folded into the water-vapour enthalpy.
T_ENTHALPY_REF = 273.15
LATENT_HEAT_REF = 2.501e6     # J/kg at 273.15 K
LATENT_HEAT_SLOPE = 2369.0    # J/(kg K)

CP_WATER_VAPOR = 1859.0       # J/(kg K)
CP_HYDROGEN = 14300.0
CP_OXYGEN = 918.0

# Sutherland viscosity coefficients: (mu_0 [Pa s], T_0 [K], S [K])
SUTHERLAND_HYDROGEN = (8.76e-6, 293.85, 72.0)
SUTHERLAND_AIR = (1.827e-5, 291.15, 120.0)

EXTRAPOLATION_POLICIES = ("linear", "nearest")


class PropertyTable:
    """
    One-dimensional lookup table with piecewise-linear interpolation.

    Outside the tabulated range the value is either extrapolated linearly
    from the two end breakpoints ("linear") or held at the end value
    ("nearest").
    """

    def __init__(self, x: Any, y: Any, extrapolation: str = "linear"):
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        if x.ndim != 1 or x.shape != y.shape:
            raise ValueError(
                f"Lookup table breakpoints and values must be 1-D arrays of equal length, "
                f"got shapes {x.shape} and {y.shape}."
            )
        if x.size < 2:
            raise ValueError("Lookup table needs at least two breakpoints.")
        if np.any(np.diff(x) <= 0.0):
            raise ValueError("Lookup table breakpoints must be strictly increasing.")
        if extrapolation not in EXTRAPOLATION_POLICIES:
            raise ValueError(
                f"Unknown extrapolation policy '{extrapolation}'. "
                f"Must be one of {EXTRAPOLATION_POLICIES}."
            )

        self.x = x
        self.y = y
        self.extrapolation = extrapolation
        if extrapolation == "linear":
            fill_value: Any = "extrapolate"
        else:
            fill_value = (y[0], y[-1])
        self._interp = interp1d(x, y, kind="linear", bounds_error=False,
                                fill_value=fill_value, assume_sorted=True)

    def __call__(self, x_query: float) -> float:
        return float(self._interp(x_query))


def saturation_pressure(T: Any) -> Any:
    """
    Saturation pressure of water vapour (Pa) from the Magnus-Tetens form,
    with T in K.
    """
    T_celsius = np.asarray(T, dtype=float) - 273.15
    return 610.94 * np.exp(17.625 * T_celsius / (T_celsius + 243.04))


def sutherland_viscosity(T: Any, coefficients: tuple) -> Any:
    mu_0, T_0, S = coefficients
    T = np.asarray(T, dtype=float)
    return mu_0 * (T / T_0) ** 1.5 * (T_0 + S) / (T + S)


@dataclass(frozen=True)
class GasDomain:
    """
    Property source for one gas channel of the stack (moist gas carrying
    water vapour and one trace/reactant gas).
    """
    name: str
    R_water: float
    R_gas: float
    h_water: PropertyTable
    h_gas: PropertyTable
    viscosity: PropertyTable
    log_p_sat: PropertyTable
    latent_heat: PropertyTable

    @classmethod
    def from_correlations(cls, name: str, R_gas: float, cp_gas: float,
                          sutherland: tuple,
                          table_config: Optional[Dict[str, Any]] = None) -> "GasDomain":
        """
        Tabulates the domain properties over the configured temperature
        grid from standard correlations.

        Args:
            name (str): Domain label, e.g. "anode".
            R_gas (float): Specific gas constant of the trace gas (J/(kg K)).
            cp_gas (float): Constant-pressure specific heat of the trace gas (J/(kg K)).
            sutherland (tuple): Sutherland coefficients of the gas mixture.
            table_config (dict, optional): `property_tables` section of the
                configuration (temperature range, number of points, extrapolation).

        Returns:
            GasDomain: Domain with all lookup tables populated.
        """
        table_config = table_config or {}
        T_min = float(table_config.get('temperature_min_K', 233.15))
        T_max = float(table_config.get('temperature_max_K', 393.15))
        num_points = int(table_config.get('num_points', 33))
        extrapolation = table_config.get('extrapolation', 'linear')

        T = np.linspace(T_min, T_max, num_points)
        latent = LATENT_HEAT_REF - LATENT_HEAT_SLOPE * (T - T_ENTHALPY_REF)

        return cls(
            name=name,
            R_water=R_WATER_VAPOR,
            R_gas=R_gas,
            h_water=PropertyTable(T, LATENT_HEAT_REF + CP_WATER_VAPOR * (T - T_ENTHALPY_REF), extrapolation),
            h_gas=PropertyTable(T, cp_gas * (T - T_ENTHALPY_REF), extrapolation),
            viscosity=PropertyTable(T, sutherland_viscosity(T, sutherland), extrapolation),
            log_p_sat=PropertyTable(T, np.log(saturation_pressure(T)), extrapolation),
            latent_heat=PropertyTable(T, latent, extrapolation),
        )

    @classmethod
    def anode(cls, table_config: Optional[Dict[str, Any]] = None) -> "GasDomain":
        """Humidified hydrogen channel."""
        return cls.from_correlations("anode", R_HYDROGEN, CP_HYDROGEN,
                                     SUTHERLAND_HYDROGEN, table_config)

    @classmethod
    def cathode(cls, table_config: Optional[Dict[str, Any]] = None) -> "GasDomain":
        """Humidified air channel; oxygen is the tracked reactant."""
        return cls.from_correlations("cathode", R_OXYGEN, CP_OXYGEN,
                                     SUTHERLAND_AIR, table_config)
