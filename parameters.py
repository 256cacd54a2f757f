import yaml
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List

from properties import GasDomain

# Engineering-unit conversion factors to SI
CM2_TO_M2 = 1e-4
UM_TO_M = 1e-6
ACM2_TO_AM2 = 1e4
CM2S_TO_M2S = 1e-4
GCM3_TO_KGM3 = 1e3


class ConfigurationError(ValueError):
    """Raised when the stack parameter set violates a physical invariant."""

    def __init__(self, violations: List[str]):
        self.violations = list(violations)
        super().__init__(
            "Invalid fuel-cell stack parameters:\n  - " + "\n  - ".join(self.violations)
        )


@dataclass(frozen=True)
class CellStackParameters:
    """Static geometry, kinetic and transport parameters of the stack (SI units)."""
    num_cells: int
    cell_area: float                      # m^2
    membrane_thickness: float             # m
    gdl_thickness: float                  # m
    exchange_current_density: float       # A/m^2
    limiting_current_density: float       # A/m^2
    charge_transfer_coefficient: float    # -
    gdl_water_diffusivity: float          # m^2/s
    membrane_water_diffusivity: float     # m^2/s at 303.15 K
    membrane_dry_density: float           # kg/m^3
    membrane_equivalent_weight: float     # kg/mol


@dataclass(frozen=True)
class DerivedConstants:
    """Physical constants derived once per parameter set."""
    R: float                    # J/(mol K)
    F: float                    # C/mol
    T_std: float                # K
    p_std: float                # Pa
    gibbs_formation: float      # J/mol, liquid water
    HHV: float                  # J/mol H2
    latent_heat: float          # J/kg at T_std
    LHV: float                  # J/mol H2
    E0: float                   # V
    darcy_permeability: float   # m^2
    M_H2O: float                # kg/mol
    M_O2: float                 # kg/mol
    M_H2: float                 # kg/mol
    h_H2O_std: float            # J/kg at T_std
    h_O2_std: float             # J/kg at T_std
    h_H2_std: float             # J/kg at T_std


R_UNIVERSAL = 8.31446261815324
FARADAY = 96485.33212
T_STANDARD = 298.15
P_STANDARD = 101325.0
GIBBS_WATER_FORMATION = -237.13e3
HHV_HYDROGEN = 285.83e3
NAFION_DARCY_PERMEABILITY = 1.58e-18


def validate_parameters(stack: CellStackParameters) -> CellStackParameters:
    """
    Checks every positivity and ordering invariant of the stack parameters.

    Args:
        stack (CellStackParameters): Parameter set to check.

    Returns:
        CellStackParameters: The same parameter set, when valid.

    Raises:
        ConfigurationError: Listing all violated constraints.
    """
    violations: List[str] = []
    for field in fields(stack):
        value = getattr(stack, field.name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            violations.append(f"{field.name} must be a number, got {value!r}")
        elif not value > 0:
            violations.append(f"{field.name} must be strictly positive, got {value!r}")

    if isinstance(stack.num_cells, float) and not stack.num_cells.is_integer():
        violations.append(f"num_cells must be a whole number, got {stack.num_cells!r}")

    io = stack.exchange_current_density
    iL = stack.limiting_current_density
    if isinstance(io, (int, float)) and isinstance(iL, (int, float)) and not iL > io:
        violations.append(
            f"limiting_current_density ({iL!r}) must exceed exchange_current_density ({io!r})"
        )

    if violations:
        raise ConfigurationError(violations)
    return stack


def derive_constants(anode: GasDomain, cathode: GasDomain) -> DerivedConstants:
    """
    Derives the thermodynamic constants of the stack from the gas-property
    tables of both channels. Pure function of its inputs.
    """
    R = R_UNIVERSAL
    F = FARADAY

    M_H2O = R / anode.R_water
    M_H2 = R / anode.R_gas
    M_O2 = R / cathode.R_gas

    latent_heat = cathode.latent_heat(T_STANDARD)
    LHV = HHV_HYDROGEN - latent_heat * M_H2O

    return DerivedConstants(
        R=R,
        F=F,
        T_std=T_STANDARD,
        p_std=P_STANDARD,
        gibbs_formation=GIBBS_WATER_FORMATION,
        HHV=HHV_HYDROGEN,
        latent_heat=latent_heat,
        LHV=LHV,
        E0=-GIBBS_WATER_FORMATION / (2 * F),
        darcy_permeability=NAFION_DARCY_PERMEABILITY,
        M_H2O=M_H2O,
        M_O2=M_O2,
        M_H2=M_H2,
        h_H2O_std=cathode.h_water(T_STANDARD),
        h_O2_std=cathode.h_gas(T_STANDARD),
        h_H2_std=anode.h_gas(T_STANDARD),
    )


class Parameters:
    """
    Centralized access to the stack parameters, gas-property tables and run
    settings loaded from a configuration file.

    Engineering units in the configuration are converted to SI on load, and
    the stack parameter set is validated before anything else is built.
    """

    def __init__(self, config_path: str):
        """
        Loads and processes parameters from the specified YAML configuration file.

        Args:
            config_path: The file path to the config.yaml file.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ValueError: If the file is not valid YAML.
            ConfigurationError: If the stack parameters violate an invariant.
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found at: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing YAML configuration file: {e}")

        self.config_path = config_path
        self._load(config or {})

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "Parameters":
        """Builds a Parameters object from an already-parsed configuration mapping."""
        instance = cls.__new__(cls)
        instance.config_path = None
        instance._load(config)
        return instance

    def _load(self, config: Dict[str, Any]) -> None:
        self.config: Dict[str, Any] = config
        self._parameters: Dict[str, Any] = {}

        stack_cfg = config.get('stack_parameters', {})
        try:
            stack = CellStackParameters(
                num_cells=stack_cfg['num_cells'],
                cell_area=stack_cfg['cell_area_cm2'] * CM2_TO_M2,
                membrane_thickness=stack_cfg['membrane_thickness_um'] * UM_TO_M,
                gdl_thickness=stack_cfg['gdl_thickness_um'] * UM_TO_M,
                exchange_current_density=stack_cfg['exchange_current_density_Acm2'] * ACM2_TO_AM2,
                limiting_current_density=stack_cfg['limiting_current_density_Acm2'] * ACM2_TO_AM2,
                charge_transfer_coefficient=stack_cfg['charge_transfer_coefficient'],
                gdl_water_diffusivity=stack_cfg['gdl_water_diffusivity_cm2s'] * CM2S_TO_M2S,
                membrane_water_diffusivity=stack_cfg['membrane_water_diffusivity_cm2s'] * CM2S_TO_M2S,
                membrane_dry_density=stack_cfg['membrane_dry_density_gcm3'] * GCM3_TO_KGM3,
                membrane_equivalent_weight=stack_cfg['membrane_equivalent_weight_kgmol'],
            )
        except KeyError as e:
            raise ConfigurationError([f"missing stack parameter {e.args[0]!r}"])
        except TypeError as e:
            raise ConfigurationError([f"non-numeric stack parameter: {e}"])

        self.stack: CellStackParameters = validate_parameters(stack)
        self._parameters.update(asdict(self.stack))

        table_cfg = config.get('property_tables', {})
        self.anode_domain: GasDomain = GasDomain.anode(table_cfg)
        self.cathode_domain: GasDomain = GasDomain.cathode(table_cfg)

        self.constants: DerivedConstants = derive_constants(self.anode_domain, self.cathode_domain)
        self._parameters.update(asdict(self.constants))

        # Solver settings are plain values, no conversion
        self._parameters.update(config.get('solver_parameters', {}))

    def get_value(self, param_name: str) -> Any:
        """
        Retrieves the value of a specific parameter.

        Args:
            param_name: The name of the parameter to retrieve.

        Returns:
            The value of the parameter.

        Raises:
            KeyError: If the parameter name is not found.
        """
        if param_name not in self._parameters:
            raise KeyError(f"Parameter '{param_name}' not found in the loaded configuration.")
        return self._parameters[param_name]

    def get_all(self) -> Dict[str, Any]:
        """
        Returns a copy of all loaded and derived parameters.
        """
        return self._parameters.copy()
