import numpy as np
from dataclasses import dataclass
from typing import Any, NamedTuple, Sequence

from parameters import DerivedConstants
from properties import GasDomain

# Numerical floor keeping the Nernst logarithm defined
ACTIVITY_THRESHOLD = 1e-9
ACTIVITY_FLOOR = 1e-6

# Positions consumed from the 8-element port state vector
# [p, T, RH, w, x_w, x_a, x_aux, x_g]
PRESSURE_INDEX = 0
TEMPERATURE_INDEX = 1
WATER_FRACTION_INDEX = 4
REACTANT_FRACTION_INDEX = 7
PORT_VECTOR_LENGTH = 8


@dataclass(frozen=True)
class GasState:
    """Pressure (Pa), temperature (K) and tracked mole fractions at one port."""
    pressure: float
    temperature: float
    water_mole_fraction: float
    reactant_mole_fraction: float

    @classmethod
    def from_vector(cls, vector: Sequence[float]) -> "GasState":
        """
        Builds a GasState from an 8-element port state vector. Only pressure,
        temperature, the water-vapour mole fraction (5th element) and the
        trace-gas mole fraction (8th element) are read.
        """
        values = np.asarray(vector, dtype=float)
        if values.shape != (PORT_VECTOR_LENGTH,):
            raise ValueError(
                f"Port state vector must have {PORT_VECTOR_LENGTH} elements, got shape {values.shape}."
            )
        return cls(
            pressure=float(values[PRESSURE_INDEX]),
            temperature=float(values[TEMPERATURE_INDEX]),
            water_mole_fraction=float(values[WATER_FRACTION_INDEX]),
            reactant_mole_fraction=float(values[REACTANT_FRACTION_INDEX]),
        )

    @classmethod
    def from_dict(cls, values: dict) -> "GasState":
        return cls(
            pressure=float(values['pressure_Pa']),
            temperature=float(values['temperature_K']),
            water_mole_fraction=float(values['water_mole_fraction']),
            reactant_mole_fraction=float(values['reactant_mole_fraction']),
        )


@dataclass(frozen=True)
class PortStates:
    anode_in: GasState
    anode_out: GasState
    cathode_in: GasState
    cathode_out: GasState

    @classmethod
    def from_config(cls, operating_conditions: dict) -> "PortStates":
        anode = operating_conditions['anode']
        cathode = operating_conditions['cathode']
        return cls(
            anode_in=GasState.from_dict(anode['inflow']),
            anode_out=GasState.from_dict(anode['outflow']),
            cathode_in=GasState.from_dict(cathode['inflow']),
            cathode_out=GasState.from_dict(cathode['outflow']),
        )


class ChannelConditions(NamedTuple):
    """Averaged conditions of one gas channel."""
    pressure: float
    temperature: float
    water_mole_fraction: float
    reactant_mole_fraction: float
    pressure_ratio: float    # p / p_sat(T_stack)
    p_sat: float             # Pa at T_stack


class Activities(NamedTuple):
    """Channel-averaged species activities (clamped)."""
    hydrogen: float
    oxygen: float
    water_anode: float
    water_cathode: float


def clamp_activity(a: float) -> float:
    """Floors activities below 1e-9 to 1e-6; larger values pass through unchanged."""
    if a < ACTIVITY_THRESHOLD:
        return ACTIVITY_FLOOR
    return a


def average_state(inflow: GasState, outflow: GasState) -> GasState:
    return GasState(
        pressure=(inflow.pressure + outflow.pressure) / 2.0,
        temperature=(inflow.temperature + outflow.temperature) / 2.0,
        water_mole_fraction=(inflow.water_mole_fraction + outflow.water_mole_fraction) / 2.0,
        reactant_mole_fraction=(inflow.reactant_mole_fraction + outflow.reactant_mole_fraction) / 2.0,
    )


def channel_conditions(inflow: GasState, outflow: GasState, domain: GasDomain,
                       T_stack: float) -> ChannelConditions:
    """
    Averages the inflow and outflow of one channel and evaluates its
    pressure ratio p/p_sat at the stack temperature.
    """
    mean = average_state(inflow, outflow)
    log_p_sat = domain.log_p_sat(T_stack)
    pressure_ratio = float(np.exp(np.log(mean.pressure) - log_p_sat))
    return ChannelConditions(
        pressure=mean.pressure,
        temperature=mean.temperature,
        water_mole_fraction=mean.water_mole_fraction,
        reactant_mole_fraction=mean.reactant_mole_fraction,
        pressure_ratio=pressure_ratio,
        p_sat=float(np.exp(log_p_sat)),
    )


def raw_activities(anode: ChannelConditions, cathode: ChannelConditions,
                   constants: DerivedConstants) -> Activities:
    """
    Species activities from the averaged channel conditions, before clamping.
    Water activity is the vapour mole fraction times p/p_sat.
    """
    return Activities(
        hydrogen=anode.reactant_mole_fraction * anode.pressure / constants.p_std,
        oxygen=cathode.reactant_mole_fraction * cathode.pressure / constants.p_std,
        water_anode=anode.water_mole_fraction * anode.pressure_ratio,
        water_cathode=cathode.water_mole_fraction * cathode.pressure_ratio,
    )


def extract_state(ports: PortStates, anode_domain: GasDomain, cathode_domain: GasDomain,
                  T_stack: float, constants: DerivedConstants) -> Any:
    """
    Maps the four port states into averaged anode/cathode conditions and
    clamped activities.

    Returns:
        Tuple[ChannelConditions, ChannelConditions, Activities]
    """
    anode = channel_conditions(ports.anode_in, ports.anode_out, anode_domain, T_stack)
    cathode = channel_conditions(ports.cathode_in, ports.cathode_out, cathode_domain, T_stack)
    raw = raw_activities(anode, cathode, constants)
    activities = Activities(*(clamp_activity(a) for a in raw))
    return anode, cathode, activities
