import numpy as np
from dataclasses import dataclass
from typing import Any, NamedTuple, Optional, Sequence

from energy import EnergyBalance, PowerBalance, SpeciesRates
from membrane import MembraneModel, WaterFluxes
from model import Model
from properties import GasDomain
from state import Activities, ChannelConditions, PortStates, extract_state


class UnknownActivities(NamedTuple):
    """Water activities at the anode and cathode catalyst layers."""
    anode: float
    cathode: float


@dataclass(frozen=True)
class StackInputs:
    """Everything the host network supplies for one evaluation."""
    ports: PortStates
    stack_temperature: float   # K
    branch_current: float      # A, negative while discharging


class MassSourceCommand(NamedTuple):
    mass_flow: float     # kg/s, positive into the channel gas
    temperature: float   # K


@dataclass(frozen=True)
class DerivedQuantities:
    v_nernst: float
    v_act: float
    v_ohmic: float
    v_conc: float
    r_membrane: float
    water: WaterFluxes
    gdl_conductance_anode: float
    gdl_conductance_cathode: float
    activities: Activities
    rates: SpeciesRates
    power: PowerBalance


@dataclass(frozen=True)
class StackOutputs:
    current: float
    current_density: float
    v_cell: float
    v_stack: float
    heat_flow: float
    hydrogen_consumption: float   # mol/s
    oxygen_consumption: float     # mol/s
    water_production: float       # mol/s
    anode_moisture: MassSourceCommand
    cathode_moisture: MassSourceCommand
    anode_reaction: MassSourceCommand
    cathode_reaction: MassSourceCommand
    flux_residual: np.ndarray
    derived: DerivedQuantities


class FuelCellStack:
    """
    Residual form of the PEM fuel-cell stack.

    Given the port states, stack temperature, branch current and candidate
    catalyst-layer water activities, evaluates every voltage, transport and
    energy term and exposes the equations an external nonlinear solver has
    to drive to zero. Constants are derived once at construction; each
    evaluation is a pure function of its arguments.
    """

    def __init__(self, params: "Parameters", anode: Optional[GasDomain] = None,
                 cathode: Optional[GasDomain] = None):
        self.stack = params.stack
        self.constants = params.constants
        self.anode_domain = anode if anode is not None else params.anode_domain
        self.cathode_domain = cathode if cathode is not None else params.cathode_domain

        self.model = Model(params)
        self.membrane = MembraneModel(params)
        self.energy = EnergyBalance(params, self.anode_domain, self.cathode_domain)

    def extract(self, inputs: StackInputs) -> Any:
        return extract_state(inputs.ports, self.anode_domain, self.cathode_domain,
                             inputs.stack_temperature, self.constants)

    def channel_activities(self, inputs: StackInputs) -> UnknownActivities:
        """Clamped channel water activities; the usual starting guess for the solver."""
        _, _, activities = self.extract(inputs)
        return UnknownActivities(activities.water_anode, activities.water_cathode)

    def _flux_residual(self, anode: ChannelConditions, cathode: ChannelConditions,
                       activities: Activities, unknowns: UnknownActivities,
                       water: WaterFluxes, i_cell: float, T: float) -> Any:
        G_anode = self.membrane.calculate_gdl_conductance(anode.p_sat, T)
        G_cathode = self.membrane.calculate_gdl_conductance(cathode.p_sat, T)
        production = i_cell / (2 * self.constants.F)

        anode_gdl = G_anode * (activities.water_anode - unknowns.anode)
        cathode_gdl = G_cathode * (unknowns.cathode - activities.water_cathode)
        residual = np.array([
            anode_gdl - water.total,
            cathode_gdl - (water.total + production),
        ])
        return residual, G_anode, G_cathode

    def evaluate(self, inputs: StackInputs, unknowns: Sequence[float]) -> StackOutputs:
        """
        Evaluates the stack for candidate catalyst-layer water activities.

        Args:
            inputs (StackInputs): Port states, stack temperature and branch current.
            unknowns (Sequence[float]): Anode and cathode catalyst-layer water activities.

        Returns:
            StackOutputs: Terminal quantities, mass-source commands, derived
            quantities and the two flux-continuity residuals.
        """
        unknowns = UnknownActivities(float(unknowns[0]), float(unknowns[1]))
        T = inputs.stack_temperature
        anode, cathode, activities = self.extract(inputs)

        i_cell = self.model.calculate_current_density(inputs.branch_current)

        water = self.membrane.calculate_water_fluxes(
            unknowns.anode, unknowns.cathode, i_cell, T,
            anode.pressure, cathode.pressure,
            anode.water_mole_fraction, cathode.water_mole_fraction,
            self.anode_domain.viscosity(T), self.cathode_domain.viscosity(T),
        )

        v_nernst = self.model.calculate_v_nernst(T, activities.hydrogen, activities.oxygen,
                                                 activities.water_cathode)
        v_act = self.model.calculate_v_act(i_cell, T)
        v_conc = self.model.calculate_v_conc(i_cell, T)
        r_membrane = self.model.calculate_r_membrane(water.conductivity)
        v_ohmic = self.model.calculate_v_ohmic(i_cell, r_membrane)
        v_cell = self.model.calculate_v_cell(v_nernst, v_act, v_ohmic, v_conc)

        power = self.energy.calculate_power_balance(i_cell, v_cell, water.total, T,
                                                    anode.temperature, cathode.temperature)
        rates = self.energy.calculate_species_rates(i_cell)

        residual, G_anode, G_cathode = self._flux_residual(anode, cathode, activities, unknowns,
                                                           water, i_cell, T)

        c = self.constants
        n_transport = self.stack.num_cells * water.total * self.stack.cell_area
        derived = DerivedQuantities(
            v_nernst=v_nernst,
            v_act=v_act,
            v_ohmic=v_ohmic,
            v_conc=v_conc,
            r_membrane=r_membrane,
            water=water,
            gdl_conductance_anode=G_anode,
            gdl_conductance_cathode=G_cathode,
            activities=activities,
            rates=rates,
            power=power,
        )
        return StackOutputs(
            current=inputs.branch_current,
            current_density=i_cell,
            v_cell=v_cell,
            v_stack=self.model.calculate_v_stack(v_cell),
            heat_flow=power.heat_flow,
            hydrogen_consumption=rates.hydrogen_consumed,
            oxygen_consumption=rates.oxygen_consumed,
            water_production=rates.water_produced,
            anode_moisture=MassSourceCommand(-n_transport * c.M_H2O, anode.temperature),
            cathode_moisture=MassSourceCommand(n_transport * c.M_H2O, cathode.temperature),
            anode_reaction=MassSourceCommand(-rates.hydrogen_consumed * c.M_H2, T),
            cathode_reaction=MassSourceCommand(
                rates.water_produced * c.M_H2O - rates.oxygen_consumed * c.M_O2, T),
            flux_residual=residual,
            derived=derived,
        )

    def flux_residual(self, inputs: StackInputs, unknowns: Sequence[float]) -> np.ndarray:
        """
        Flux-continuity residuals for candidate catalyst-layer activities:
        water through the anode GDL minus the membrane transport, and water
        through the cathode GDL minus transport plus production.
        """
        return self.evaluate(inputs, unknowns).flux_residual

    def system_residual(self, inputs: StackInputs, x: Sequence[float]) -> np.ndarray:
        """
        Full algebraic system with unknowns [V_terminal, Q, a_ACL, a_CCL]:
        terminal voltage law, heat-flow law and the two flux equations.
        """
        outputs = self.evaluate(inputs, (x[2], x[3]))
        return np.array([
            x[0] - outputs.v_stack,
            x[1] + outputs.derived.power.dissipated,
            outputs.flux_residual[0],
            outputs.flux_residual[1],
        ])
