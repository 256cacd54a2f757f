from typing import NamedTuple

from parameters import DerivedConstants
from properties import GasDomain


class SpeciesRates(NamedTuple):
    """Stack-level species rates (mol/s) implied by the cell current."""
    hydrogen_consumed: float
    oxygen_consumed: float
    water_produced: float


class PowerBalance(NamedTuple):
    reaction: float           # W, LHV at standard conditions
    sensible: float           # W, species brought from/to standard temperature
    water_transport: float    # W, enthalpy moved with membrane water
    net: float                # W
    electrical: float         # W
    dissipated: float         # W
    heat_flow: float          # W, into the component through the thermal port


class EnergyBalance:
    """
    Reconciles reaction enthalpy, electrical output and the enthalpy
    carried by species and water transport into the waste heat handed to
    the thermal network.
    """

    def __init__(self, params: "Parameters", anode: GasDomain, cathode: GasDomain):
        self.stack = params.stack
        self.constants: DerivedConstants = params.constants
        self.anode = anode
        self.cathode = cathode

    def calculate_species_rates(self, i_cell: float) -> SpeciesRates:
        F = self.constants.F
        current = self.stack.num_cells * i_cell * self.stack.cell_area
        return SpeciesRates(
            hydrogen_consumed=current / (2 * F),
            oxygen_consumed=current / (4 * F),
            water_produced=current / (2 * F),
        )

    def calculate_sensible_power(self, rates: SpeciesRates, T: float) -> float:
        """
        Power (W) from bringing the consumed reactants from stack temperature
        down to standard temperature and the product water back up.
        """
        c = self.constants
        dh_H2 = self.anode.h_gas(T) - c.h_H2_std
        dh_O2 = self.cathode.h_gas(T) - c.h_O2_std
        dh_H2O = self.cathode.h_water(T) - c.h_H2O_std
        return (rates.hydrogen_consumed * c.M_H2 * dh_H2
                + rates.oxygen_consumed * c.M_O2 * dh_O2
                - rates.water_produced * c.M_H2O * dh_H2O)

    def calculate_transport_power(self, water_flux: float, T_anode: float, T_cathode: float) -> float:
        """
        Enthalpy (W) released when membrane water leaves the anode gas at the
        anode temperature and enters the cathode gas at the cathode temperature.
        """
        n_transport = self.stack.num_cells * water_flux * self.stack.cell_area
        M = self.constants.M_H2O
        return n_transport * M * (self.anode.h_water(T_anode) - self.cathode.h_water(T_cathode))

    def calculate_electrical_power(self, v_cell: float, i_cell: float) -> float:
        return self.stack.num_cells * v_cell * i_cell * self.stack.cell_area

    def calculate_power_balance(self, i_cell: float, v_cell: float, water_flux: float,
                                T: float, T_anode: float, T_cathode: float) -> PowerBalance:
        """
        Net power from the reaction and all enthalpy corrections, split into
        electrical output and dissipated heat.

        Args:
            i_cell (float): Current density (A/m^2).
            v_cell (float): Cell voltage (V).
            water_flux (float): Total membrane water flux, anode -> cathode (mol/(m^2 s)).
            T (float): Stack temperature (K).
            T_anode, T_cathode (float): Averaged channel gas temperatures (K).

        Returns:
            PowerBalance: All power terms; heat_flow is minus the dissipated power.
        """
        rates = self.calculate_species_rates(i_cell)
        reaction = rates.hydrogen_consumed * self.constants.LHV
        sensible = self.calculate_sensible_power(rates, T)
        transport = self.calculate_transport_power(water_flux, T_anode, T_cathode)
        net = reaction + sensible + transport
        electrical = self.calculate_electrical_power(v_cell, i_cell)
        dissipated = net - electrical
        return PowerBalance(
            reaction=reaction,
            sensible=sensible,
            water_transport=transport,
            net=net,
            electrical=electrical,
            dissipated=dissipated,
            heat_flow=-dissipated,
        )
