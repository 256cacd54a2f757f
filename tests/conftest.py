import copy
import pytest
import yaml
from pathlib import Path

from parameters import Parameters
from residual import FuelCellStack
from solver import Solver
from state import PortStates

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


@pytest.fixture(scope="session")
def raw_config():
    with open(CONFIG_PATH, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


@pytest.fixture
def config(raw_config):
    return copy.deepcopy(raw_config)


@pytest.fixture(scope="session")
def params():
    return Parameters(str(CONFIG_PATH))


@pytest.fixture(scope="session")
def stack(params):
    return FuelCellStack(params)


@pytest.fixture(scope="session")
def solver(params):
    return Solver.from_params(params)


@pytest.fixture(scope="session")
def ports(params):
    return PortStates.from_config(params.config['operating_conditions'])


@pytest.fixture(scope="session")
def reference_inputs(solver, ports):
    # 80 degC, 0.5 A/cm^2
    return solver.build_inputs(ports, 353.15, 5000.0)
