"""
Shared fixtures for the profileDFT test suite.
"""

import pytest

from profileDFT.external_potentials import planar_wall
from profileDFT.fluid import BulkState, Molecule
from profileDFT.functionals import HelmholtzFunctional
from profileDFT.grid import Grid
from profileDFT.minimisation import SolverConfig, solve


@pytest.fixture
def ideal_gas():
    """Functional with no excess contributions."""
    return HelmholtzFunctional([], 1, names=['ideal'])


@pytest.fixture
def hard_spheres():
    return HelmholtzFunctional.from_molecules([Molecule('HS')], functional='RF')


@pytest.fixture
def planar_grid():
    return Grid('planar', 1024, 10.0)


@pytest.fixture
def ideal_wall_profile(ideal_gas, planar_grid):
    """
    Equilibrium profile of an ideal gas at a Lennard-Jones wall, which is
    known exactly, rho_b exp(-V/T).
    """

    bulk = BulkState(ideal_gas, 0.1, 1.0)
    Vext = planar_wall(planar_grid, 'LJ', 0.0, epsilon_wall=1.0, sigma_wall=1.0)
    return solve(planar_grid, bulk, Vext, SolverConfig(tolerance=1e-10))
