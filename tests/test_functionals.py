"""
Tests for the functional contributions in the homogeneous (bulk) limit.
"""

import numpy as np
import pytest

import profileDFT.exceptions as exceptions
from profileDFT.fluid import BulkState, Molecule, bulk_density_from_chemical_potential
from profileDFT.functionals import (Association, Electrostatics, HardChain, HardSphere,
                                    HelmholtzFunctional, MeanFieldDispersion,
                                    lennard_jones_wca)


def packing_fraction_to_density(eta, diameter=1.0):
    return 6.0*eta/(np.pi*diameter**3)

def percus_yevick_pressure(rho, eta):
    return rho*(1.0 + eta + eta**2)/(1.0 - eta)**3

def percus_yevick_chemical_potential(eta):
    return -np.log(1.0 - eta) + eta*(14.0 - 13.0*eta + 5.0*eta**2)/(2.0*(1.0 - eta)**3)

def carnahan_starling_pressure(rho, eta):
    return rho*(1.0 + eta + eta**2 - eta**3)/(1.0 - eta)**3

def carnahan_starling_chemical_potential(eta):
    return eta*(8.0 - 9.0*eta + 3.0*eta**2)/(1.0 - eta)**3

def contact_value(eta):
    return (1.0 - 0.5*eta)/(1.0 - eta)**3


@pytest.mark.parametrize('eta', [0.1, 0.3, 0.45])
def test_rosenfeld_gives_percus_yevick(eta):
    rho = packing_fraction_to_density(eta)
    fluid = HelmholtzFunctional([HardSphere([1.0], functional='RF')], 1)

    assert fluid.bulk_pressure(rho, 1.0) == pytest.approx(percus_yevick_pressure(rho, eta), rel=1e-10)
    mu_ex = fluid.bulk_excess_chemical_potential(rho, 1.0)
    assert mu_ex[0] == pytest.approx(percus_yevick_chemical_potential(eta), rel=1e-10)


@pytest.mark.parametrize('eta', [0.1, 0.3, 0.45])
def test_white_bear_gives_carnahan_starling(eta):
    rho = packing_fraction_to_density(eta)
    fluid = HelmholtzFunctional([HardSphere([1.0], functional='WB')], 1)

    assert fluid.bulk_pressure(rho, 1.0) == pytest.approx(carnahan_starling_pressure(rho, eta), rel=1e-8)
    mu_ex = fluid.bulk_excess_chemical_potential(rho, 1.0)
    assert mu_ex[0] == pytest.approx(carnahan_starling_chemical_potential(eta), rel=1e-8)


def test_hard_sphere_scales_with_temperature():
    fluid = HelmholtzFunctional([HardSphere([1.0], functional='WBII')], 1)
    rho = packing_fraction_to_density(0.3)
    f1 = fluid.bulk_excess_helmholtz_energy_density(rho, 1.0)
    f2 = fluid.bulk_excess_helmholtz_energy_density(rho, 2.5)
    assert f2 == pytest.approx(2.5*f1, rel=1e-12)


def test_pressure_is_legendre_transform():
    fluid = HelmholtzFunctional.from_molecules([Molecule('A', 1.0, epsilon=1.0),
                                                Molecule('B', 1.2, epsilon=0.8)], functional='WB')
    rho = np.array([0.3, 0.15])
    T = 1.3
    p = fluid.bulk_pressure(rho, T)
    mu = fluid.bulk_chemical_potential(rho, T)
    f = fluid.bulk_helmholtz_energy_density(rho, T)
    assert p == pytest.approx(np.dot(rho, mu) - f, rel=1e-10)


def test_chemical_potential_is_derivative_of_free_energy():
    fluid = HelmholtzFunctional.from_molecules([Molecule('A', 1.0, epsilon=1.0),
                                                Molecule('B', 0.8, segments=2)], functional='WB')
    rho = np.array([0.25, 0.2])
    T = 1.2
    mu = fluid.bulk_chemical_potential(rho, T)
    h = 1e-6
    for i in range(2):
        up = rho.copy(); up[i] += h
        down = rho.copy(); down[i] -= h
        fd = (fluid.bulk_helmholtz_energy_density(up, T) - fluid.bulk_helmholtz_energy_density(down, T))/(2.0*h)
        assert mu[i] == pytest.approx(fd, rel=1e-7)


def test_unsupported_fmt_functional():
    with pytest.raises(exceptions.UnsupportedFunctionalError):
        HardSphere([1.0], functional='ESFMT')


def test_packing_fraction_overflow_in_bulk():
    fluid = HelmholtzFunctional([HardSphere([1.0])], 1)
    with pytest.raises(exceptions.PackingFractionOverflow) as err:
        fluid.bulk_excess_chemical_potential(packing_fraction_to_density(1.05), 1.0)
    assert err.value.packing_fraction > 1.0
    assert err.value.contribution == 'hard sphere'


def test_hard_chain_is_first_order_perturbation_theory():
    m = 3
    eta = 0.3
    rho = eta/(m*np.pi/6.0)
    chain = HardChain([1.0], [m], [m - 1])
    fluid = HelmholtzFunctional([chain], 1)

    expected = -(m - 1)*rho*np.log(contact_value(eta))
    assert fluid.bulk_excess_helmholtz_energy_density(rho, 1.0) == pytest.approx(expected, rel=1e-10)


def test_mean_field_dispersion_bulk_energy():
    sigma, epsilon, rc = 1.0, 1.0, 2.5
    rho = 0.4
    fluid = HelmholtzFunctional([MeanFieldDispersion([sigma], [epsilon], cut_off=rc)], 1)

    rmin = 2.0**(1.0/6.0)*sigma
    def primitive(r):
        return -sigma**12/(9.0*r**9) + sigma**6/(3.0*r**3)
    integral = -epsilon*4.0*np.pi*rmin**3/3.0 + 16.0*np.pi*epsilon*(primitive(rc) - primitive(rmin))

    f = fluid.bulk_excess_helmholtz_energy_density(rho, 1.0)
    assert f == pytest.approx(0.5*rho*rho*integral, rel=1e-5)
    assert f < 0.0


def test_lennard_jones_wca_potential():
    r = np.array([0.5, 1.0, 2.0**(1.0/6.0), 2.0, 3.0])
    phi = lennard_jones_wca(r, 1.0, 1.0, 2.5)
    np.testing.assert_allclose(phi[:3], -1.0)
    assert phi[3] == pytest.approx(4.0*(2.0**-12 - 2.0**-6))
    assert phi[4] == 0.0


def test_lorentz_berthelot_rules():
    dispersion = MeanFieldDispersion([1.0, 2.0], [1.0, 4.0])
    sigma, epsilon = dispersion.pair_parameters(0, 1)
    assert sigma == pytest.approx(1.5)
    assert epsilon == pytest.approx(2.0)


def test_electrostatics_has_no_bulk_contribution():
    fluid = HelmholtzFunctional([Electrostatics([1.0, -1.0], [1.0, 1.0])], 2)
    rho = np.array([0.1, 0.1])
    assert fluid.bulk_excess_helmholtz_energy_density(rho, 1.0) == pytest.approx(0.0, abs=1e-14)
    np.testing.assert_allclose(fluid.bulk_excess_chemical_potential(rho, 1.0), 0.0, atol=1e-14)


def test_association_bulk_limit():
    eta = 0.2
    rho = packing_fraction_to_density(eta)
    kappa, epsilon, T = 0.03, 5.0, 1.0
    association = Association([1.0], [1.0], [kappa], [epsilon], [1], [1])
    fluid = HelmholtzFunctional([association], 1)

    strength = kappa*np.expm1(epsilon/T)*contact_value(eta)
    X = (-1.0 + np.sqrt(1.0 + 4.0*rho*strength))/(2.0*rho*strength)
    expected = 2.0*T*rho*(np.log(X) - 0.5*X + 0.5)

    assert fluid.bulk_excess_helmholtz_energy_density(rho, T) == pytest.approx(expected, rel=1e-10)

    XA, XB = association.site_fractions(fluid.bulk_weighted_densities(rho)[0], T)
    assert XA[0, 0] == pytest.approx(X, rel=1e-10)
    assert XB[0, 0] == pytest.approx(X, rel=1e-10)


def test_from_molecules_selects_contributions():
    molecules = [Molecule('water', 1.0, kappa_ab=0.03, epsilon_ab=5.0, na=1, nb=1),
                 Molecule('chain', 1.0, segments=4, epsilon=1.0),
                 Molecule('ion', 1.0, charge=1.0)]
    fluid = HelmholtzFunctional.from_molecules(molecules)
    names = [c.name for c in fluid.contributions]
    assert names == ['hard sphere', 'hard chain', 'dispersion', 'association', 'electrostatics']
    assert fluid.names == ['water', 'chain', 'ion']


def test_temperature_derivative_of_bulk_free_energy():
    fluid = HelmholtzFunctional.from_molecules([Molecule('water', 1.0, epsilon=1.0, kappa_ab=0.03,
                                                        epsilon_ab=5.0, na=1, nb=1)], functional='WB')
    rho = packing_fraction_to_density(0.2)
    T, dT = 1.5, 1e-5
    fd = (fluid.bulk_helmholtz_energy_density(rho, T + dT)
          - fluid.bulk_helmholtz_energy_density(rho, T - dT))/(2.0*dT)
    assert fluid.bulk_temperature_derivative(rho, T) == pytest.approx(fd, rel=1e-7)


def test_bulk_state():
    fluid = HelmholtzFunctional.from_molecules([Molecule('HS')])
    rho = packing_fraction_to_density(0.3)
    state = BulkState(fluid, rho, 1.0)

    assert state.pressure == pytest.approx(percus_yevick_pressure(rho, 0.3))
    assert state.chemical_potential[0] == pytest.approx(np.log(rho) + percus_yevick_chemical_potential(0.3))
    with pytest.raises(ValueError):
        state.density[0] = 1.0

    hotter = state.update(temperature=2.0)
    assert hotter.density[0] == pytest.approx(rho)
    assert hotter.pressure == pytest.approx(2.0*state.pressure)


def test_bulk_state_validation():
    fluid = HelmholtzFunctional.from_molecules([Molecule('HS')])
    with pytest.raises(exceptions.ShapeMismatchError):
        BulkState(fluid, [0.1, 0.2], 1.0)
    with pytest.raises(ValueError):
        BulkState(fluid, 0.1, 0.0)
    with pytest.raises(ValueError):
        BulkState(fluid, -0.1, 1.0)


def test_bulk_density_from_chemical_potential():
    fluid = HelmholtzFunctional.from_molecules([Molecule('LJ', epsilon=1.0)])
    rho, T = 0.5, 2.0
    mu = fluid.bulk_chemical_potential(rho, T)[0]
    density = bulk_density_from_chemical_potential(fluid, mu, T, [0.505])
    assert density[0] == pytest.approx(rho, abs=1e-12)


def test_molecule_validation():
    with pytest.raises(ValueError):
        Molecule('bad', diameter=0.0)
    with pytest.raises(ValueError):
        Molecule('bad', segments=2, bonds=[(0, 2)])
    assert Molecule('chain', segments=5).bond_count == 4
    assert Molecule('ring', segments=3, bonds=[(0, 1), (1, 2), (2, 0)]).bond_count == 3
    assert not Molecule('inert').associates
