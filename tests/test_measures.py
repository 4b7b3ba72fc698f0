"""
Tests for the interfacial measures and sum rules. The ideal gas is used
where exact results are known.
"""

import numpy as np
import pytest

from profileDFT.external_potentials import external_potential
from profileDFT.fluid import BulkState, bulk_density_from_chemical_potential
from profileDFT.grid import Grid
from profileDFT.measures import (Observables, adsorption, adsorption_sum_rule, contact_sum_rule,
                                 equimolar_radius, grand_potential, interfacial_entropy,
                                 interfacial_tension, local_compressibility,
                                 local_thermal_susceptibility, post_process, reference_position,
                                 resolve, solvation_free_energy, surface_excess, wall_surface)
from profileDFT.minimisation import SolverConfig, solve


def test_wall_surface_is_edge_of_excluded_region(ideal_wall_profile):
    grid = ideal_wall_profile.grid
    surface = wall_surface(ideal_wall_profile)
    first = int(np.argmax(np.isfinite(ideal_wall_profile.external_field[0])))

    assert surface == pytest.approx(grid.r[first] - 0.5*grid.dr)
    assert reference_position(ideal_wall_profile) == surface
    assert reference_position(ideal_wall_profile, 1.5) == 1.5


def test_ideal_gas_tension_is_minus_temperature_times_adsorption(ideal_wall_profile):
    T = ideal_wall_profile.temperature
    gamma = interfacial_tension(ideal_wall_profile)
    excess = adsorption(ideal_wall_profile)

    assert ideal_wall_profile.iterations == 0
    assert gamma == pytest.approx(-T*excess, rel=1e-8)


def test_surface_excess_of_ideal_gas(ideal_wall_profile):
    profile = ideal_wall_profile
    grid = profile.grid
    V = profile.external_field[0]
    region = grid.r > wall_surface(profile)

    expected = 0.1*np.sum((np.exp(-V[region]) - 1.0)*grid.weights[region])
    assert surface_excess(profile)[0] == pytest.approx(expected, rel=1e-8)


def test_solvation_free_energy_includes_excluded_volume(ideal_wall_profile):
    profile = ideal_wall_profile
    p = profile.bulk_state.pressure
    surface = wall_surface(profile)
    expected = interfacial_tension(profile) + p*surface
    assert solvation_free_energy(profile) == pytest.approx(expected, rel=1e-8)


def test_grand_potential_is_integral_of_density(ideal_wall_profile):
    profile = ideal_wall_profile
    expected = -profile.temperature*profile.grid.integrate(profile.density[0])
    assert grand_potential(profile) == pytest.approx(expected, rel=1e-8)


def test_adsorption_sum_rule(ideal_wall_profile):
    adsorp, derivative, error = adsorption_sum_rule(ideal_wall_profile, dmu=1e-4)
    assert derivative == pytest.approx(adsorp, rel=1e-4)
    assert error < 1e-4


def test_interfacial_entropy_matches_temperature_derivative(ideal_wall_profile):
    profile = ideal_wall_profile
    state = profile.bulk_state
    reference = wall_surface(profile)
    dT = 1e-4

    tensions = []
    for T in (state.temperature - dT, state.temperature + dT):
        density = bulk_density_from_chemical_potential(profile.functional, state.chemical_potential[0],
                                                       T, state.density)
        shifted = resolve(profile, state.update(density=density, temperature=T))
        tensions.append(interfacial_tension(shifted, reference))

    expected = -(tensions[1] - tensions[0])/(2.0*dT)
    assert interfacial_entropy(profile, reference) == pytest.approx(expected, rel=1e-4)


def test_local_compressibility_of_ideal_gas(ideal_wall_profile):
    profile = ideal_wall_profile
    chi = local_compressibility(profile, dmu=1e-4)
    reachable = profile.density > 1e-100
    np.testing.assert_allclose(chi[reachable], profile.density[reachable]/profile.temperature, rtol=1e-4)


def test_local_thermal_susceptibility_of_ideal_gas(ideal_wall_profile):
    profile = ideal_wall_profile
    state = profile.bulk_state
    T = state.temperature
    mu = state.chemical_potential[0]
    V = profile.external_field

    susceptibility = local_thermal_susceptibility(profile, dT=1e-4)

    # rho = exp((mu - V)/T) for an ideal gas at constant mu
    reachable = profile.density > 1e-100
    expected = -profile.density*(mu - V)/T**2
    np.testing.assert_allclose(susceptibility[reachable], expected[reachable], rtol=1e-4)


def test_post_process(ideal_wall_profile):
    observables = post_process(ideal_wall_profile)
    assert isinstance(observables, Observables)
    assert observables.adsorption == pytest.approx(np.sum(observables.surface_excess))
    assert observables.interfacial_tension == pytest.approx(interfacial_tension(ideal_wall_profile))
    assert observables.reference == wall_surface(ideal_wall_profile)


def test_results_are_written_to_file(ideal_wall_profile, tmp_path):
    fout = str(tmp_path/'measures.txt')
    interfacial_tension(ideal_wall_profile, fout=fout)
    adsorption(ideal_wall_profile, fout=fout)
    with open(fout) as f:
        text = f.read()
    assert 'Surface Tension' in text
    assert 'Adsorption' in text


@pytest.mark.parametrize('geometry', ['cylindrical', 'spherical'])
def test_equimolar_radius_of_hard_solute(geometry, ideal_gas):
    grid = Grid(geometry, 512, 8.0)
    bulk = BulkState(ideal_gas, 0.2, 1.0)
    Vext = external_potential(grid, 'HW', 2.0)

    profile = solve(grid, bulk, Vext)

    first = int(np.argmax(np.isfinite(Vext[0])))
    assert equimolar_radius(profile) == pytest.approx(grid.r[first] - 0.5*grid.dr, rel=1e-10)
    assert adsorption(profile) == pytest.approx(0.0, abs=1e-12)
    assert interfacial_tension(profile) == pytest.approx(0.0, abs=1e-12)


def test_contact_sum_rule_requires_planar_geometry(ideal_gas):
    grid = Grid('spherical', 256, 8.0)
    bulk = BulkState(ideal_gas, 0.2, 1.0)
    profile = solve(grid, bulk, external_potential(grid, 'HW', 1.0))
    with pytest.raises(ValueError):
        contact_sum_rule(profile)


def test_contact_sum_rule_of_ideal_gas(ideal_gas, planar_grid):
    bulk = BulkState(ideal_gas, 0.3, 1.5)
    profile = solve(planar_grid, bulk, external_potential(planar_grid, 'HW', 1.0),
                    SolverConfig(tolerance=1e-10))
    pressure, contact, error = contact_sum_rule(profile)
    assert pressure == pytest.approx(1.5*0.3)
    assert error == pytest.approx(0.0, abs=1e-12)


def test_adsorption_sum_rule_without_adsorption(ideal_gas, planar_grid):
    bulk = BulkState(ideal_gas, 0.2, 1.0)
    profile = solve(planar_grid, bulk, external_potential(planar_grid, 'HW', 1.0))

    adsorp, derivative, error = adsorption_sum_rule(profile, dmu=1e-4)
    assert adsorp == pytest.approx(0.0, abs=1e-12)
    assert np.isfinite(error)
    assert error == pytest.approx(abs(derivative))
    assert error < 1e-6


def test_contact_sum_rule_at_zero_density(ideal_gas, planar_grid):
    bulk = BulkState(ideal_gas, 0.0, 1.0)
    profile = solve(planar_grid, bulk, external_potential(planar_grid, 'HW', 1.0))

    pressure, contact, error = contact_sum_rule(profile)
    assert pressure == 0.0
    assert contact == 0.0
    assert error == 0.0
