"""
Tests for the profile solver.
"""

import logging

import numpy as np
import pytest

import profileDFT.exceptions as exceptions
from profileDFT.external_potentials import external_potential, no_potential, planar_wall
from profileDFT.fluid import BulkState, Molecule
from profileDFT.functionals import HelmholtzFunctional
from profileDFT.grid import Grid
from profileDFT.measures import contact_density, contact_sum_rule
from profileDFT.minimisation import (ConvergedProfile, ProfileSolver, SolverConfig, SolverState,
                                     solve, valid_damping)


def uniform_start(bulk, Vext):
    density = np.repeat(np.asarray(bulk.density)[:, None], Vext.shape[1], axis=1)
    density[~np.isfinite(Vext)] = 0.0
    return density


@pytest.mark.parametrize('geometry', ['planar', 'cylindrical', 'spherical'])
def test_bulk_is_a_fixed_point(geometry, hard_spheres):
    grid = Grid(geometry, 256, 8.0)
    bulk = BulkState(hard_spheres, 0.6, 1.0)

    profile = solve(grid, bulk, no_potential(grid))

    assert isinstance(profile, ConvergedProfile)
    assert profile.iterations == 0
    assert profile.state == SolverState.CONVERGED
    np.testing.assert_allclose(profile.density, 0.6, rtol=1e-12)


def test_zero_density_converges_immediately(hard_spheres, planar_grid):
    bulk = BulkState(hard_spheres, 0.0, 1.0)
    Vext = planar_wall(planar_grid, 'HW', 1.0)

    profile = solve(planar_grid, bulk, Vext)

    assert profile.iterations == 0
    np.testing.assert_array_equal(profile.density, 0.0)


def test_picard_residual_is_non_increasing(ideal_gas, planar_grid):
    bulk = BulkState(ideal_gas, 0.2, 1.0)
    Vext = planar_wall(planar_grid, 'LJ', 0.0)
    config = SolverConfig(tolerance=1e-8, norm='max', damping_factor=0.1)

    profile = solve(planar_grid, bulk, Vext, config, initial_profile=uniform_start(bulk, Vext))

    history = np.array(profile.residual_history)
    assert profile.iterations > 0
    assert np.all(np.diff(history) <= 1e-12*history[:-1])
    with np.errstate(divide='ignore'):
        expected = 0.2*np.exp(-Vext/1.0)
    np.testing.assert_allclose(profile.density, expected, rtol=1e-7, atol=1e-300)


@pytest.mark.parametrize('scheme,limit', [('anderson', 30), ('newton', 5)])
def test_accelerated_schemes_converge(scheme, limit, ideal_gas, planar_grid):
    bulk = BulkState(ideal_gas, 0.2, 1.0)
    Vext = planar_wall(planar_grid, 'LJ', 0.0)
    config = SolverConfig(tolerance=1e-8, norm='max', mixing_scheme=scheme, newton_start=1e10)

    profile = solve(planar_grid, bulk, Vext, config, initial_profile=uniform_start(bulk, Vext))

    assert profile.iterations <= limit
    assert profile.residual_norm <= 1e-8


def test_hard_sphere_at_hard_wall():
    eta = 0.3
    rho_b = 6.0*eta/np.pi
    grid = Grid('planar', 4096, 8.0)
    fluid = HelmholtzFunctional.from_molecules([Molecule('HS')], functional='RF')
    bulk = BulkState(fluid, rho_b, 1.0)
    Vext = external_potential(grid, 'HW', 1.0)
    config = SolverConfig(tolerance=1e-7, max_iterations=20000, damping_factor=0.1)

    profile = solve(grid, bulk, Vext, config)

    assert profile.state == SolverState.CONVERGED
    assert np.all(profile.density[0, grid.r < 1.0] == 0.0)
    assert contact_density(profile)[0] > 2.0*rho_b

    far = grid.index(6.0)
    assert abs(profile.density[0, far] - rho_b)/rho_b < 1e-2

    pressure, contact, error = contact_sum_rule(profile)
    assert error < 0.03


def test_max_iterations_reached_carries_best_profile(hard_spheres, planar_grid):
    bulk = BulkState(hard_spheres, 0.5, 1.0)
    Vext = planar_wall(planar_grid, 'HW', 1.0)
    config = SolverConfig(tolerance=1e-12, max_iterations=3)

    with pytest.raises(exceptions.MaxIterationsReached) as err:
        solve(planar_grid, bulk, Vext, config)

    assert err.value.iterations == 3
    assert err.value.profile.shape == (1, planar_grid.N)
    assert err.value.residual_norm == min(err.value.residual_history)
    assert len(err.value.residual_history) == 4


def test_abort_stops_minimisation(hard_spheres, planar_grid):
    bulk = BulkState(hard_spheres, 0.5, 1.0)
    Vext = planar_wall(planar_grid, 'HW', 1.0)
    calls = []

    def abort():
        calls.append(1)
        return len(calls) > 2

    with pytest.raises(exceptions.SolverAborted) as err:
        solve(planar_grid, bulk, Vext, abort=abort)
    assert err.value.iterations == 2


def test_solver_state_transitions(hard_spheres, planar_grid):
    bulk = BulkState(hard_spheres, 0.5, 1.0)
    Vext = planar_wall(planar_grid, 'HW', 1.0)
    solver = ProfileSolver(planar_grid, bulk, Vext, SolverConfig(max_iterations=1, tolerance=1e-12))
    assert solver.state == SolverState.INITIALIZED

    with pytest.raises(exceptions.MaxIterationsReached):
        solver.minimise()
    assert solver.state == SolverState.MAX_ITERATIONS_REACHED


def test_initial_guess_is_boltzmann_factor(ideal_gas, planar_grid):
    bulk = BulkState(ideal_gas, 0.3, 2.0)
    Vext = planar_wall(planar_grid, 'SLJ', 1.0)
    solver = ProfileSolver(planar_grid, bulk, Vext)

    reachable = np.isfinite(Vext)
    np.testing.assert_allclose(solver.density[reachable], 0.3*np.exp(-Vext[reachable]/2.0))
    assert np.all(solver.density[~reachable] == 0.0)


def test_initial_profile_must_be_positive(ideal_gas, planar_grid):
    bulk = BulkState(ideal_gas, 0.3, 1.0)
    with pytest.raises(ValueError):
        ProfileSolver(planar_grid, bulk, no_potential(planar_grid), initial_profile=np.zeros((1, planar_grid.N)))


def test_external_field_shape_is_checked(hard_spheres, planar_grid):
    bulk = BulkState(hard_spheres, 0.5, 1.0)
    with pytest.raises(exceptions.ShapeMismatchError):
        solve(planar_grid, bulk, np.zeros((2, planar_grid.N)))


def test_solver_config_validation(caplog):
    with pytest.raises(exceptions.UnsupportedMixingSchemeError):
        SolverConfig(mixing_scheme='broyden')
    with pytest.raises(ValueError):
        SolverConfig(norm='l1')

    with caplog.at_level(logging.WARNING, logger='profileDFT.minimisation'):
        config = SolverConfig(damping_factor=2.0, anderson_history=0)
    assert config.damping_factor == 0.1
    assert config.anderson_history == 5
    assert 'Invalid damping factor' in caplog.text

    changed = config.copy_parameters(mixing_scheme='anderson', tolerance=1e-6)
    assert changed.mixing_scheme == 'anderson'
    assert changed.tolerance == 1e-6
    assert changed.damping_factor == 0.1


def test_valid_damping():
    assert valid_damping(0.05) == 0.05
    assert valid_damping(0.0) == 0.1
    assert valid_damping(1.5) == 0.1


def test_strong_walls_are_hard_at_low_temperature(ideal_gas, planar_grid):
    T = 0.6
    bulk = BulkState(ideal_gas, 0.1, T)
    Vext = planar_wall(planar_grid, 'LJ', 0.0)

    profile = solve(planar_grid, bulk, Vext, SolverConfig(tolerance=1e-10))

    with np.errstate(invalid='ignore'):
        soft = Vext/T <= 500.0
    assert profile.iterations == 0
    assert np.all(np.isfinite(profile.density))
    np.testing.assert_allclose(profile.density[soft], 0.1*np.exp(-Vext[soft]/T))
    assert np.all(profile.density[~soft] == 0.0)
    assert np.all(np.isinf(profile.external_field[~soft]))


def test_potential_cap_is_in_units_of_temperature(ideal_gas, planar_grid):
    Vext = planar_wall(planar_grid, 'LJ', 0.0)
    config = SolverConfig(potential_cap=20.0)

    cold = ProfileSolver(planar_grid, BulkState(ideal_gas, 0.1, 0.5), Vext, config)
    hot = ProfileSolver(planar_grid, BulkState(ideal_gas, 0.1, 2.0), Vext, config)

    with np.errstate(invalid='ignore'):
        np.testing.assert_array_equal(cold.excluded, ~(Vext/0.5 <= 20.0))
        np.testing.assert_array_equal(hot.excluded, ~(Vext/2.0 <= 20.0))
    assert np.count_nonzero(cold.excluded) > np.count_nonzero(hot.excluded)


def test_diverged_when_no_trial_profile_is_physical(hard_spheres, planar_grid, monkeypatch):
    bulk = BulkState(hard_spheres, 0.5, 1.0)
    Vext = planar_wall(planar_grid, 'HW', 1.0)
    solver = ProfileSolver(planar_grid, bulk, Vext, SolverConfig(max_damping_retries=2))
    monkeypatch.setattr(solver, '_trial', lambda density: None)

    with pytest.raises(exceptions.Diverged) as err:
        solver.minimise()

    assert solver.state == SolverState.DIVERGED
    assert len(err.value.residual_history) == 1
    assert err.value.profile.shape == (1, planar_grid.N)
    np.testing.assert_array_equal(err.value.profile, solver.density)


def test_diverged_when_residual_exceeds_limit(hard_spheres, planar_grid, monkeypatch):
    bulk = BulkState(hard_spheres, 0.5, 1.0)
    Vext = planar_wall(planar_grid, 'HW', 1.0)
    solver = ProfileSolver(planar_grid, bulk, Vext, SolverConfig(divergence_limit=2.0))
    monkeypatch.setattr(solver, 'step', lambda density, residual, norm: (density, residual, 10.0*norm))

    with pytest.raises(exceptions.Diverged) as err:
        solver.minimise()

    history = err.value.residual_history
    assert solver.state == SolverState.DIVERGED
    assert len(history) == 2
    assert history[1] == pytest.approx(10.0*history[0])
    assert err.value.profile.shape == (1, planar_grid.N)


def test_anderson_falls_back_to_picard(hard_spheres, planar_grid, caplog):
    bulk = BulkState(hard_spheres, 6.0*0.3/np.pi, 1.0)
    Vext = planar_wall(planar_grid, 'HW', 1.0)
    config = SolverConfig(mixing_scheme='anderson', anderson_condition_limit=1.0 + 1e-9,
                          max_iterations=4, tolerance=1e-12)

    with caplog.at_level(logging.WARNING, logger='profileDFT.minimisation'):
        with pytest.raises(exceptions.MaxIterationsReached) as err:
            solve(planar_grid, bulk, Vext, config)

    assert err.value.iterations == 4
    assert 'Anderson step failed' in caplog.text


def test_newton_falls_back_to_picard(hard_spheres, planar_grid, caplog, monkeypatch):
    bulk = BulkState(hard_spheres, 6.0*0.3/np.pi, 1.0)
    Vext = planar_wall(planar_grid, 'HW', 1.0)
    config = SolverConfig(mixing_scheme='newton', newton_start=1e10, max_iterations=2, tolerance=1e-12)
    solver = ProfileSolver(planar_grid, bulk, Vext, config)

    def failing_product(density, vector, temperature):
        raise exceptions.NonFiniteValue('Hessian-vector product')

    monkeypatch.setattr(solver.engine, 'hessian_vector_product', failing_product)

    with caplog.at_level(logging.WARNING, logger='profileDFT.minimisation'):
        with pytest.raises(exceptions.MaxIterationsReached):
            solver.minimise()

    assert solver.iterations == 2
    assert caplog.text.count('Newton step failed') == 2
    assert len(solver.residual_history) == 3
