#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This module contains the objects and methods required to find the
equilibrium density profile, i.e. the profile which satisfies the
Euler-Lagrange equation
    mu_i = T ln rho_i(r) + dF_ex/drho_i(r) + V_i(r)
for every species.

Supported mixing schemes are:
    Picard (picard)
    Anderson (anderson)
    Newton-GMRES (newton)

All schemes work with the logarithm of the density, which keeps the
profile positive. The Picard update is
    rho_new = rho_old exp(damping * R / T),
where R = mu - dF/drho is the residual, i.e. a geometric mixing of the old
profile and rho_old exp(R/T). A step is only accepted if it does not
increase the residual norm by more than the divergence guard; otherwise
the damping is halved and the step attempted again. Anderson and Newton
steps fall back to Picard steps when they fail.

-------------------------------------------------------------------
Copyright 2022 Mary Coe

This file is part of profileDFT.

profileDFT is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

profileDFT is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with profileDFT.  If not, see <https://www.gnu.org/licenses/>.
-------------------------------------------------------------------
"""

import copy
import logging
from enum import Enum

import numpy as np
from scipy.sparse.linalg import LinearOperator, gmres

import profileDFT.exceptions as exceptions
from profileDFT.derivatives import FunctionalDerivativeEngine, excluded_nodes, residual_norm

logger = logging.getLogger(__name__)

MIXING_SCHEMES = ('picard', 'anderson', 'newton')
NORMS = ('l2', 'max')

def valid_damping(damping):

    """
    Checks if a valid damping factor (Picard mixing parameter) has been
    supplied.

    Args:
        damping(float): Damping factor. Should be between 0.0 and 1.0.
    Returns:
        damping(float): If the damping factor supplied is valid, it is
                        returned. If not, 0.1 is returned as default.
    """

    if (damping <= 1.0) and (damping > 0.0):
        return damping
    logger.warning(f'Invalid damping factor {damping} supplied. '\
                   f'The damping factor must be between 0.0 and 1.0. Setting it to 0.1.')
    return 0.1

def _valid(name, value, default, condition, description):

    if condition(value):
        return value
    logger.warning(f'Invalid value of {name} ({value}) supplied. {name} must be {description}. '\
                   f'Setting {name} to {default}.')
    return default

class SolverConfig:

    """
    Settings of the minimisation. Invalid numerical settings are replaced by
    their defaults, with a warning. An unknown mixing scheme or norm raises
    an error.

    Attributes:
        tolerance(float): Residual norm at which the profile is converged
        max_iterations(int): Maximum number of iterations
        mixing_scheme(string): picard, anderson or newton
        damping_factor(float): Picard damping factor
        divergence_guard(float): A step is rejected if the residual norm
                                 grows by more than this factor
        max_damping_retries(int): Number of times the damping is halved
                                  before the minimisation is declared
                                  diverged
        damping_recovery(float): Factor by which the damping grows back
                                 towards damping_factor after an accepted
                                 step
        divergence_limit(float): The minimisation is declared diverged if the
                                 residual norm exceeds this multiple of its
                                 initial value
        anderson_history(int): Number of previous iterates used by Anderson
                               mixing
        anderson_condition_limit(float): Largest condition number of the
                                         Anderson least-squares problem
        newton_start(float): Residual norm below which Newton steps are
                             attempted
        newton_krylov_tolerance(float): Relative tolerance of GMRES
        newton_krylov_iterations(int): Maximum GMRES iterations
        norm(string): l2 (density weighted root mean square) or max
        threads(int): Number of threads
        log_frequency(int): Iterations between progress messages
        potential_cap(float): Nodes where the external potential exceeds
                              this value, in units of kT, are treated as
                              hard
    """

    def __init__(self, tolerance=1e-10, max_iterations=100000, mixing_scheme='picard',
                 damping_factor=0.1, divergence_guard=1.0, max_damping_retries=10,
                 damping_recovery=2.0, divergence_limit=1e3, anderson_history=5,
                 anderson_condition_limit=1e10, newton_start=1e-3, newton_krylov_tolerance=1e-3,
                 newton_krylov_iterations=50, norm='l2', threads=1, log_frequency=1000,
                 potential_cap=500.0):

        if mixing_scheme not in MIXING_SCHEMES:
            raise exceptions.UnsupportedMixingSchemeError(mixing_scheme)
        if norm not in NORMS:
            raise ValueError(f'Norm {norm} is not supported. The supported norms are l2 and max.')

        positive = lambda x: x > 0.0
        self.mixing_scheme = mixing_scheme
        self.norm = norm
        self.tolerance = _valid('tolerance', tolerance, 1e-10, positive, 'positive')
        self.max_iterations = int(_valid('max_iterations', max_iterations, 100000,
                                         lambda x: x >= 0, 'at least 0'))
        self.damping_factor = valid_damping(damping_factor)
        self.divergence_guard = _valid('divergence_guard', divergence_guard, 1.0,
                                       lambda x: x >= 1.0, 'at least 1.0')
        self.max_damping_retries = int(_valid('max_damping_retries', max_damping_retries, 10,
                                              lambda x: x >= 0, 'at least 0'))
        self.damping_recovery = _valid('damping_recovery', damping_recovery, 2.0,
                                       lambda x: x >= 1.0, 'at least 1.0')
        self.divergence_limit = _valid('divergence_limit', divergence_limit, 1e3,
                                       lambda x: x > 1.0, 'greater than 1.0')
        self.anderson_history = int(_valid('anderson_history', anderson_history, 5,
                                           lambda x: x >= 1, 'at least 1'))
        self.anderson_condition_limit = _valid('anderson_condition_limit', anderson_condition_limit,
                                               1e10, lambda x: x > 1.0, 'greater than 1.0')
        self.newton_start = _valid('newton_start', newton_start, 1e-3, positive, 'positive')
        self.newton_krylov_tolerance = _valid('newton_krylov_tolerance', newton_krylov_tolerance,
                                              1e-3, lambda x: 0.0 < x < 1.0, 'between 0.0 and 1.0')
        self.newton_krylov_iterations = int(_valid('newton_krylov_iterations', newton_krylov_iterations,
                                                   50, lambda x: x >= 1, 'at least 1'))
        self.threads = int(_valid('threads', threads, 1, lambda x: x >= 1, 'at least 1'))
        self.log_frequency = int(_valid('log_frequency', log_frequency, 1000,
                                        lambda x: x >= 1, 'at least 1'))
        self.potential_cap = _valid('potential_cap', potential_cap, 500.0, positive, 'positive')

    def copy_parameters(self, **changes):
        """Returns a copy of the configuration with some settings changed."""

        params = copy.copy(self.__dict__)
        params.update(changes)
        return SolverConfig(**params)

    def information(self):
        print(f'Mixing scheme: {self.mixing_scheme}')
        print(f'Tolerance: {self.tolerance} ({self.norm} norm)')
        print(f'Maximum iterations: {self.max_iterations}')
        print(f'Damping factor: {self.damping_factor}')

    def __repr__(self):
        return f'SolverConfig(mixing_scheme={self.mixing_scheme!r}, tolerance={self.tolerance}, '\
               f'damping_factor={self.damping_factor})'


class SolverState(Enum):
    INITIALIZED = 'initialized'
    ITERATING = 'iterating'
    CONVERGED = 'converged'
    DIVERGED = 'diverged'
    MAX_ITERATIONS_REACHED = 'max_iterations_reached'
    ABORTED = 'aborted'


class ConvergedProfile:

    """
    Equilibrium density profile found by the solver, together with the
    information needed to calculate measures from it. The density array is
    read-only.

    Attributes:
        grid(Grid): grid of the system
        density(np.array(float)): equilibrium density profiles, shape
                                  (n_species, N)
        bulk_state(BulkState): bulk state of the fluid
        external_field(np.array(float)): external potential
        functional(HelmholtzFunctional): free energy functional
        engine(FunctionalDerivativeEngine): engine used by the solver
        config(SolverConfig): settings of the minimisation
        iterations(int): number of iterations performed
        residual_norm(float): final residual norm
        residual_history(tuple(float)): residual norm at each iteration
    """

    def __init__(self, grid, density, bulk_state, external_field, engine, config,
                 iterations, residual_norm, residual_history):

        self.grid = grid
        self.density = np.array(density, dtype=float)
        self.density.flags.writeable = False
        self.bulk_state = bulk_state
        self.external_field = np.array(external_field, dtype=float)
        self.external_field.flags.writeable = False
        self.engine = engine
        self.functional = engine.functional
        self.config = config
        self.iterations = iterations
        self.residual_norm = residual_norm
        self.residual_history = tuple(residual_history)
        self.state = SolverState.CONVERGED

    @property
    def r(self):
        return self.grid.r

    @property
    def temperature(self):
        return self.bulk_state.temperature

    def reduced_density(self):
        """Density profiles divided by the bulk densities (zero for absent species)."""

        rho_b = self.bulk_state.density[:, None]
        with np.errstate(divide='ignore', invalid='ignore'):
            return np.where(rho_b > 0.0, self.density/rho_b, 0.0)

    def information(self):
        self.grid.information()
        self.bulk_state.information()
        print(f'Convergence in {self.iterations} iterations. Residual norm: {self.residual_norm:.6e}')


class ProfileSolver:

    """
    Iterative procedure to calculate the equilibrium density profile.
    """

    def __init__(self, grid, bulk_state, external_field, config=None, initial_profile=None,
                 abort=None, engine=None):

        """
        Args:
            Required:
                grid(Grid): Grid of the system
                bulk_state(BulkState): Bulk state the system is in contact
                                       with. Its model is the functional
                                       which is minimised.
                external_field(np.array(float)): External potential, shape
                                                 (n_species, N)
            Optional:
                config(SolverConfig): Settings. Default is SolverConfig().
                initial_profile(np.array(float)): Initial guess, e.g. the
                        equilibrium profile of a nearby state point.
                        Default is rho_b exp(-V/T).
                abort(callable): Called between iterations. The minimisation
                                 stops if it returns True.
                engine(FunctionalDerivativeEngine): Engine to use. Default is
                        a new engine for the grid and functional.
        """

        self.grid = grid
        self.bulk_state = bulk_state
        self.config = config if config is not None else SolverConfig()
        self.abort = abort
        self.engine = engine if engine is not None else \
                      FunctionalDerivativeEngine(grid, bulk_state.model, self.config.threads)

        self.n_species = self.engine.n_species
        self.temperature = bulk_state.temperature
        external_field = self.engine._expected_shape('external_field', external_field)
        # Boltzmann factors below exp(-potential_cap) are treated as zero
        with np.errstate(invalid='ignore'):
            self.external_field = np.where(external_field/self.temperature > self.config.potential_cap,
                                           np.inf, external_field)
        self.excluded = excluded_nodes(bulk_state.density, self.external_field)
        self.free = np.invert(self.excluded)

        if initial_profile is None:
            self.density = self.initial_guess()
        else:
            self.density = self.engine._expected_shape('initial_profile', initial_profile).copy()
            self.density[self.excluded] = 0.0
            if np.any(self.density[self.free] <= 0.0):
                raise ValueError('The initial profile must be positive wherever the fluid can reach.')

        self.state = SolverState.INITIALIZED
        self.iterations = 0
        self.residual_history = []
        self.damping = self.config.damping_factor
        self._anderson_u = []
        self._anderson_f = []

    def initial_guess(self):
        """Returns rho_b exp(-V/T), which is zero inside hard walls."""

        rho_b = np.asarray(self.bulk_state.density)[:, None]
        with np.errstate(over='ignore'):
            guess = rho_b*np.exp(-self.external_field/self.temperature)
        guess[self.excluded] = 0.0
        return guess

    def _norm(self, residual, density):
        return residual_norm(residual, self.config.norm, density, self.grid.weights)

    def _evaluate(self, density):
        residual = self.engine.residual(density, self.bulk_state, self.external_field)
        return residual, self._norm(residual, density)

    def _trial(self, density):

        """
        Evaluates a trial profile. Returns None if the profile is not
        physical, so that the step can be attempted again with a smaller
        update.
        """

        if not np.all(np.isfinite(density)):
            return None
        try:
            return self._evaluate(density)
        except (exceptions.PackingFractionOverflow, exceptions.NonFiniteValue) as err:
            logger.debug(f'Trial profile rejected: {err.message}')
            return None

    def _accept(self, norm, previous):
        return norm <= self.config.divergence_guard*previous

    def _update(self, density, du):
        out = np.zeros_like(density)
        out[self.free] = density[self.free]*np.exp(du[self.free])
        return out

    def picard_step(self, density, residual, norm):

        """
        Performs a damped Picard step, halving the damping until the step is
        accepted. If every retry is rejected by the divergence guard, the
        step with the smallest damping is taken; growth of the residual is
        then caught by the divergence limit.

        Returns:
            new density, residual and residual norm

        Raises:
            Diverged if no trial profile is physical
        """

        damping = self.damping
        fallback = None
        for attempt in range(self.config.max_damping_retries + 1):

            with np.errstate(over='ignore'):
                trial = self._update(density, damping*residual/self.temperature)
            result = self._trial(trial)

            if result is not None:
                if self._accept(result[1], norm):
                    self.damping = min(damping*self.config.damping_recovery, self.config.damping_factor)
                    return (trial,) + result
                fallback = (trial,) + result
                self.damping = damping

            damping *= 0.5
            logger.debug(f'Picard step rejected. Damping reduced to {damping:.3e}')

        if fallback is None:
            self.state = SolverState.DIVERGED
            raise exceptions.Diverged(self.residual_history, density.copy(),
                                      f'No physical profile after {self.config.max_damping_retries} '\
                                      f'reductions of the damping factor.')

        logger.warning(f'Residual norm increased at iteration {self.iterations} '\
                       f'with damping {self.damping:.3e}.')
        return fallback

    def anderson_step(self, density, residual, norm):

        """
        Performs an Anderson mixing step on the logarithm of the density,
        using the Picard map as the underlying fixed point iteration.
        Returns None if the step fails.
        """

        m = len(self._anderson_u)
        if m < 2:
            return None

        u = np.array(self._anderson_u)
        f = np.array(self._anderson_f)
        dU = np.diff(u, axis=0).T
        dF = np.diff(f, axis=0).T

        if np.linalg.cond(dF) > self.config.anderson_condition_limit:
            logger.debug('Anderson least squares problem is ill-conditioned')
            return None

        gamma = np.linalg.lstsq(dF, f[-1], rcond=None)[0]
        beta = self.config.damping_factor
        u_new = u[-1] + beta*f[-1] - (dU + beta*dF) @ gamma

        trial = np.zeros_like(density)
        with np.errstate(over='ignore'):
            trial[self.free] = np.exp(u_new)
        result = self._trial(trial)
        if result is None or not self._accept(result[1], norm):
            return None
        return (trial,) + result

    def _record_anderson(self, density, residual):

        with np.errstate(divide='ignore'):
            self._anderson_u.append(np.log(density[self.free]))
        self._anderson_f.append(residual[self.free]/self.temperature)
        if len(self._anderson_u) > self.config.anderson_history + 1:
            self._anderson_u.pop(0); self._anderson_f.pop(0)

    def newton_step(self, density, residual, norm):

        """
        Performs a Newton step on the logarithm of the density. The linear
        system
            (T + d2F_ex/drho2 rho) du = R
        is solved with GMRES using Hessian-vector products. The step is
        halved until it is accepted. Returns None if the step fails.
        """

        free = self.free
        T = self.temperature

        def matvec(x):
            v = np.zeros_like(density)
            v[free] = np.ravel(x)
            hv = self.engine.hessian_vector_product(density, density*v, T)
            return hv[free]

        size = int(np.count_nonzero(free))
        operator = LinearOperator((size, size), matvec=matvec, dtype=float)

        try:
            x, info = gmres(operator, residual[free], rtol=self.config.newton_krylov_tolerance,
                            atol=0.0, maxiter=self.config.newton_krylov_iterations)
        except (exceptions.PackingFractionOverflow, exceptions.NonFiniteValue) as err:
            logger.debug(f'GMRES failed: {err.message}')
            return None

        if info != 0 or not np.all(np.isfinite(x)):
            logger.debug(f'GMRES did not converge (info = {info})')
            return None

        du = np.zeros_like(density)
        du[free] = x
        step = 1.0
        for attempt in range(self.config.max_damping_retries + 1):
            with np.errstate(over='ignore'):
                trial = self._update(density, step*du)
            result = self._trial(trial)
            if result is not None and self._accept(result[1], norm):
                return (trial,) + result
            step *= 0.5

        return None

    def step(self, density, residual, norm):

        """
        Performs one iteration with the configured mixing scheme, falling
        back to a Picard step where required.
        """

        scheme = self.config.mixing_scheme
        result = None

        if scheme == 'newton' and norm < self.config.newton_start:
            result = self.newton_step(density, residual, norm)
            if result is None:
                logger.warning(f'Newton step failed at iteration {self.iterations}. Using a Picard step.')

        elif scheme == 'anderson':
            self._record_anderson(density, residual)
            if len(self._anderson_u) >= 2:
                result = self.anderson_step(density, residual, norm)
                if result is None:
                    logger.warning(f'Anderson step failed at iteration {self.iterations}. Using a Picard step.')
                    self._anderson_u = self._anderson_u[-1:]; self._anderson_f = self._anderson_f[-1:]

        if result is None:
            result = self.picard_step(density, residual, norm)

        return result

    def minimise(self):

        """
        Iterates until the residual norm falls to the tolerance.

        Returns:
            ConvergedProfile

        Raises:
            MaxIterationsReached, Diverged, SolverAborted
        """

        density = self.density
        residual, norm = self._evaluate(density)
        self.residual_history = [norm]
        initial = max(norm, self.config.tolerance)
        best_density, best_norm = density.copy(), norm

        self.state = SolverState.ITERATING
        logger.debug(f'Initial residual norm: {norm:.6e}')

        while norm > self.config.tolerance:

            if self.iterations >= self.config.max_iterations:
                self.state = SolverState.MAX_ITERATIONS_REACHED
                logger.warning(f'Density profile failed to converge after {self.iterations} iterations.')
                raise exceptions.MaxIterationsReached(self.iterations, best_norm, best_density,
                                                      self.residual_history)

            if self.abort is not None and self.abort():
                self.state = SolverState.ABORTED
                raise exceptions.SolverAborted(self.iterations, norm, density.copy())

            density, residual, norm = self.step(density, residual, norm)
            self.density = density
            self.iterations += 1
            self.residual_history.append(norm)

            if norm < best_norm:
                best_density, best_norm = density.copy(), norm

            if norm > self.config.divergence_limit*initial:
                self.state = SolverState.DIVERGED
                raise exceptions.Diverged(self.residual_history, density.copy(),
                                          'Residual norm exceeded the divergence limit.')

            if self.iterations % self.config.log_frequency == 0:
                logger.info(f'{self.iterations} complete. Residual norm: {norm:.6e}')

        self.state = SolverState.CONVERGED
        logger.info(f'Convergence achieved in {self.iterations} iterations.')

        return ConvergedProfile(self.grid, density, self.bulk_state, self.external_field, self.engine,
                                self.config, self.iterations, norm, self.residual_history)


def solve(grid, bulk_state, external_field, solver_config=None, initial_profile=None, abort=None):

    """
    Finds the equilibrium density profile of a fluid in an external field.

    Args:
        Required:
            grid(Grid): Grid of the system
            bulk_state(BulkState): Bulk state the system is in contact with
            external_field(np.array(float)): External potential, shape
                                             (n_species, N)
        Optional:
            solver_config(SolverConfig): Settings of the minimisation
            initial_profile(np.array(float)): Initial guess
            abort(callable): Called between iterations; the minimisation
                             stops if it returns True

    Returns:
        ConvergedProfile

    Example:
        >>> grid = Grid('planar', 4096, 8.0)
        >>> fluid = HelmholtzFunctional.from_molecules([Molecule('HS')])
        >>> bulk = BulkState(fluid, 0.6, 1.0)
        >>> profile = solve(grid, bulk, external_potential(grid, 'HW', 1.0))
    """

    solver = ProfileSolver(grid, bulk_state, external_field, solver_config, initial_profile, abort)
    try:
        return solver.minimise()
    finally:
        solver.engine.close()
