#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This module contains the functional derivative engine.

Each functional contribution writes its free energy density once, as a
sympy expression of its weighted densities and the temperature. The
derivatives with respect to the weighted densities (and, lazily, the
second derivatives and the temperature derivative) are obtained
symbolically and compiled to numpy functions. The functional derivative
then follows from the chain rule,
    dF/drho_i(r) = sum_a (w_ai^T * dphi/dn_a)(r),
which the convolver evaluates as the adjoint of the weighted density
convolution.

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

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import sympy as sp
from scipy.special import xlogy

import profileDFT.exceptions as exceptions
from profileDFT.convolution import WeightedDensityConvolver

logger = logging.getLogger(__name__)


def _as_field(value, shape):
    # lambdified constants come back as python scalars
    value = np.asarray(value, dtype=float)
    if value.shape != shape:
        value = np.broadcast_to(value, shape).copy()
    return value


class SymbolicDerivatives:

    """
    Compiled free energy density of a functional contribution and its
    derivatives.

    Attributes:
        expression(sympy.Expr): free energy density
        variables(tuple(sympy.Symbol)): weighted density symbols
        temperature(sympy.Symbol): temperature symbol
        gradient_expressions(list(sympy.Expr)): first derivatives
    """

    def __init__(self, expression, variables, temperature):

        self.expression = expression
        self.variables = tuple(variables)
        self.temperature = temperature
        self._args = self.variables + (temperature,)

        self._energy = sp.lambdify(self._args, expression, 'numpy')
        self.gradient_expressions = [sp.diff(expression, v) for v in self.variables]
        self._gradient = [sp.lambdify(self._args, g, 'numpy') for g in self.gradient_expressions]

        # Only needed by Newton iterations and entropies
        self._hessian = None
        self._temperature_derivative = None

    def _call(self, func, n, temperature):
        return _as_field(func(*n, temperature), (n.shape[1],))

    def energy(self, n, temperature):
        """Free energy density, shape (N,), from weighted densities of shape (A, N)."""
        return self._call(self._energy, n, temperature)

    def gradient(self, n, temperature):
        """Derivatives with respect to each weighted density, shape (A, N)."""

        out = np.empty(n.shape)
        for a, func in enumerate(self._gradient):
            out[a] = self._call(func, n, temperature)
        return out

    def hessian(self, n, temperature):
        """Second derivatives, shape (A, A, N)."""

        if self._hessian is None:
            A = len(self.variables)
            table = [[None]*A for _ in range(A)]
            for a in range(A):
                for b in range(a, A):
                    expr = sp.diff(self.gradient_expressions[a], self.variables[b])
                    table[a][b] = table[b][a] = sp.lambdify(self._args, expr, 'numpy')
            self._hessian = table

        A = len(self.variables)
        out = np.empty((A, A, n.shape[1]))
        for a in range(A):
            for b in range(a, A):
                out[a, b] = self._call(self._hessian[a][b], n, temperature)
                out[b, a] = out[a, b]
        return out

    def temperature_derivative(self, n, temperature):
        """Derivative with respect to temperature at fixed weighted densities, shape (N,)."""

        if self._temperature_derivative is None:
            expr = sp.diff(self.expression, self.temperature)
            self._temperature_derivative = sp.lambdify(self._args, expr, 'numpy')
        return self._call(self._temperature_derivative, n, temperature)


def check_finite(field, quantity):

    """
    Raises NonFiniteValue if the field contains NaN or infinite values.
    Fields of shape (n_species, N) report the first offending species.
    """

    bad = ~np.isfinite(field)
    if np.any(bad):
        index = np.argwhere(bad)[0]
        if field.ndim == 1:
            raise exceptions.NonFiniteValue(quantity, node=int(index[0]))
        raise exceptions.NonFiniteValue(quantity, node=int(index[-1]), species=int(index[0]))


def excluded_nodes(bulk_density, external_field):

    """
    Returns a boolean array, shape (n_species, N), which is True where the
    density is fixed at zero: inside hard walls (infinite external field)
    and everywhere for species with zero bulk density.
    """

    excluded = ~np.isfinite(external_field)
    excluded |= (np.asarray(bulk_density) <= 0.0)[:, None]
    return excluded


class FunctionalDerivativeEngine:

    """
    Evaluates the Helmholtz free energy functional, its functional
    derivative and the residual of the Euler-Lagrange equation on a grid.
    """

    def __init__(self, grid, functional, threads=1):

        """
        Args:
            Required:
                grid(Grid): Grid of the system
                functional(HelmholtzFunctional): Free energy functional
            Optional:
                threads(int): Number of threads used to evaluate the
                              contributions and by FFTW. Default is 1.
        """

        self.grid = grid
        self.functional = functional
        self.contributions = functional.contributions
        self.n_species = functional.n_species
        self.convolver = WeightedDensityConvolver(grid, self.contributions, self.n_species, threads)
        self.threads = threads
        self._executor = ThreadPoolExecutor(max_workers=threads) if threads > 1 else None

    def _map(self, func, *iterables):
        # executor.map preserves the order of the contributions
        if self._executor is None:
            return list(map(func, *iterables))
        return list(self._executor.map(func, *iterables))

    def close(self):
        """Shuts down the thread pool."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _expected_shape(self, name, array):
        expected = (self.n_species, self.grid.N)
        array = np.asarray(array, dtype=float)
        if array.shape != expected:
            raise exceptions.ShapeMismatchError(name, expected, array.shape)
        return array

    def weighted_densities(self, density):

        """
        Calculates and checks the weighted densities of every contribution.

        Returns:
            List of arrays of shape (n_weighted_densities, N), one for each
            contribution.
        """

        density = self._expected_shape('density', density)
        weighted = self.convolver.weighted_densities(density)
        for contribution, n in zip(self.contributions, weighted):
            check_finite(n, f'weighted densities of {contribution.name}')
            contribution.check(n, density)
        return weighted

    def helmholtz_energy_density(self, density, temperature, weighted=None):

        """
        Calculates the excess free energy density, shape (N,).
        """

        if weighted is None:
            weighted = self.weighted_densities(density)

        fields = self._map(lambda c, n: c.helmholtz_energy_density(n, temperature),
                           self.contributions, weighted)
        out = np.zeros(self.grid.N)
        for field in fields:
            out += field
        return out

    def excess_chemical_potential(self, density, temperature, weighted=None):

        """
        Calculates the functional derivative of the excess free energy,
        shape (n_species, N).
        """

        if weighted is None:
            weighted = self.weighted_densities(density)

        partials = self._map(lambda c, n: c.partial_derivatives(n, temperature),
                             self.contributions, weighted)
        c = self.convolver.functional_derivative(partials)
        check_finite(c, 'excess chemical potential')
        return c

    def functional_derivative(self, density, temperature, external_field=None):

        """
        Calculates the functional derivative of the intrinsic free energy
        plus the external field,
            T ln rho_i + dF_ex/drho_i + V_i.
        Nodes at which the density is zero give -inf (or nan inside hard
        walls).
        """

        density = self._expected_shape('density', density)
        with np.errstate(divide='ignore', invalid='ignore'):
            out = temperature*np.log(density) + self.excess_chemical_potential(density, temperature)
            if external_field is not None:
                out += self._expected_shape('external_field', external_field)
        return out

    def residual(self, density, bulk_state, external_field, weighted=None):

        """
        Calculates the residual of the Euler-Lagrange equation,
            R_i(r) = mu_i - dF/drho_i(r)
                   = T ln(rho_b,i/rho_i) + mu_ex,i - c_i(r) - V_i(r),
        which is set to zero at excluded nodes.

        Args:
            Required:
                density(np.array(float)): Density profiles, shape (n_species, N)
                bulk_state(BulkState): Bulk state the system is in contact with
                external_field(np.array(float)): External potential, shape
                                                 (n_species, N)
            Optional:
                weighted(list): Precomputed weighted densities

        Returns:
            Residual, shape (n_species, N)
        """

        density = self._expected_shape('density', density)
        external_field = self._expected_shape('external_field', external_field)
        temperature = bulk_state.temperature

        c = self.excess_chemical_potential(density, temperature, weighted)
        excluded = excluded_nodes(bulk_state.density, external_field)
        free = ~excluded

        out = np.zeros_like(density)
        rho_b = np.broadcast_to(np.asarray(bulk_state.density)[:, None], density.shape)
        mu_ex = np.broadcast_to(np.asarray(bulk_state.excess_chemical_potential)[:, None], density.shape)
        with np.errstate(divide='ignore'):
            out[free] = temperature*np.log(rho_b[free]/density[free]) + mu_ex[free] \
                        - c[free] - external_field[free]

        check_finite(out, 'residual')
        return out

    def residual_norm(self, residual, density, norm='l2'):
        return residual_norm(residual, norm, density, self.grid.weights)

    def hessian_vector_product(self, density, vector, temperature):

        """
        Applies the second functional derivative of the intrinsic free
        energy to a vector,
            sum_j int d^2F/drho_i(r)drho_j(r') v_j(r') dr'.

        Args:
            Required:
                density(np.array(float)): Density profiles, shape (n_species, N)
                vector(np.array(float)): Perturbation, shape (n_species, N)
                temperature(float): Temperature

        Returns:
            Product, shape (n_species, N)
        """

        density = self._expected_shape('density', density)
        vector = self._expected_shape('vector', vector)

        weighted = self.convolver.weighted_densities(density)
        dn = self.convolver.weighted_densities(vector)

        def contract(contribution, n, v):
            return np.einsum('abn,bn->an', contribution.second_derivatives(n, temperature), v)

        partials = self._map(contract, self.contributions, weighted, dn)
        out = self.convolver.functional_derivative(partials)

        with np.errstate(divide='ignore', invalid='ignore'):
            ideal = np.where(density > 0.0, temperature*vector/density, 0.0)
        return out + ideal

    def free_energy(self, density, temperature, external_field=None):

        """
        Calculates the Helmholtz free energy (per unit area or length in
        planar and cylindrical geometries), including the external field
        if supplied.
        """

        density = self._expected_shape('density', density)
        field = np.sum(temperature*(xlogy(density, density) - density), axis=0)
        field += self.helmholtz_energy_density(density, temperature)
        if external_field is not None:
            external_field = self._expected_shape('external_field', external_field)
            field += np.sum(np.where(density > 0.0, density*external_field, 0.0), axis=0)
        return self.grid.integrate(field)

    def grand_potential_density(self, density, bulk_state, external_field):

        """
        Calculates the grand potential density,
            omega(r) = f_id(r) + phi(r) + sum_i rho_i(r)(V_i(r) - mu_i),
        shape (N,).
        """

        density = self._expected_shape('density', density)
        external_field = self._expected_shape('external_field', external_field)
        temperature = bulk_state.temperature

        field = np.sum(temperature*(xlogy(density, density) - density), axis=0)
        field += self.helmholtz_energy_density(density, temperature)

        mu = np.asarray(bulk_state.chemical_potential)
        occupied = density > 0.0
        with np.errstate(invalid='ignore'):
            coupling = np.where(occupied, density*(external_field - mu[:, None]), 0.0)
        field += np.sum(coupling, axis=0)

        check_finite(field, 'grand potential density')
        return field

    def temperature_derivative(self, density, temperature, external_field=None):

        """
        Calculates the derivative of the intrinsic free energy density with
        respect to temperature at fixed density profile, shape (N,). The
        external field is assumed independent of temperature.
        """

        density = self._expected_shape('density', density)
        weighted = self.weighted_densities(density)

        fields = self._map(lambda c, n: c.temperature_derivative(n, temperature),
                           self.contributions, weighted)
        out = np.sum(xlogy(density, density) - density, axis=0)
        for field in fields:
            out += field
        return out


def residual_norm(residual, norm='l2', density=None, weights=None):

    """
    Returns the norm of the residual.

    Args:
        Required:
            residual(np.array(float)): Residual, shape (n_species, N)
        Optional:
            norm(string): Norm to use
                          Options:
                            l2: root mean square, weighted by the density
                                and the grid weights if they are supplied
                            max: largest absolute value
                          Default is l2.
            density(np.array(float)): Density profiles
            weights(np.array(float)): Integration weights of the grid

    Returns:
        Norm of the residual
    """

    if residual.size == 0:
        return 0.0
    if norm == 'max':
        return float(np.max(np.abs(residual)))

    measure = np.ones_like(residual)
    if density is not None:
        measure = measure*density
    if weights is not None:
        measure = measure*weights
    total = np.sum(measure)
    if total <= 0.0:
        return 0.0
    return float(np.sqrt(np.sum(measure*residual*residual)/total))
