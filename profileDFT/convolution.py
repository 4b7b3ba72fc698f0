#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This module contains the weighted density convolver.

The weight functions of every functional contribution are tabulated once
on the wavevectors of the transform engine. The density profile of each
species is then transformed once per evaluation and all weighted
densities are obtained from a single batch of inverse transforms.

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

import numpy as np

import profileDFT.exceptions as exceptions
from profileDFT.transforms import transform_engine

def tabulate(weighted_densities, k, n_species):

    """
    Tabulates the Fourier transformed weight functions of a list of
    weighted densities.

    Args:
        Required:
            weighted_densities(list(WeightedDensity)): Weighted densities
            k(np.array(float)): Wavevectors of the transform engine
            n_species(int): Number of species

    Returns:
        kernels(np.array(float)): shape (n_weighted_densities, n_species, n_k)
        vector(np.array(bool)): vector flag of each weighted density
        kernels_zero(np.array(float)): kernels at k = 0, shape
                                       (n_weighted_densities, n_species)
    """

    for wd in weighted_densities:
        if len(wd.weights) != n_species:
            raise exceptions.ShapeMismatchError(f'weights of {wd.name}',
                                                (n_species,), (len(wd.weights),))

    n_k = np.size(k)
    kernels = np.zeros((len(weighted_densities), n_species, n_k))
    kernels_zero = np.zeros((len(weighted_densities), n_species))
    vector = np.zeros(len(weighted_densities), dtype=bool)

    for a, wd in enumerate(weighted_densities):
        kernels[a] = wd.kernel(k)
        kernels_zero[a] = wd.kernel(np.zeros(1))[:, 0]
        vector[a] = wd.is_vector

    # Vector weight functions have no k = 0 component
    kernels_zero[vector] = 0.0

    return kernels, vector, kernels_zero

class WeightedDensityConvolver:

    """
    Computes the weighted densities of a set of functional contributions and
    the transpose operation needed for the functional derivative.
    """

    def __init__(self, grid, contributions, n_species, threads=1, engine=None):

        """
        Args:
            Required:
                grid(Grid): Grid of the system
                contributions(list(FunctionalContribution)): Contributions to
                        the excess free energy
                n_species(int): Number of species
            Optional:
                threads(int): Number of threads used by FFTW. Default is 1.
                engine(TransformEngine): Transform engine to use. Default is
                        the engine appropriate to the grid geometry.
        """

        self.grid = grid
        self.n_species = n_species
        self.contributions = list(contributions)
        self.engine = engine if engine is not None else transform_engine(grid, threads)

        # Offsets of each contribution's weighted densities within the
        # combined tables
        self.slices = []
        declared = []
        for contribution in self.contributions:
            wds = contribution.weighted_densities()
            self.slices.append(slice(len(declared), len(declared) + len(wds)))
            declared.extend(wds)

        self.declared = declared
        self.kernels, self.vector, self.kernels_zero = tabulate(declared, self.engine.k, n_species)
        for table in (self.kernels, self.vector, self.kernels_zero):
            table.flags.writeable = False

    def _check_density(self, density):

        density = np.asarray(density, dtype=float)
        expected = (self.n_species, self.grid.N)
        if density.shape != expected:
            raise exceptions.ShapeMismatchError('density', expected, density.shape)
        return density

    def convolve(self, density, weighted_densities):

        """
        Calculates an arbitrary list of weighted densities.

        Args:
            Required:
                density(np.array(float)): Density profiles, shape (n_species, N)
                weighted_densities(list(WeightedDensity)): Weighted densities

        Returns:
            Weighted densities, shape (len(weighted_densities), N)
        """

        density = self._check_density(density)
        kernels, vector, kernels_zero = tabulate(weighted_densities, self.engine.k, self.n_species)
        return self.engine.convolve(density, kernels, vector, kernels_zero)

    def weighted_densities(self, density):

        """
        Calculates the weighted densities of every contribution.

        Args:
            density(np.array(float)): Density profiles, shape (n_species, N)

        Returns:
            List with one array of shape (n_weighted_densities, N) for each
            contribution, in the order the contributions were supplied.
        """

        density = self._check_density(density)
        if not self.declared:
            return [np.zeros((0, self.grid.N)) for _ in self.contributions]

        n = self.engine.convolve(density, self.kernels, self.vector, self.kernels_zero)
        return [n[s] for s in self.slices]

    def functional_derivative(self, partials):

        """
        Calculates the functional derivative from the derivatives of the
        free energy densities with respect to the weighted densities,
            c_i(r) = sum_a (w_ai^T * dphi/dn_a)(r).

        Args:
            partials(list(np.array(float))): One array per contribution, of
                the same shape as the weighted densities of that contribution

        Returns:
            Functional derivative, shape (n_species, N)
        """

        if len(partials) != len(self.contributions):
            raise exceptions.ShapeMismatchError('partials', (len(self.contributions),), (len(partials),))

        if not self.declared:
            return np.zeros((self.n_species, self.grid.N))

        stacked = np.zeros((len(self.declared), self.grid.N))
        for s, partial in zip(self.slices, partials):
            partial = np.asarray(partial, dtype=float)
            expected = (s.stop - s.start, self.grid.N)
            if partial.shape != expected:
                raise exceptions.ShapeMismatchError('partials', expected, partial.shape)
            stacked[s] = partial

        return self.engine.convolve_adjoint(stacked, self.kernels, self.vector, self.kernels_zero)
