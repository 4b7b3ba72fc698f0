#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This module contains the description of the fluid: its molecules and the
bulk state an inhomogeneous system is in contact with.

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

import numpy as np
from scipy.optimize import bisect

import profileDFT.exceptions as exceptions

logger = logging.getLogger(__name__)

#Constants
pi6 = np.pi/6.0

class Molecule:

    """
    Coarse-grained molecule made of tangent spherical segments.

    Attributes:
        name(string): name of the molecule
        diameter(float): segment diameter
        segments(float): number of segments
        bonds(list(tuple(int, int))): bonds between segments. If None, the
                                      segments form a linear chain.
        epsilon(float): dispersion well depth of a segment
        charge(float): valence of the molecule
        kappa_ab(float): association volume
        epsilon_ab(float): association energy
        na(int): number of association sites of type A
        nb(int): number of association sites of type B
    """

    def __init__(self, name, diameter=1.0, segments=1, bonds=None, epsilon=0.0,
                 charge=0.0, kappa_ab=0.0, epsilon_ab=0.0, na=0, nb=0):

        if not diameter > 0.0:
            raise ValueError(f'Molecule {name}: diameter must be positive, {diameter} supplied.')
        if segments < 1:
            raise ValueError(f'Molecule {name}: at least one segment is required, {segments} supplied.')

        if bonds is not None:
            bonds = [tuple(b) for b in bonds]
            for a, b in bonds:
                if a == b or min(a, b) < 0 or max(a, b) >= segments:
                    raise ValueError(f'Molecule {name}: bond ({a}, {b}) does not join two segments.')

        self.name = name
        self.diameter = float(diameter)
        self.segments = segments
        self.bonds = bonds
        self.epsilon = float(epsilon)
        self.charge = float(charge)
        self.kappa_ab = float(kappa_ab)
        self.epsilon_ab = float(epsilon_ab)
        self.na = na
        self.nb = nb

    @property
    def bond_count(self):
        """Number of bonds in the molecule."""
        if self.bonds is not None:
            return len(self.bonds)
        return max(self.segments - 1, 0)

    @property
    def associates(self):
        return self.kappa_ab > 0.0 and self.na > 0 and self.nb > 0

    def packing_fraction(self, density):
        """Packing fraction of a bulk fluid of these molecules at the given density."""
        return pi6*self.segments*self.diameter**3*density

    def information(self):
        print(f'Molecule {self.name}: diameter = {self.diameter}, segments = {self.segments}, '\
              f'bonds = {self.bond_count}, epsilon = {self.epsilon}, charge = {self.charge}')
        if self.associates:
            print(f'    association: kappa = {self.kappa_ab}, epsilon = {self.epsilon_ab}, '\
                  f'sites A = {self.na}, sites B = {self.nb}')

    def __repr__(self):
        return f'Molecule({self.name!r}, diameter={self.diameter}, segments={self.segments})'


class BulkState:

    """
    Homogeneous state of the fluid which the inhomogeneous system is in
    equilibrium with. The chemical potentials and pressure are calculated
    from the bulk model on construction.

    Attributes:
        model: bulk free energy model (normally a HelmholtzFunctional)
        density(np.array(float)): bulk density of each species
        temperature(float): temperature
        chemical_potential(np.array(float)): chemical potential of each species
        excess_chemical_potential(np.array(float)): excess part of the above
        pressure(float): pressure
    """

    def __init__(self, model, density, temperature):

        if not temperature > 0.0:
            raise ValueError(f'Temperature must be positive, {temperature} supplied.')

        density = np.atleast_1d(np.array(density, dtype=float))
        if density.shape != (model.n_species,):
            raise exceptions.ShapeMismatchError('bulk density', (model.n_species,), density.shape)
        if np.any(density < 0.0):
            raise ValueError('Bulk densities must not be negative.')

        self.model = model
        self.density = density
        self.temperature = float(temperature)
        self.excess_chemical_potential = model.bulk_excess_chemical_potential(density, temperature)
        self.chemical_potential = model.bulk_chemical_potential(density, temperature)
        self.pressure = model.bulk_pressure(density, temperature)
        self.helmholtz_energy_density = model.bulk_helmholtz_energy_density(density, temperature)

        for array in (self.density, self.excess_chemical_potential, self.chemical_potential):
            array.flags.writeable = False

    @property
    def n_species(self):
        return self.density.shape[0]

    def update(self, density=None, temperature=None):
        """Returns the bulk state at a new density and/or temperature."""

        density = self.density if density is None else density
        temperature = self.temperature if temperature is None else temperature
        return BulkState(self.model, density, temperature)

    def information(self):
        print(f'Temperature: {self.temperature}')
        print(f'Bulk density: {self.density}')
        print(f'Chemical potential: {self.chemical_potential}')
        print(f'Pressure: {self.pressure}')

    def __repr__(self):
        return f'BulkState(density={self.density}, temperature={self.temperature})'


def bulk_density_from_chemical_potential(model, chemical_potential, temperature, guess,
                                         species=0, window=0.01, xtol=1e-15, maxiter=200):

    """
    Finds the bulk density of one species at which its chemical potential
    takes the target value, with the densities of the other species held
    fixed. This is required for derivatives at constant chemical potential.

    Args:
        Required:
            model: bulk free energy model
            chemical_potential(float): target chemical potential
            temperature(float): temperature
            guess(np.array(float)): bulk densities close to the solution
        Optional:
            species(int): species whose density is varied. Default is 0.
            window(float): fractional width of the initial bracket. The
                           bracket is widened until it contains the root.
                           Default is 0.01.
            xtol(float): absolute tolerance of the bisection
            maxiter(int): maximum number of bisection iterations

    Returns:
        Bulk densities of every species
    """

    guess = np.atleast_1d(np.asarray(guess, dtype=float)).copy()

    def difference(rho):
        trial = guess.copy()
        trial[species] = rho
        return model.bulk_chemical_potential(trial, temperature)[species] - chemical_potential

    low = (1.0 - window)*guess[species]
    high = (1.0 + window)*guess[species]

    # The chemical potential increases with density in a stable bulk phase
    for _ in range(60):
        if difference(low) < 0.0:
            break
        low *= 0.5
    for _ in range(60):
        if difference(high) > 0.0:
            break
        high = high + 0.5*(high - low)

    rho = bisect(difference, low, high, xtol=xtol, maxiter=maxiter)
    logger.debug(f'Bulk density {rho} found for chemical potential {chemical_potential}')

    guess[species] = rho
    return guess
