#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This program provides a quick tutorial on the basic functions of the
package. A good review of the method can be found in
Roth R. 2010. J. Phys.:Condens. Matter 22 063102.

The most common error is making the grid too small. The grid must be
large enough that the density has decayed to its bulk value well before
the end of the domain, and must contain at least 32 points.

The required python modules to run this package are numpy, scipy,
pyfftw, sympy and matplotlib.

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

import profileDFT.measures as measures
import profileDFT.output as output
from profileDFT import (BulkState, Grid, HelmholtzFunctional, Molecule, SolverConfig,
                        external_potential, post_process, solve)

# Progress of the minimisation is reported through logging
logging.basicConfig(level=logging.INFO, format='%(message)s')

# The fluid is described by its molecules. Here, a single species of hard
# spheres of diameter 1, treated with the White-Bear functional.
hard_spheres = HelmholtzFunctional.from_molecules([Molecule('HS', diameter=1.0)], functional='WB')

# The bulk state is set by the bulk density of each species and the
# temperature. Here, a packing fraction of 0.3.
rho_b = 0.3/Molecule('HS').packing_fraction(1.0)
bulk = BulkState(hard_spheres, rho_b, 1.0)
bulk.information()

# The grid is specified by its geometry, number of points and length. The
# number of points should be a power of 2 for speed.
grid = Grid('planar', 2**12, 20.0)

# External potentials are set up according to the geometry of the grid.
# For a planar hard wall, the position is the closest distance a particle
# centre can approach.
Vext = external_potential(grid, 'HW', 1.0)

# To minimise, send the grid, bulk state and external potential to solve.
# Settings of the minimisation are given by a SolverConfig.
config = SolverConfig(tolerance=1e-8, damping_factor=0.1)
planar = solve(grid, bulk, Vext, config)
planar.information()

# Interfacial measures are calculated from the converged profile.
observables = post_process(planar)
observables.information()

# The contact sum rule, p = kT rho(contact), checks the accuracy of the
# minimisation at a planar hard wall.
measures.contact_sum_rule(planar, pout=True)

# The adsorption sum rule requires two further minimisations at slightly
# different chemical potentials.
measures.adsorption_sum_rule(planar, dmu=1e-4, pout=True)

# The profile and measures can be written to file and plotted.
output.write_profile(planar, './HS_planar_example/profile.txt', observables)
output.plot_profile(planar, save=True, file_name='./HS_planar_example/profile.pdf')

# Attractive fluids add dispersion to the hard spheres. Here, a
# Lennard-Jones fluid next to a Lennard-Jones wall, minimised with Anderson
# mixing.
lj_fluid = HelmholtzFunctional.from_molecules([Molecule('LJ', epsilon=1.0)], cut_off=2.5)
lj_bulk = BulkState(lj_fluid, 0.6, 1.35)
Vext = external_potential(grid, 'LJ', 0.0, epsilon_wall=1.0, sigma_wall=1.0)
lj = solve(grid, lj_bulk, Vext, config.copy_parameters(mixing_scheme='anderson'))
print(f'Surface tension is {measures.interfacial_tension(lj):.6f}')
print(f'Interfacial entropy is {measures.interfacial_entropy(lj):.6f}')

# Curved geometries work in the same way. For a spherical solute, the
# position is its radius, which is also used as the reference surface of
# the measures.
sphere = Grid('spherical', 2**12, 20.0)
Vext = external_potential(sphere, 'HW', 2.0)
spherical = solve(sphere, bulk, Vext, config)
print(f'Solvation free energy is {measures.solvation_free_energy(spherical):.6f}')
print(f'Equimolar radius is {measures.equimolar_radius(spherical):.6f}')
post_process(spherical, reference=2.0).information()

# Mixtures are given as lists of molecules. Below, a binary mixture of
# hard spheres of different sizes in a slit pore.
mixture = HelmholtzFunctional.from_molecules([Molecule('big', 1.0), Molecule('small', 0.5)])
mixture_bulk = BulkState(mixture, [0.2, 0.6], 1.0)
Vext = external_potential(grid, 'HW', 1.0, n_species=2)
Vext[:, grid.r > grid.L - 1.0] = np.inf
slit = solve(grid, mixture_bulk, Vext, config)
print(f'Surface excesses are {measures.surface_excess(slit)}')
output.plot_profile(slit, save=True, file_name='./HS_planar_example/mixture.pdf')
