#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

The free energy functional of the fluid is built from contributions (hard
spheres through Fundamental Measure Theory, hard chains, mean-field
dispersion, association and electrostatics), each of which declares the
weighted densities it needs and its free energy density. The equilibrium
profile in an external potential is found by Picard, Anderson or Newton
iterations, after which interfacial measures and sum rules can be
calculated. The program is largely based off the following papers:

    Roth R. 2010. J. Phys.:Condens. Matter 22 063102.
    Rosenfeld Y. 1989. Phys. Rev. Lett. 63 980.
    Hansen-Goos H. and Roth R. 2006. J. Phys.:Condens. Matter 18 8413.
    Tripathi S. and Chapman W.G. 2005. J. Chem. Phys. 122 094506.
    Yu Y.X. and Wu J. 2002. J. Chem. Phys. 116 7094.

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

from profileDFT.grid import Grid
from profileDFT.fluid import Molecule, BulkState
from profileDFT.functionals import HelmholtzFunctional
from profileDFT.external_potentials import external_potential
from profileDFT.minimisation import SolverConfig, solve
from profileDFT.measures import post_process
