#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This module contains the grid object.

Grid points are placed at the centres of N cells of width dr which span
[0, L]. The first grid point therefore never sits at the origin, which
removes the 1/r singularity of the curved geometries, and the grid is
compatible with the half-sample symmetric extensions used by the
transforms (see transforms.py).

The integration weights are the exact cell measures:
    planar:      dr                      (per unit area)
    cylindrical: 2 pi r dr               (per unit length)
    spherical:   4 pi (r^2 + dr^2/12) dr
so that they sum to the volume of the domain.

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
from scipy.fft import next_fast_len

import profileDFT.exceptions as exceptions

#Constants
pi = np.pi
pi2 = np.pi*2.0
pi4 = np.pi*4.0

GEOMETRIES = ('planar', 'cylindrical', 'spherical')

def valid_grid_size(n_points):

    """
    Checks if the number of grid points is compatible with the fast
    transforms.

    Args:
        n_points(int): Number of grid points

    Returns:
        True if the number of grid points has no prime factors other
        than 2, 3 and 5.
    """

    if n_points < 2:
        return False
    return next_fast_len(n_points, real=True) == n_points

class Grid:

    """
    Discretisation of the one-dimensional coordinate of the system, i.e.
    the distance from a planar wall, or the radial distance from the axis
    of a cylinder or the centre of a sphere.
    """

    def __init__(self, geometry, n_points, length):

        """
        Sets up grid points and integration weights.

        Args:
            Required:
                geometry(string): Geometry of the system
                                  Options:
                                    planar
                                    cylindrical
                                    spherical
                n_points(int): Number of grid points. Must only have prime
                               factors 2, 3 and 5.
                length(float): Length of the domain in units of the
                               fluid particle diameter

        Returns:
            None
        """

        if geometry not in GEOMETRIES:
            raise exceptions.UnsupportedGeometryError(geometry)

        n_points = int(n_points)
        if not valid_grid_size(n_points):
            suggestion = next_fast_len(max(n_points, 2), real=True)
            raise exceptions.GridSizeError(n_points, suggestion)

        if not length > 0.0:
            raise ValueError(f'Grid length must be positive, {length} supplied.')

        self.geometry = geometry
        self.N = n_points
        self.L = float(length)
        self.dr = self.L/self.N

        self.r = (np.arange(self.N) + 0.5)*self.dr

        if geometry == 'planar':
            self.weights = np.full(self.N, self.dr)
        elif geometry == 'cylindrical':
            self.weights = pi2*self.r*self.dr
        else:
            self.weights = pi4*(self.r*self.r + self.dr*self.dr/12.0)*self.dr

        # The grid is shared between objects and threads
        self.r.flags.writeable = False
        self.weights.flags.writeable = False

    @property
    def shape(self):
        return (self.N,)

    @property
    def volume(self):
        """Volume of the domain (per unit area or length where appropriate)."""
        return self.cumulative_volume(self.L)

    def integrate(self, field):

        """
        Integrates a field over the domain using the grid weights. If the
        field has more than one dimension, the integral is taken over the
        last axis.

        Args:
            field(np.array(float)): Values at the grid points

        Returns:
            Integral over the domain
        """

        return np.sum(np.asarray(field)*self.weights, axis=-1)

    def cumulative_volume(self, r):

        """
        Returns the volume enclosed between the origin and distance r.
        """

        if self.geometry == 'planar':
            return r
        elif self.geometry == 'cylindrical':
            return pi*r*r
        return (pi4/3.0)*r**3

    def area(self, r):

        """
        Returns the area of a surface of constant coordinate r, i.e. 1 for
        a plane, 2 pi r per unit length for a cylinder and 4 pi r^2 for a
        sphere.
        """

        if self.geometry == 'planar':
            return 1.0
        elif self.geometry == 'cylindrical':
            return pi2*r
        return pi4*r*r

    def index(self, r):
        """Returns the index of the first grid point at or beyond r."""
        return int(np.searchsorted(self.r, r))

    def information(self,):
        """
        Prints information about the grid to screen.

        Args:
            None
        Returns:
            None
        """

        print(f'Geometry: {self.geometry}')
        print(f'Number of grid points: {self.N}')
        print(f'Length of grid: {self.L} * diameter of a fluid particle')
        print(f'Distance between grid points: {self.dr} * '\
              f'diameter of a fluid particle')

    def __repr__(self):
        return f'Grid(geometry={self.geometry!r}, n_points={self.N}, length={self.L})'
