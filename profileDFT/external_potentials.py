#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This module contains the external potentials exerted by walls and solutes.
All potentials are returned as arrays of shape (n_species, N). Nodes which
no fluid particle can reach hold an infinite potential. The potentials are
in units of epsilon, with the wall well depth epsilon_wall and diameter
sigma_wall given for each species.

Supported external potentials for planar geometry are:
    Hard Wall (HW)
    Lennard-Jones (LJ)
    Shifted Lennard-Jones (SLJ)
    WCA Lennard-Jones (WCALJ)

Supported external potentials for spherical and cylindrical geometry are:
    Hard Wall (HW)
    Lennard-Jones (LJ)
    Shifted Lennard-Jones (SLJ)

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

PLANAR_WALLS = ('HW', 'LJ', 'SLJ', 'WCALJ')
CURVED_WALLS = ('HW', 'LJ', 'SLJ')

def _per_species(value, n_species):
    return np.broadcast_to(np.asarray(value, dtype=float), (n_species,))

def _apply_cap(Vext, cap):
    # Potentials above the cap are treated as hard
    Vext[Vext > cap] = np.inf
    return Vext

def no_potential(grid, n_species=1):
    """Returns a zero external potential."""
    return np.zeros((n_species, grid.N))

############################## COMMON ####################################
def hard_wall(grid, position, n_species=1, right=False):

    """
    Sets up a hard wall. Grid points closer to the wall than position
    (i.e. r < position, or r > L - position for a right hand wall) cannot
    be reached by the centre of a fluid particle.

    Args:
        Required:
            grid(Grid): Grid of the system
            position(float): Distance of closest approach of a particle centre
        Optional:
            n_species(int): Number of species. Default is 1.
            right(bool): Place the wall at the outer end of a planar grid
                         (slit pores). Default is False.

    Returns:
        External potential, shape (n_species, N)
    """

    Vext = np.zeros((n_species, grid.N))
    if right:
        Vext[:, grid.r > grid.L - position] = np.inf
    else:
        Vext[:, grid.r < position] = np.inf
    return Vext

############################# PLANAR #####################################
def lj_93(z, epsilon_wall, sigma_wall):

    """
    Potential between a particle and a uniform Lennard-Jones half space at
    distance z, obtained by integrating the Lennard-Jones potential over the
    wall.
    """

    sz3 = (sigma_wall/z)**3
    return epsilon_wall*((2.0/15.0)*sz3**3 - sz3)

def planar_lj(z, epsilon_wall, sigma_wall, cap=500.0):
    """Lennard-Jones wall at z = 0, capped at cap."""

    with np.errstate(divide='ignore', invalid='ignore'):
        Vext = np.where(z > 0.0, lj_93(z, epsilon_wall, sigma_wall), np.inf)
    return _apply_cap(Vext, cap)

def planar_slj(z, epsilon_wall, sigma_wall):

    """
    Lennard-Jones wall shifted so that its minimum, at 0.4^(1/6) sigma_wall,
    falls at the surface of the wall. Capping is then not required close to
    the wall.
    """

    shifted_z = z + np.power(0.4, 1./6.)*sigma_wall
    Vext = lj_93(shifted_z, epsilon_wall, sigma_wall)
    return np.where(z >= 0.0, Vext, np.inf)

def planar_wcalj(z, epsilon_wall, sigma_wall):

    """
    Lennard-Jones wall using the WCA splitting. Inside the minimum the
    potential is that of a uniform half space of particles interacting
    through the WCA attractive potential.
    """

    rminw = np.power(2., 1./6.)*sigma_wall
    Vext = np.zeros(np.shape(z))

    zmask = z > rminw
    izmask = (z >= 0.0) & np.invert(zmask)
    zi = z[izmask]

    Vext[zmask] = (2./15.)*np.power(sigma_wall, 9.0)*np.power(z[zmask], -9.) \
                    - np.power(sigma_wall, 3.)*np.power(z[zmask], -3.)

    Vext[izmask] = (4./3.)*(np.power(sigma_wall/rminw, 9.))
    Vext[izmask] -= (6./5.)*np.power(sigma_wall, 9.)*zi/np.power(rminw, 10.)
    Vext[izmask] += 3.*np.power(sigma_wall, 3.)*zi/np.power(rminw, 4.)
    Vext[izmask] -= 4.*np.power(sigma_wall/rminw, 3.)
    Vext[izmask] += (3./2.)*rminw*rminw*zi/np.power(sigma_wall, 3.)
    Vext[izmask] -= np.power(rminw/sigma_wall, 3.)
    Vext[izmask] -= (1./2.)*np.power(zi/sigma_wall, 3.)

    Vext = epsilon_wall*Vext
    Vext[z < 0.0] = np.inf
    return Vext

def planar_wall(grid, wall_type, position=0.0, n_species=1, epsilon_wall=1.0,
                sigma_wall=1.0, cap=500.0, right=False):

    """
    Sets up the potential of a planar wall whose surface is at position.
    For soft walls the potential is a function of the distance from the
    surface; nodes behind the surface are inaccessible.

    Args:
        Required:
            grid(Grid): Planar grid
            wall_type(string): Type of wall
                               Options:
                                 HW (hard wall)
                                 LJ (Lennard-Jones)
                                 SLJ (shifted Lennard-Jones)
                                 WCALJ (WCA Lennard-Jones)
        Optional:
            position(float): Position of the surface of the wall.
                             Default is 0.0.
            n_species(int): Number of species. Default is 1.
            epsilon_wall(float or list): Well depth of the wall-fluid
                                         interaction of each species
            sigma_wall(float or list): Diameter of the wall-fluid interaction
                                       of each species
            cap(float): Potentials above this value are treated as hard.
                        Default is 500.
            right(bool): Place the wall at the outer end of the grid.

    Returns:
        External potential, shape (n_species, N)
    """

    if wall_type not in PLANAR_WALLS:
        raise exceptions.UnsupportedWallTypeError(wall_type, 'planar')

    if wall_type == 'HW':
        return hard_wall(grid, position, n_species, right)

    z = (grid.L - grid.r) - position if right else grid.r - position
    epsilon_wall = _per_species(epsilon_wall, n_species)
    sigma_wall = _per_species(sigma_wall, n_species)

    Vext = np.zeros((n_species, grid.N))
    for i in range(n_species):
        if wall_type == 'LJ':
            Vext[i] = planar_lj(z, epsilon_wall[i], sigma_wall[i], cap)
        elif wall_type == 'SLJ':
            Vext[i] = planar_slj(z, epsilon_wall[i], sigma_wall[i])
        else:
            Vext[i] = planar_wcalj(z, epsilon_wall[i], sigma_wall[i])

    return Vext

def slit(grid, left_wall_type, right_wall_type, position=0.0, n_species=1,
         epsilon_wall=1.0, sigma_wall=1.0, right_epsilon_wall=None,
         right_sigma_wall=None, cap=500.0):

    """
    Sets up the potential of a slit pore, with walls at both ends of a
    planar grid. The right hand wall is the mirror image of a left hand
    wall at the same distance from the end of the grid.

    Returns:
        External potential, shape (n_species, N)
    """

    if right_epsilon_wall is None:
        right_epsilon_wall = epsilon_wall
    if right_sigma_wall is None:
        right_sigma_wall = sigma_wall

    left = planar_wall(grid, left_wall_type, position, n_species, epsilon_wall, sigma_wall, cap)
    right = planar_wall(grid, right_wall_type, position, n_species, right_epsilon_wall,
                        right_sigma_wall, cap, right=True)
    return left + right

############################# SPHERICAL ##################################
def spherical_lj(r, Rs, epsilon_wall, sigma_wall):

    """
    Potential between a particle at distance r from the centre of a uniform
    Lennard-Jones sphere of radius Rs. For large Rs this reduces to the
    planar 9-3 potential at distance r - Rs.
    """

    rR_plus = 1.0/(r + Rs); rR_minus = 1.0/(r - Rs); inv_r = 1.0/r

    Vext = (2.0/15.0)*np.power(sigma_wall, 9.0)*(np.power(rR_minus, 9.0) - np.power(rR_plus, 9.0))
    Vext += (3.0/20.0)*np.power(sigma_wall, 9.0)*inv_r*(np.power(rR_plus, 8.0) - np.power(rR_minus, 8.0))
    Vext += np.power(sigma_wall, 3.0)*(np.power(rR_plus, 3.0) - np.power(rR_minus, 3.0))
    Vext += (3.0/2.0)*np.power(sigma_wall, 3.0)*inv_r*(np.power(rR_minus, 2.0) - np.power(rR_plus, 2.0))

    return epsilon_wall*Vext

def spherical_solute(grid, wall_type, Rs, n_species=1, epsilon_wall=1.0,
                     sigma_wall=1.0, cap=500.0):

    """
    Sets up the potential of a spherical solute of radius Rs at the origin.

    Args:
        Required:
            grid(Grid): Spherical grid
            wall_type(string): Type of solute
                               Options:
                                 HW (hard solute)
                                 LJ (Lennard-Jones)
                                 SLJ (Lennard-Jones with minimum shifted
                                      to the surface of the solute)
            Rs(float): Radius of the solute
        Optional:
            n_species(int): Number of species. Default is 1.
            epsilon_wall(float or list): Well depth of each species
            sigma_wall(float or list): Diameter of the solute-fluid
                                       interaction of each species
            cap(float): Potentials above this value are treated as hard.
                        Default is 500.

    Returns:
        External potential, shape (n_species, N)
    """

    if wall_type not in CURVED_WALLS:
        raise exceptions.UnsupportedWallTypeError(wall_type, grid.geometry)

    Vext = hard_wall(grid, Rs, n_species)
    if wall_type == 'HW':
        return Vext

    epsilon_wall = _per_species(epsilon_wall, n_species)
    sigma_wall = _per_species(sigma_wall, n_species)
    outside = grid.r > Rs
    r = grid.r[outside]

    for i in range(n_species):
        if wall_type == 'LJ':
            Vext[i, outside] = spherical_lj(r, Rs, epsilon_wall[i], sigma_wall[i])
        else:
            shift = np.power(0.4, 1./6.)*sigma_wall[i]
            Vext[i, outside] = spherical_lj(r + shift, Rs, epsilon_wall[i], sigma_wall[i])

    return _apply_cap(Vext, cap)

############################# CYLINDRICAL ################################
def cylindrical_solute(grid, wall_type, Rs, n_species=1, epsilon_wall=1.0,
                       sigma_wall=1.0, cap=500.0):

    """
    Sets up the potential of a cylindrical solute of radius Rs on the axis.
    Soft solutes use the planar 9-3 potential at the distance r - Rs from
    the surface.

    Returns:
        External potential, shape (n_species, N)
    """

    if wall_type not in CURVED_WALLS:
        raise exceptions.UnsupportedWallTypeError(wall_type, grid.geometry)

    Vext = hard_wall(grid, Rs, n_species)
    if wall_type == 'HW':
        return Vext

    epsilon_wall = _per_species(epsilon_wall, n_species)
    sigma_wall = _per_species(sigma_wall, n_species)
    outside = grid.r > Rs
    z = grid.r[outside] - Rs

    for i in range(n_species):
        if wall_type == 'LJ':
            Vext[i, outside] = lj_93(z, epsilon_wall[i], sigma_wall[i])
        else:
            Vext[i, outside] = planar_slj(z, epsilon_wall[i], sigma_wall[i])

    return _apply_cap(Vext, cap)

def external_potential(grid, wall_type, position=0.0, **kwargs):

    """
    Sets up the external potential appropriate to the geometry of the grid:
    a planar wall, or a spherical or cylindrical solute of radius position.
    Keyword arguments are passed on to planar_wall, spherical_solute or
    cylindrical_solute.
    """

    if grid.geometry == 'planar':
        return planar_wall(grid, wall_type, position, **kwargs)
    elif grid.geometry == 'spherical':
        return spherical_solute(grid, wall_type, position, **kwargs)
    elif grid.geometry == 'cylindrical':
        return cylindrical_solute(grid, wall_type, position, **kwargs)
    raise exceptions.UnsupportedGeometryError(grid.geometry)
