#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This module contains the weight functions, evaluated in Fourier space.

The Fourier transforms of the fundamental measure weight functions of a
sphere of radius R are [Roth 2010]:
    w3(k)  = 4 pi R^3 (j0(kR) + j2(kR))/3      (volume)
    w2(k)  = 4 pi R^2 j0(kR)                   (surface)
    w2v(k) = -ik w3(k)                         (vector)
All other weight functions used by the functionals are multiples of
these, the identity, or the Fourier transform of a pair potential.

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

from enum import Enum

import numpy as np
from scipy.special import spherical_jn
from scipy.integrate import trapezoid

#Constants
pi = np.pi
pi4 = np.pi*4.0

class WeightFunctionType(Enum):
    THETA = 'theta'
    DELTA = 'delta'
    DELTA_VEC = 'delta_vec'
    IDENTITY = 'identity'
    KERNEL = 'kernel'

def theta(k, R):
    """Fourier transform of the step function of radius R."""
    kR = np.asarray(k)*R
    return (pi4/3.0)*R**3*(spherical_jn(0, kR) + spherical_jn(2, kR))

def delta(k, R):
    """Fourier transform of the shell of radius R."""
    return pi4*R*R*spherical_jn(0, np.asarray(k)*R)

def fmt_weight_functions(diameter, k):

    """
    Returns the fundamental measure weight functions of a sphere.

    Args:
        Required:
            diameter(float): Hard-core diameter
            k(np.array(float)): Wavevector magnitudes

    Returns:
        Dictionary with the scalar (volume), surface and vector weight
        functions. The vector weight function is imaginary, -ik w3(k).
    """

    R = 0.5*diameter
    w3 = theta(k, R)
    return {'scalar': w3, 'surface': delta(k, R), 'vector': -1j*np.asarray(k)*w3}

class WeightFunction:

    """
    Weight function of a single species, described by its type, radius and
    prefactor. Instances are not modified after construction and are
    shared between threads.

    For vector weight functions (DELTA_VEC) the Fourier transform returned
    is that of the scalar weight function whose negative gradient gives the
    vector weight function, i.e. prefactor*w3(k).
    """

    def __init__(self, wf_type, radius=0.0, prefactor=1.0, transform=None):

        """
        Args:
            Required:
                wf_type(WeightFunctionType): Type of weight function
            Optional:
                radius(float): Radius of the weight function. Default is 0.0.
                prefactor(float): Multiplicative constant. Default is 1.0.
                transform(callable): Fourier transform of a KERNEL weight
                                     function as a function of k
        """

        if wf_type == WeightFunctionType.KERNEL and transform is None:
            raise ValueError('KERNEL weight functions require a transform.')

        self.wf_type = wf_type
        self.radius = float(radius)
        self.prefactor = float(prefactor)
        self.transform = transform

    @property
    def is_vector(self):
        return self.wf_type == WeightFunctionType.DELTA_VEC

    def fourier(self, k):

        """
        Evaluates the weight function in Fourier space.

        Args:
            k(np.array(float)): Wavevector magnitudes

        Returns:
            Real array of the same shape as k
        """

        k = np.asarray(k, dtype=float)

        if self.wf_type in (WeightFunctionType.THETA, WeightFunctionType.DELTA,
                            WeightFunctionType.DELTA_VEC):
            weights = fmt_weight_functions(2.0*self.radius, k)
            w = weights['surface'] if self.wf_type == WeightFunctionType.DELTA else weights['scalar']
        elif self.wf_type == WeightFunctionType.IDENTITY:
            w = np.ones_like(k)
        else:
            w = np.asarray(self.transform(k), dtype=float)

        return self.prefactor*w

    def __repr__(self):
        return f'WeightFunction({self.wf_type.name}, radius={self.radius}, prefactor={self.prefactor})'

class WeightedDensity:

    """
    Declaration of a weighted density required by a functional contribution:
        n(r) = sum_i (w_i * rho_i)(r)
    where the sum is over species and w_i is None for species which do not
    contribute.
    """

    def __init__(self, name, weights):

        self.name = name
        self.weights = tuple(weights)

        kinds = {w.is_vector for w in self.weights if w is not None}
        if len(kinds) > 1:
            raise ValueError(f'Weighted density {name} mixes scalar and vector weight functions.')
        self.is_vector = kinds == {True}

    def kernel(self, k):
        """Returns the Fourier transformed weight functions, shape (n_species, n_k)."""

        out = np.zeros((len(self.weights), np.size(k)))
        for i, w in enumerate(self.weights):
            if w is not None:
                out[i] = w.fourier(k)
        return out

    def __repr__(self):
        return f'WeightedDensity({self.name!r}, vector={self.is_vector})'

def radial_fourier_transform(r, potential, k):

    """
    Calculates the three dimensional Fourier transform of a radially
    symmetric function by quadrature,
        f(k) = 4 pi int r^2 f(r) j0(kr) dr.

    Args:
        Required:
            r(np.array(float)): Radial points, finely spaced
            potential(np.array(float)): Function at the radial points
            k(np.array(float)): Wavevector magnitudes

    Returns:
        Fourier transform at k
    """

    k = np.atleast_1d(np.asarray(k, dtype=float))
    out = np.empty(k.shape)

    # Evaluate in blocks to limit memory use on large grids
    block = 512
    for start in range(0, k.shape[0], block):
        kr = np.outer(k[start:start+block], r)
        # j0(x) = sin(x)/x
        out[start:start+block] = pi4*trapezoid(r*r*potential*np.sinc(kr/pi), r, axis=-1)

    return out
