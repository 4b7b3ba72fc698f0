#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This module contains the transform engines used to perform convolutions
as products in Fourier space.

Planar geometry:
    The profile is extended to [-L, L] by reflection about both ends of
    the grid and Fourier transformed (a cosine transform). The reflection
    acts as a mirror at the end of the grid, so the bulk fluid continues
    smoothly beyond it.

Spherical geometry:
    The three dimensional Fourier transform of a radially symmetric
    function f(r) is related to the one dimensional transform of r*f(r)
    extended as an odd function (a sine transform) [Roth 2010].

Cylindrical geometry:
    Discrete Fourier-Bessel (zeroth order Hankel) transform, with the
    wavevectors chosen at the zeros of J0 so that the transform of a
    profile which has decayed to its boundary value is well represented.

In every geometry the convolution is performed on the deviation of the
profile from its value at the outer boundary, and the convolution of the
constant remainder is added back exactly using the value of the weight
function at k = 0.

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

import threading

import numpy as np
import pyfftw as fft
from scipy.special import j0, j1, jn_zeros

import profileDFT.exceptions as exceptions

#Constants
pi = np.pi
pi2 = np.pi*2.0

class FourierPlans:

    """
    FFTW objects which perform real Fourier transforms of a batch of
    arrays along their last axis. One pair of plans is created (and kept)
    for each batch size requested.
    """

    def __init__(self, n, threads=1):

        self.n = n
        self.nk = n//2 + 1
        self.threads = threads
        self._plans = {}
        self._lock = threading.Lock()

    def _get_plans(self, batch):

        if batch not in self._plans:
            real = fft.empty_aligned((batch, self.n), dtype='float64')
            fourier = fft.empty_aligned((batch, self.nk), dtype='complex128')
            real[:] = 0.0; fourier[:] = 0.0

            forward = fft.FFTW(real, fourier, axes=(-1,), direction='FFTW_FORWARD',
                               flags=('FFTW_ESTIMATE',), threads=self.threads)
            backward = fft.FFTW(fourier, real, axes=(-1,), direction='FFTW_BACKWARD',
                                flags=('FFTW_ESTIMATE',), threads=self.threads)

            self._plans[batch] = (real, fourier, forward, backward)

        return self._plans[batch]

    def rfft(self, x):
        """Forward real transform along the last axis."""

        x2 = np.reshape(x, (-1, self.n))
        with self._lock:
            real, fourier, forward, _ = self._get_plans(x2.shape[0])
            real[:] = x2
            forward()
            out = fourier.copy()
        return out.reshape(np.shape(x)[:-1] + (self.nk,))

    def irfft(self, x):
        """Normalised inverse real transform along the last axis."""

        x2 = np.reshape(x, (-1, self.nk))
        with self._lock:
            real, fourier, _, backward = self._get_plans(x2.shape[0])
            fourier[:] = x2
            backward()
            out = real.copy()
        return out.reshape(np.shape(x)[:-1] + (self.n,))


def extend(f, sign=1.0):

    """
    Extends arrays to twice their length about the end of the grid.
    sign = 1.0 gives the even (cosine) extension and sign = -1.0 the odd
    (sine) extension. As grid points sit at the centres of cells, the
    extended function is symmetric (antisymmetric) about both r = 0 and
    r = L.
    """

    return np.concatenate((f, sign*f[..., ::-1]), axis=-1)


class TransformEngine:

    """
    Base class for transform engines. Contains attributes and methods which
    are not geometry specific.

    Kernels passed to the convolution methods are the Fourier transforms of
    the scalar weight functions, with shape (n_outputs, n_species, n_k).
    For vector weighted densities the kernel is the scalar weight function
    whose negative gradient gives the vector weight, i.e.
        w_vec(r) = -grad w_scalar(r).
    Only the component along the grid coordinate is computed.
    """

    def __init__(self, grid, threads=1):

        self.grid = grid
        self.N = grid.N
        self.threads = threads

    @property
    def nk(self):
        return self.k.shape[0]

    def forward(self, f):
        raise NotImplementedError

    def inverse(self, F):
        raise NotImplementedError

    def _split(self, vector):
        vector = np.asarray(vector, dtype=bool)
        return vector, np.invert(vector)

    def convolve(self, profiles, kernels, vector, kernels_zero):

        """
        Calculates weighted densities.

        Args:
            Required:
                profiles(np.array(float)): Density profiles, shape (n_species, N)
                kernels(np.array(float)): Fourier transformed weight functions,
                                          shape (n_outputs, n_species, n_k)
                vector(np.array(bool)): Whether each output is a vector
                                        weighted density
                kernels_zero(np.array(float)): Weight functions at k = 0,
                                               shape (n_outputs, n_species)

        Returns:
            Weighted densities, shape (n_outputs, N)
        """

        vector, scalar = self._split(vector)
        reference = profiles[:, -1]

        spectrum = np.einsum('ask,sk->ak', kernels, self._forward_deviation(profiles, reference))

        out = np.zeros((kernels.shape[0], self.N))
        if np.any(scalar):
            out[scalar] = self._inverse_scalar(spectrum[scalar])
            out[scalar] += (kernels_zero[scalar] @ reference)[:, None]
        if np.any(vector):
            out[vector] = self._inverse_vector(spectrum[vector])

        return out

    def convolve_adjoint(self, partials, kernels, vector, kernels_zero):

        """
        Applies the transpose of the convolution performed by convolve to
        the derivatives of the free energy density with respect to the
        weighted densities, giving the contribution of each species to the
        functional derivative.

        Args:
            Required:
                partials(np.array(float)): Derivatives of the free energy
                                           density, shape (n_outputs, N)
                kernels(np.array(float)): As for convolve
                vector(np.array(bool)): As for convolve
                kernels_zero(np.array(float)): As for convolve

        Returns:
            Functional derivative, shape (n_species, N)
        """

        vector, scalar = self._split(vector)
        n_species = kernels.shape[1]
        spectrum = np.zeros((n_species, self.nk), dtype=self._spectral_dtype)
        constant = np.zeros(n_species)

        if np.any(scalar):
            reference = partials[scalar, -1]
            transformed = self._forward_deviation(partials[scalar], reference)
            spectrum += np.einsum('ask,ak->sk', kernels[scalar], transformed)
            constant += kernels_zero[scalar].T @ reference

        if np.any(vector):
            spectrum += self._adjoint_vector_spectrum(partials[vector], kernels[vector])

        return self._inverse_scalar(spectrum) + constant[:, None]

    def _forward_deviation(self, f, reference):
        return self.forward(f - reference[:, None])


class PlanarTransform(TransformEngine):

    """
    Cosine transform of profiles on a planar grid, implemented as the real
    Fourier transform of the even extension of the profile.
    """

    _spectral_dtype = 'complex128'

    def __init__(self, grid, threads=1):

        super().__init__(grid, threads)
        self.plans = FourierPlans(2*self.N, threads)
        self.k = pi*np.arange(self.N + 1)/grid.L
        self.k.flags.writeable = False

    def forward(self, f):
        return self.plans.rfft(extend(np.asarray(f, dtype=float), 1.0))

    def inverse(self, F):
        return self.plans.irfft(F)[..., :self.N]

    def _inverse_scalar(self, spectrum):
        return self.inverse(spectrum)

    def _inverse_vector(self, spectrum):
        return self.inverse(-1j*self.k*spectrum)

    def _adjoint_vector_spectrum(self, partials, kernels):

        # Vector weighted densities are odd about the ends of the grid.
        transformed = self.plans.rfft(extend(partials, -1.0))
        return np.einsum('ask,ak->sk', kernels, 1j*self.k*transformed)


class SphericalTransform(TransformEngine):

    """
    Radial transform of profiles on a spherical grid, implemented as the
    real Fourier transform of the odd extension of r*f(r).
    """

    _spectral_dtype = 'complex128'

    def __init__(self, grid, threads=1):

        super().__init__(grid, threads)
        self.plans = FourierPlans(2*self.N, threads)
        self.k = pi*np.arange(self.N + 1)/grid.L
        self.k.flags.writeable = False
        self.r = grid.r

    def forward(self, f):
        return self.plans.rfft(extend(np.asarray(f, dtype=float)*self.r, -1.0))

    def inverse(self, F):
        return self.plans.irfft(F)[..., :self.N]/self.r

    def _inverse_scalar(self, spectrum):
        return self.inverse(spectrum)

    def _inverse_vector(self, spectrum):

        # n_v = -d/dr (h/r) where h is the inverse transform of the spectrum
        h = self.plans.irfft(spectrum)[..., :self.N]
        dh = self.plans.irfft(-1j*self.k*spectrum)[..., :self.N]
        return dh/self.r + h/(self.r*self.r)

    def _adjoint_vector_spectrum(self, partials, kernels):

        # Transpose of the vector convolution
        # c(r) = [ (P * w) - (rP * w_vec) ] / r
        odd = self.plans.rfft(extend(partials, -1.0))
        even = self.plans.rfft(extend(partials*self.r, 1.0))
        return np.einsum('ask,ak->sk', kernels, odd + 1j*self.k*even)


class CylindricalTransform(TransformEngine):

    """
    Discrete Fourier-Bessel transform of profiles on a cylindrical grid.
    The forward transform is the quadrature of
        F(k) = 2 pi int r f(r) J0(kr) dr
    at k_m = j_{0,m}/L, and the inverse transform is the matrix inverse of
    the forward transform.
    """

    _spectral_dtype = 'float64'

    def __init__(self, grid, threads=1):

        super().__init__(grid, threads)
        zeros = jn_zeros(0, self.N)
        self.k = zeros/grid.L
        self.k.flags.writeable = False

        r = grid.r; dr = grid.dr; L = grid.L
        kr = np.outer(self.k, r)

        # Forward transforms of order 0 and 1, indexed [k, r]
        self.hankel0 = pi2*dr*r[None, :]*j0(kr)
        self.hankel1 = pi2*dr*r[None, :]*j1(kr)

        # Inverse of order 0, and radial derivative of the Fourier-Bessel
        # series, indexed [r, k]
        self.inverse0 = np.linalg.inv(self.hankel0)
        norm = pi*L*L*j1(zeros)**2
        self.inverse1 = self.k[None, :]*j1(kr.T)/norm[None, :]

        for matrix in (self.hankel0, self.hankel1, self.inverse0, self.inverse1):
            matrix.flags.writeable = False

    def forward(self, f):
        return np.asarray(f, dtype=float) @ self.hankel0.T

    def inverse(self, F):
        return np.asarray(F) @ self.inverse0.T

    def _inverse_scalar(self, spectrum):
        return self.inverse(spectrum)

    def _inverse_vector(self, spectrum):
        return spectrum @ self.inverse1.T

    def _adjoint_vector_spectrum(self, partials, kernels):

        # Divergence of the radial field P e_r in Fourier-Bessel space
        transformed = self.k*(partials @ self.hankel1.T)
        return np.einsum('ask,ak->sk', kernels, transformed)


def transform_engine(grid, threads=1):

    """
    Returns the transform engine appropriate to the geometry of the grid.

    Args:
        Required:
            grid(Grid): Grid of the system
        Optional:
            threads(int): Number of threads used by FFTW. Default is 1.

    Returns:
        TransformEngine
    """

    if grid.geometry == 'planar':
        return PlanarTransform(grid, threads)
    elif grid.geometry == 'spherical':
        return SphericalTransform(grid, threads)
    elif grid.geometry == 'cylindrical':
        return CylindricalTransform(grid, threads)
    raise exceptions.UnsupportedGeometryError(grid.geometry)
