#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This module contains the contributions to the excess Helmholtz free energy
functional and the functional itself.

Supported contributions are:
    Hard spheres, using fundamental measure theory (HardSphere)
        Rosenfeld (RF)
        White-Bear (WB)
        White-Bear Mark II (WBII)
    Hard chains of tangent spheres (HardChain)
    Mean-field dispersion using the WCA split truncated
        Lennard-Jones potential (MeanFieldDispersion)
    Association between sites of type A and B (Association)
    Mean-field electrostatics (Electrostatics)

Each contribution declares the weighted densities it requires and writes
its free energy density once, as a sympy expression. Free energies are
in units of the Lennard-Jones well depth epsilon, with k_B = 1, and lengths
in units of the fluid particle diameter.

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
import sympy as sp
from scipy.special import xlogy

import profileDFT.exceptions as exceptions
from profileDFT.derivatives import SymbolicDerivatives
from profileDFT.weights import (WeightFunction, WeightFunctionType, WeightedDensity,
                                radial_fourier_transform, theta)

logger = logging.getLogger(__name__)

#Constants
pi = np.pi
pi4 = np.pi*4.0

SUPPORTED_FMT = ('RF', 'WB', 'WBII')

class FunctionalContribution:

    """
    Base class for contributions to the excess free energy. Subclasses
    provide the weighted densities they require and their free energy
    density as a sympy expression.

    Attributes:
        name(string): name of the contribution
        n_species(int): number of species in the fluid
    """

    name = 'contribution'

    def __init__(self, n_species):
        self.n_species = n_species
        self._symbolic = None

    def weighted_densities(self):
        raise NotImplementedError

    def energy_density(self, n, T):

        """
        Returns the free energy density as a sympy expression.

        Args:
            n(list(sympy.Symbol)): weighted density symbols, in the order
                                   returned by weighted_densities
            T(sympy.Symbol): temperature symbol
        """

        raise NotImplementedError

    def active(self, n):
        """Mask of nodes at which the free energy density is non-zero. None means all nodes."""
        return None

    def check(self, n, density):
        """Checks the weighted densities are physical."""
        pass

    @property
    def symbolic(self):

        if self._symbolic is None:
            names = [wd.name for wd in self.weighted_densities()]
            symbols = [sp.Symbol(name, real=True) for name in names]
            T = sp.Symbol('T', positive=True)
            self._symbolic = SymbolicDerivatives(self.energy_density(symbols, T), symbols, T)
        return self._symbolic

    def _evaluate(self, func, n, temperature, leading=()):

        n = np.atleast_2d(np.asarray(n, dtype=float))
        mask = self.active(n)
        if mask is None:
            return func(n, temperature)

        out = np.zeros(leading + (n.shape[1],))
        if np.any(mask):
            out[..., mask] = func(n[:, mask], temperature)
        return out

    def helmholtz_energy_density(self, n, temperature):
        """Free energy density at each node, shape (N,)."""
        return self._evaluate(self.symbolic.energy, n, temperature)

    def partial_derivatives(self, n, temperature):
        """Derivatives of the free energy density with respect to the weighted densities, shape (A, N)."""
        return self._evaluate(self.symbolic.gradient, n, temperature, (len(n),))

    def second_derivatives(self, n, temperature):
        """Second derivatives of the free energy density, shape (A, A, N)."""
        return self._evaluate(self.symbolic.hessian, n, temperature, (len(n), len(n)))

    def temperature_derivative(self, n, temperature):
        """Temperature derivative of the free energy density at fixed weighted densities, shape (N,)."""
        return self._evaluate(self.symbolic.temperature_derivative, n, temperature)

    def _species_weights(self, make, species=None):
        # One weight function per species, None for species not included
        species = range(self.n_species) if species is None else species
        weights = [None]*self.n_species
        for i in species:
            weights[i] = make(i)
        return weights

    def _overflow(self, eta, density):

        """
        Raises PackingFractionOverflow if the packing fraction eta reaches 1
        at any node.
        """

        if np.any(eta >= 1.0):
            node = int(np.argmax(eta))
            species = int(np.argmax(density[:, node])) if density is not None else 0
            raise exceptions.PackingFractionOverflow(node, species, float(eta[node]), self.name)

    def information(self):
        print(f'{self.name}: {len(self.weighted_densities())} weighted densities')


def rosenfeld(n0, n1, n2, n3, n1v, n2v):

    """
    Rosenfeld functional [Rosenfeld 1989], whose bulk limit is the
    Percus-Yevick (compressibility) equation of state.
    """

    n3neg = 1 - n3
    return -n0*sp.log(n3neg) + (n1*n2 - n1v*n2v)/n3neg + \
           (n2**3 - 3*n2*n2v**2)/(24*sp.pi*n3neg**2)

def white_bear(n0, n1, n2, n3, n1v, n2v):

    """
    White-Bear functional [Roth 2002, Yu and Wu 2002], whose bulk limit is
    the Carnahan-Starling equation of state (Boublik-Mansoori-Carnahan-
    Starling-Leland for mixtures).
    """

    n3neg = 1 - n3
    return -n0*sp.log(n3neg) + (n1*n2 - n1v*n2v)/n3neg + \
           (n2**3 - 3*n2*n2v**2)*(n3 + n3neg**2*sp.log(n3neg))/(36*sp.pi*n3**2*n3neg**2)

def white_bear_mark_ii(n0, n1, n2, n3, n1v, n2v):

    """
    White-Bear Mark II functional [Hansen-Goos and Roth 2006].
    """

    n3neg = 1 - n3
    phi2 = (2*n3 - n3**2 + 2*n3neg*sp.log(n3neg))/n3
    phi3 = (2*n3 - 3*n3**2 + 2*n3**3 + 2*n3neg**2*sp.log(n3neg))/n3**2

    return -n0*sp.log(n3neg) + (n1*n2 - n1v*n2v)*(1 + phi2/3)/n3neg + \
           (n2**3 - 3*n2*n2v**2)*(1 - phi3/3)/(24*sp.pi*n3neg**2)

FMT_FUNCTIONALS = {'RF': rosenfeld, 'WB': white_bear, 'WBII': white_bear_mark_ii}


class HardSphere(FunctionalContribution):

    """
    Fundamental measure theory for a mixture of hard spheres. Each
    species may consist of m tangent segments of the same diameter, in
    which case the weight functions of the species are multiplied by m.
    """

    name = 'hard sphere'

    def __init__(self, diameters, segments=None, functional='RF', n3_cutoff=None):

        """
        Args:
            Required:
                diameters(list(float)): Hard-sphere diameter of each species
            Optional:
                segments(list(float)): Number of segments of each species.
                                       Default is 1.
                functional(string): FMT functional.
                                    Options:
                                        RF (Rosenfeld)
                                        WB (White-Bear)
                                        WBII (White-Bear Mark II)
                n3_cutoff(float): Nodes where n3 is at or below this value
                                  are excluded. Default is 0 for RF and 1e-6
                                  for WB and WBII, whose free energy
                                  densities lose precision as n3 -> 0.
        """

        if functional not in SUPPORTED_FMT:
            raise exceptions.UnsupportedFunctionalError(functional)

        self.diameters = np.asarray(diameters, dtype=float)
        super().__init__(len(self.diameters))
        self.segments = np.ones(self.n_species) if segments is None else np.asarray(segments, dtype=float)
        self.functional = functional

        if n3_cutoff is None:
            n3_cutoff = 0.0 if functional == 'RF' else 1e-6
        self.n3_cutoff = n3_cutoff

    def weighted_densities(self):

        R = 0.5*self.diameters; m = self.segments

        def weight(wf_type, prefactor):
            return lambda i: WeightFunction(wf_type, R[i], m[i]*prefactor(i))

        return [WeightedDensity('n0', self._species_weights(weight(WeightFunctionType.DELTA, lambda i: 1.0/(pi4*R[i]**2)))),
                WeightedDensity('n1', self._species_weights(weight(WeightFunctionType.DELTA, lambda i: 1.0/(pi4*R[i])))),
                WeightedDensity('n2', self._species_weights(weight(WeightFunctionType.DELTA, lambda i: 1.0))),
                WeightedDensity('n3', self._species_weights(weight(WeightFunctionType.THETA, lambda i: 1.0))),
                WeightedDensity('n1v', self._species_weights(weight(WeightFunctionType.DELTA_VEC, lambda i: 1.0/(pi4*R[i])))),
                WeightedDensity('n2v', self._species_weights(weight(WeightFunctionType.DELTA_VEC, lambda i: 1.0)))]

    def energy_density(self, n, T):
        return T*FMT_FUNCTIONALS[self.functional](*n)

    def active(self, n):
        return n[3] > self.n3_cutoff

    def check(self, n, density):
        self._overflow(n[3], density)

    def information(self):
        print(f'Hard sphere functional: {self.functional}')
        print(f'Diameters: {self.diameters}, segments: {self.segments}')


class HardChain(FunctionalContribution):

    """
    Chain contribution for molecules of tangent hard spheres following
    Tripathi and Chapman [Tripathi 2005],
        phi = - T sum_i b_i rho_bar_i ln y_ii(zeta2, zeta3),
    where b_i is the number of bonds of a molecule of species i, rho_bar_i
    is the density averaged over a shell of radius d_i, and y_ii is the
    contact value of the hard-sphere cavity correlation function.
    """

    name = 'hard chain'

    def __init__(self, diameters, segments, bonds):

        self.diameters = np.asarray(diameters, dtype=float)
        super().__init__(len(self.diameters))
        self.segments = np.asarray(segments, dtype=float)
        self.bonds = np.asarray(bonds, dtype=float)
        self.chains = [i for i in range(self.n_species) if self.bonds[i] > 0]

    def weighted_densities(self):

        d = self.diameters; m = self.segments
        out = []
        for i in self.chains:
            weights = [None]*self.n_species
            weights[i] = WeightFunction(WeightFunctionType.DELTA, d[i], 1.0/(pi4*d[i]**2))
            out.append(WeightedDensity(f'rho_bar_{i}', weights))

        out.append(WeightedDensity('zeta2', self._species_weights(
            lambda j: WeightFunction(WeightFunctionType.THETA, d[j], m[j]/(8.0*d[j])))))
        out.append(WeightedDensity('zeta3', self._species_weights(
            lambda j: WeightFunction(WeightFunctionType.THETA, d[j], m[j]/8.0))))
        return out

    def energy_density(self, n, T):

        zeta2 = n[-2]; zeta3 = n[-1]
        zeta3neg = 1 - zeta3
        phi = 0
        for rho_bar, i in zip(n[:-2], self.chains):
            r = float(self.diameters[i])/2
            y = 1/zeta3neg + r*3*zeta2/zeta3neg**2 + r**2*2*zeta2**2/zeta3neg**3
            phi += -float(self.bonds[i])*rho_bar*sp.log(y)
        return T*phi

    def check(self, n, density):
        self._overflow(n[-1], density)


class MeanFieldContribution(FunctionalContribution):

    """
    Mean-field contribution of a pair potential,
        phi = 1/2 sum_i rho_i(r) u_i(r),   u_i = sum_j (phi_ij * rho_j)(r).
    Subclasses provide the Fourier transform of each pair potential.
    """

    def pair_transform(self, i, j):
        raise NotImplementedError

    def weighted_densities(self):

        out = [WeightedDensity(f'rho_{i}', self._species_weights(
                    lambda j: WeightFunction(WeightFunctionType.IDENTITY), [i]))
               for i in range(self.n_species)]

        for i in range(self.n_species):
            weights = [None]*self.n_species
            for j in range(self.n_species):
                transform = self.pair_transform(i, j)
                if transform is not None:
                    weights[j] = WeightFunction(WeightFunctionType.KERNEL, transform=transform)
            out.append(WeightedDensity(f'u_{i}', weights))

        return out

    def energy_density(self, n, T):

        S = self.n_species
        return sum(n[i]*n[S + i] for i in range(S))/2


def lennard_jones_wca(r, sigma, epsilon, cut_off):

    """
    Attractive part of the truncated Lennard-Jones potential with WCA
    splitting. The potential is -epsilon inside the minimum, 2^(1/6) sigma,
    and is truncated (not shifted) at cut_off*sigma.
    """

    r = np.asarray(r, dtype=float)
    rmin = 2.0**(1.0/6.0)*sigma
    sr6 = (sigma/r)**6
    phi = 4.0*epsilon*(sr6*sr6 - sr6)
    phi = np.where(r < rmin, -epsilon, phi)
    return np.where(r > cut_off*sigma, 0.0, phi)

def lennard_jones_wca_transform(sigma, epsilon, cut_off, points=4000):

    """
    Returns a function giving the Fourier transform of the WCA split
    truncated Lennard-Jones potential. The constant core is transformed
    analytically and the tail between the minimum and the cut-off by
    quadrature.
    """

    rmin = 2.0**(1.0/6.0)*sigma
    rc = cut_off*sigma
    r = np.linspace(rmin, rc, points)
    sr6 = (sigma/r)**6
    tail = 4.0*epsilon*(sr6*sr6 - sr6)

    def transform(k):
        out = -epsilon*theta(k, rmin)
        if rc > rmin:
            out = out + radial_fourier_transform(r, tail, k)
        return out

    return transform


class MeanFieldDispersion(MeanFieldContribution):

    """
    Attractive interactions treated in mean field, using the WCA split
    truncated Lennard-Jones potential. Unlike parameters follow the
    Lorentz-Berthelot rules and interactions act between segments.
    """

    name = 'dispersion'

    def __init__(self, diameters, epsilons, segments=None, cut_off=2.5):

        """
        Args:
            Required:
                diameters(list(float)): Lennard-Jones diameter of each species
                epsilons(list(float)): Well depth of each species
            Optional:
                segments(list(float)): Number of segments of each species.
                                       Default is 1.
                cut_off(float): Truncation of the potential in units of
                                sigma. Default is 2.5.
        """

        self.diameters = np.asarray(diameters, dtype=float)
        super().__init__(len(self.diameters))
        self.epsilons = np.asarray(epsilons, dtype=float)
        self.segments = np.ones(self.n_species) if segments is None else np.asarray(segments, dtype=float)

        if cut_off <= 2.0**(1.0/6.0):
            logger.warning(f'Cut-off {cut_off} lies inside the minimum of the potential. Only the core is retained.')
        self.cut_off = cut_off

    def pair_parameters(self, i, j):
        """Returns sigma_ij and epsilon_ij from the Lorentz-Berthelot rules."""

        sigma = 0.5*(self.diameters[i] + self.diameters[j])
        epsilon = np.sqrt(self.epsilons[i]*self.epsilons[j])
        return sigma, epsilon

    def pair_transform(self, i, j):

        sigma, epsilon = self.pair_parameters(i, j)
        if epsilon == 0.0:
            return None
        return lennard_jones_wca_transform(sigma, epsilon*self.segments[i]*self.segments[j], self.cut_off)

    def information(self):
        print(f'Mean-field dispersion: epsilon = {self.epsilons}, cut-off = {self.cut_off} sigma')


class Electrostatics(MeanFieldContribution):

    """
    Coulomb interactions treated in mean field. The potential inside the
    contact distance is held at its contact value,
        phi_ij(r) = l q_i q_j / max(r, sigma_ij),
    and the k = 0 mode is removed, which corresponds to a neutralising
    background.
    """

    name = 'electrostatics'

    def __init__(self, charges, diameters, coupling=1.0):

        """
        Args:
            Required:
                charges(list(float)): Valence of each species
                diameters(list(float)): Diameter of each species
            Optional:
                coupling(float): e^2/(4 pi epsilon_0 epsilon_r) in units of
                                 epsilon*sigma. Default is 1.0.
        """

        self.charges = np.asarray(charges, dtype=float)
        super().__init__(len(self.charges))
        self.diameters = np.asarray(diameters, dtype=float)
        self.coupling = coupling

    def pair_transform(self, i, j):

        strength = self.coupling*self.charges[i]*self.charges[j]
        if strength == 0.0:
            return None
        sigma = 0.5*(self.diameters[i] + self.diameters[j])

        def transform(k):
            k = np.asarray(k, dtype=float)
            out = np.zeros(k.shape)
            nz = k > 0.0
            out[nz] = pi4*strength*np.sin(k[nz]*sigma)/(sigma*k[nz]**3)
            return out

        return transform


class Association(FunctionalContribution):

    """
    Association between sites of type A and B on the same species, using
    the weighted densities of Yu and Wu [Yu 2002] without the vector
    corrections. For na sites A and nb sites B per molecule
        phi = T sum_i n0_i [na(ln X_A - X_A/2 + 1/2) + nb(ln X_B - X_B/2 + 1/2)],
    where the fractions of non-bonded sites X_A and X_B are the closed form
    solutions of the mass action equations.
    """

    name = 'association'

    def __init__(self, diameters, segments, kappa, epsilon, na, nb):

        """
        Args:
            Required:
                diameters(list(float)): Segment diameter of each species
                segments(list(float)): Number of segments of each species
                kappa(list(float)): Association volume of each species
                epsilon(list(float)): Association energy of each species
                na(list(int)): Number of A sites on each species
                nb(list(int)): Number of B sites on each species
        """

        self.diameters = np.asarray(diameters, dtype=float)
        super().__init__(len(self.diameters))
        self.segments = np.asarray(segments, dtype=float)
        self.kappa = np.asarray(kappa, dtype=float)
        self.epsilon = np.asarray(epsilon, dtype=float)
        self.na = np.asarray(na, dtype=float)
        self.nb = np.asarray(nb, dtype=float)
        self.associating = [i for i in range(self.n_species)
                            if self.kappa[i] > 0.0 and self.na[i] > 0 and self.nb[i] > 0]

    def weighted_densities(self):

        R = 0.5*self.diameters; m = self.segments
        out = []
        for i in self.associating:
            weights = [None]*self.n_species
            weights[i] = WeightFunction(WeightFunctionType.DELTA, R[i], 1.0/(pi4*R[i]**2))
            out.append(WeightedDensity(f'n0_{i}', weights))

        out.append(WeightedDensity('n2', self._species_weights(
            lambda j: WeightFunction(WeightFunctionType.DELTA, R[j], m[j]))))
        out.append(WeightedDensity('n3', self._species_weights(
            lambda j: WeightFunction(WeightFunctionType.THETA, R[j], m[j]))))
        return out

    def association_strength(self, i, n2, n3, T):

        """
        Association strength of species i,
            Delta = kappa d^3 (exp(epsilon/T) - 1) g(d),
        with the contact value of the hard-sphere radial distribution
        function written in terms of the weighted densities.
        """

        d = float(self.diameters[i])
        n3neg = 1 - n3
        g = 1/n3neg + d*n2/(4*n3neg**2) + d**2*n2**2/(72*n3neg**3)
        return float(self.kappa[i])*d**3*(sp.exp(float(self.epsilon[i])/T) - 1)*g

    def energy_density(self, n, T):

        n2 = n[-2]; n3 = n[-1]
        phi = 0
        for n0, i in zip(n[:-2], self.associating):
            na = float(self.na[i]); nb = float(self.nb[i])
            a = n0*self.association_strength(i, n2, n3, T)
            bA = 1 + (nb - na)*a
            bB = 1 + (na - nb)*a
            XA = 2/(bA + sp.sqrt(bA**2 + 4*na*a))
            XB = 2/(bB + sp.sqrt(bB**2 + 4*nb*a))
            phi += n0*(na*(sp.log(XA) - XA/2 + sp.Rational(1, 2)) +
                       nb*(sp.log(XB) - XB/2 + sp.Rational(1, 2)))
        return T*phi

    def check(self, n, density):
        self._overflow(n[-1], density)

    def site_fractions(self, n, temperature):

        """
        Fractions of non-bonded A and B sites of each associating species,
        each of shape (n_associating, N).
        """

        n = np.atleast_2d(np.asarray(n, dtype=float))
        n2 = n[-2]; n3 = n[-1]
        XA = np.ones((len(self.associating), n.shape[1])); XB = np.ones_like(XA)

        for k, i in enumerate(self.associating):
            d = self.diameters[i]; na = self.na[i]; nb = self.nb[i]
            n3neg = 1.0 - n3
            g = 1.0/n3neg + d*n2/(4.0*n3neg**2) + d**2*n2**2/(72.0*n3neg**3)
            a = n[k]*self.kappa[i]*d**3*np.expm1(self.epsilon[i]/temperature)*g
            bA = 1.0 + (nb - na)*a; bB = 1.0 + (na - nb)*a
            XA[k] = 2.0/(bA + np.sqrt(bA*bA + 4.0*na*a))
            XB[k] = 2.0/(bB + np.sqrt(bB*bB + 4.0*nb*a))

        return XA, XB

    def information(self):
        print(f'Association: species {self.associating}, kappa = {self.kappa}, epsilon = {self.epsilon}')


class HelmholtzFunctional:

    """
    Helmholtz free energy functional of a fluid,
        F = F_id + sum_c F_c,
    where the sum runs over the contributions in the order they are given.

    The functional also acts as the bulk model of the fluid: in the
    homogeneous limit every weighted density is n_a = sum_i w_ai(0) rho_i,
    so the bulk free energy density, chemical potentials and pressure are
    consistent with the inhomogeneous calculation.
    """

    def __init__(self, contributions, n_species, names=None):

        self.contributions = list(contributions)
        self.n_species = n_species
        self.names = list(names) if names is not None else [f'species {i}' for i in range(n_species)]

        for contribution in self.contributions:
            if contribution.n_species != n_species:
                raise exceptions.ShapeMismatchError(f'species of {contribution.name}',
                                                    (n_species,), (contribution.n_species,))

        self._kernels_zero = []
        for contribution in self.contributions:
            wds = contribution.weighted_densities()
            table = np.zeros((len(wds), n_species))
            for a, wd in enumerate(wds):
                if not wd.is_vector:
                    table[a] = wd.kernel(np.zeros(1))[:, 0]
            self._kernels_zero.append(table)

    @classmethod
    def from_molecules(cls, molecules, functional='RF', cut_off=2.5, coupling=1.0):

        """
        Builds the functional of a fluid from its molecules. A hard-sphere
        contribution is always included; chain, dispersion, association and
        electrostatic contributions are included when any molecule has
        bonds, a non-zero well depth, association sites or a charge.

        Args:
            Required:
                molecules(list(Molecule)): Molecules of each species
            Optional:
                functional(string): FMT functional. Default is RF.
                cut_off(float): Truncation of the dispersion potential.
                                Default is 2.5.
                coupling(float): Coulomb coupling constant. Default is 1.0.
        """

        d = [m.diameter for m in molecules]
        segments = [m.segments for m in molecules]

        contributions = [HardSphere(d, segments, functional)]

        bonds = [m.bond_count for m in molecules]
        if any(b > 0 for b in bonds):
            contributions.append(HardChain(d, segments, bonds))

        epsilons = [m.epsilon for m in molecules]
        if any(e > 0.0 for e in epsilons):
            contributions.append(MeanFieldDispersion(d, epsilons, segments, cut_off))

        if any(m.associates for m in molecules):
            contributions.append(Association(d, segments, [m.kappa_ab for m in molecules],
                                             [m.epsilon_ab for m in molecules],
                                             [m.na for m in molecules], [m.nb for m in molecules]))

        charges = [m.charge for m in molecules]
        if any(q != 0.0 for q in charges):
            contributions.append(Electrostatics(charges, d, coupling))

        logger.debug(f'Functional built with contributions {[c.name for c in contributions]}')
        return cls(contributions, len(molecules), [m.name for m in molecules])

    def _bulk_density(self, density):
        density = np.atleast_1d(np.asarray(density, dtype=float))
        if density.shape != (self.n_species,):
            raise exceptions.ShapeMismatchError('bulk density', (self.n_species,), density.shape)
        return density

    def bulk_weighted_densities(self, density):
        """Weighted densities of a homogeneous fluid, one array (n_weighted_densities, 1) per contribution."""

        density = self._bulk_density(density)
        return [(table @ density)[:, None] for table in self._kernels_zero]

    def bulk_excess_helmholtz_energy_density(self, density, temperature):

        density = self._bulk_density(density)
        f = 0.0
        for contribution, n in zip(self.contributions, self.bulk_weighted_densities(density)):
            contribution.check(n, density[:, None])
            f += contribution.helmholtz_energy_density(n, temperature)[0]
        return f

    def bulk_helmholtz_energy_density(self, density, temperature):

        """
        Helmholtz free energy density of the homogeneous fluid,
            f = T sum_i rho_i (ln rho_i - 1) + f_ex.
        """

        density = self._bulk_density(density)
        ideal = temperature*np.sum(xlogy(density, density) - density)
        return ideal + self.bulk_excess_helmholtz_energy_density(density, temperature)

    def bulk_excess_chemical_potential(self, density, temperature):

        """
        Excess chemical potential of each species of the homogeneous fluid,
            mu_ex,i = sum_c sum_a dphi_c/dn_a w_ai(0).
        """

        density = self._bulk_density(density)
        mu = np.zeros(self.n_species)
        for contribution, table, n in zip(self.contributions, self._kernels_zero,
                                          self.bulk_weighted_densities(density)):
            contribution.check(n, density[:, None])
            mu += table.T @ contribution.partial_derivatives(n, temperature)[:, 0]
        return mu

    def bulk_chemical_potential(self, density, temperature):

        """
        Chemical potential of each species of the homogeneous fluid. Species
        with zero density have chemical potential -inf.
        """

        density = self._bulk_density(density)
        with np.errstate(divide='ignore'):
            ideal = temperature*np.log(density)
        return ideal + self.bulk_excess_chemical_potential(density, temperature)

    def bulk_pressure(self, density, temperature):

        """
        Pressure of the homogeneous fluid, p = sum_i rho_i mu_i - f.
        """

        density = self._bulk_density(density)
        mu_ex = self.bulk_excess_chemical_potential(density, temperature)
        f_ex = self.bulk_excess_helmholtz_energy_density(density, temperature)
        return temperature*np.sum(density) + np.dot(density, mu_ex) - f_ex

    def bulk_temperature_derivative(self, density, temperature):

        """
        Temperature derivative of the Helmholtz free energy density of the
        homogeneous fluid at fixed density, i.e. minus the entropy density.
        """

        density = self._bulk_density(density)
        out = np.sum(xlogy(density, density) - density)
        for contribution, n in zip(self.contributions, self.bulk_weighted_densities(density)):
            out += contribution.temperature_derivative(n, temperature)[0]
        return out

    def information(self):

        print(f'Species: {", ".join(self.names)}')
        for contribution in self.contributions:
            contribution.information()
