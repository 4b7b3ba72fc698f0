#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This module contains the measures calculated from equilibrium density
profiles.

Interfacial quantities are excesses over the bulk fluid in the region
beyond a reference surface, divided by the area of that surface. For
planar systems the reference surface is the surface of the wall, i.e. the
edge of the region the fluid cannot reach. For curved systems it is the
radius of the solute if one is supplied, otherwise the equimolar radius.

Measures which take pout and fout arguments print their result to the
terminal (pout = True) or append it to the file named by fout.

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

import profileDFT.minimisation as minimisation
from profileDFT.fluid import bulk_density_from_chemical_potential

logger = logging.getLogger(__name__)

def _report(name, value, pout, fout):

    if pout:
        print(f'{name} = {value:.10f}')
    if fout:
        with open(fout, 'a') as out:
            out.write(f'{name} = {value:.12f}\n')

def wall_surface(profile):

    """
    Returns the position of the edge of the region which no species can
    reach, or 0 if the fluid can reach every grid point.
    """

    reachable = np.any(np.isfinite(profile.external_field), axis=0)
    if np.all(reachable) or not np.any(reachable):
        return 0.0
    first = int(np.argmax(reachable))
    return profile.grid.r[first] - 0.5*profile.grid.dr

def equimolar_radius(profile):

    """
    Calculates the position of the equimolar dividing surface, at which the
    total number of particles equals that of bulk fluid filling the domain
    beyond the surface.

    Args:
        Required:
            profile(ConvergedProfile): Equilibrium profile

    Returns:
        Equimolar radius (or position, for planar systems)
    """

    grid = profile.grid
    rho_b = np.sum(profile.bulk_state.density)
    if rho_b <= 0.0:
        return 0.0

    excluded_volume = grid.volume - np.sum(grid.integrate(profile.density))/rho_b
    excluded_volume = max(excluded_volume, 0.0)

    if grid.geometry == 'planar':
        return excluded_volume
    elif grid.geometry == 'cylindrical':
        return np.sqrt(excluded_volume/np.pi)
    return np.cbrt(3.0*excluded_volume/(4.0*np.pi))

def reference_position(profile, reference=None):
    """Returns the reference surface of interfacial measures."""

    if reference is not None:
        return reference
    if profile.grid.geometry == 'planar':
        return wall_surface(profile)
    return equimolar_radius(profile)

def _interface(profile, reference):
    # Region beyond the reference surface and the area of the surface
    reference = reference_position(profile, reference)
    return profile.grid.r > reference, profile.grid.area(reference)

def grand_potential_density(profile):

    """
    Calculates the grand potential density at every grid point.

    Args:
        Required:
            profile(ConvergedProfile): Equilibrium profile

    Returns:
        Grand potential density, shape (N,)
    """

    return profile.engine.grand_potential_density(profile.density, profile.bulk_state,
                                                  profile.external_field)

def grand_potential(profile, pout=False, fout=None):

    """
    Calculates the grand potential of the system (per unit area for planar
    systems and per unit length for cylindrical systems).

    Args:
        Required:
            profile(ConvergedProfile): Equilibrium profile
        Optional:
            pout(bool): Print result to terminal. Default is False.
            fout(string): File to append the result to. Default is None.

    Returns:
        Grand potential
    """

    omega = profile.grid.integrate(grand_potential_density(profile))
    _report('Grand Potential', omega, pout, fout)
    return omega

def interfacial_tension(profile, reference=None, pout=False, fout=None):

    """
    Calculates the interfacial (surface) tension,
        gamma = int_{r > R} (omega(r) + p) dV / A(R).

    Args:
        Required:
            profile(ConvergedProfile): Equilibrium profile
        Optional:
            reference(float): Position of the reference surface
            pout(bool): Print result to terminal. Default is False.
            fout(string): File to append the result to. Default is None.

    Returns:
        Interfacial tension
    """

    region, area = _interface(profile, reference)
    excess = grand_potential_density(profile) + profile.bulk_state.pressure
    gamma = np.sum(excess[region]*profile.grid.weights[region])/area

    _report('Surface Tension', gamma, pout, fout)
    return gamma

def surface_excess(profile, reference=None):

    """
    Calculates the surface excess of each species,
        Gamma_i = int_{r > R} (rho_i(r) - rho_b,i) dV / A(R).

    Returns:
        Surface excess of each species, shape (n_species,)
    """

    region, area = _interface(profile, reference)
    drho = profile.density[:, region] - profile.bulk_state.density[:, None]
    return np.sum(drho*profile.grid.weights[region], axis=-1)/area

def adsorption(profile, reference=None, pout=False, fout=None):

    """
    Calculates the total adsorption, i.e. the sum of the surface excesses
    of every species.

    Args:
        Required:
            profile(ConvergedProfile): Equilibrium profile
        Optional:
            reference(float): Position of the reference surface
            pout(bool): Print result to terminal. Default is False.
            fout(string): File to append the result to. Default is None.

    Returns:
        Adsorption
    """

    gamma = float(np.sum(surface_excess(profile, reference)))
    _report('Adsorption', gamma, pout, fout)
    return gamma

def solvation_free_energy(profile, pout=False, fout=None):

    """
    Calculates the excess grand potential of the system over bulk fluid
    filling the whole domain, Omega + pV. For a solute this is the free
    energy of solvation.
    """

    excess = grand_potential_density(profile) + profile.bulk_state.pressure
    result = profile.grid.integrate(excess)
    _report('Solvation Free Energy', result, pout, fout)
    return result

def _relative_error(exact, estimate):

    # Absolute error where the exact value vanishes
    if exact == 0.0:
        return abs(estimate)
    return abs((estimate - exact)/exact)

def contact_density(profile):

    """
    Returns the density of each species at the first grid point the fluid
    can reach, shape (n_species,).
    """

    reachable = np.any(np.isfinite(profile.external_field), axis=0)
    first = int(np.argmax(reachable))
    return profile.density[:, first].copy()

def contact_sum_rule(profile, pout=False, fout=None):

    """
    Calculates both sides of the planar hard wall contact sum rule,
        p = T sum_i rho_i(contact).

    Args:
        Required:
            profile(ConvergedProfile): Equilibrium profile at a planar hard
                                       wall
        Optional:
            pout(bool): Print result to terminal. Default is False.
            fout(string): File to append the result to. Default is None.

    Returns:
        pressure, T*contact density, relative error
    """

    if profile.grid.geometry != 'planar':
        raise ValueError('The contact sum rule is only implemented for planar hard walls.')

    LHS = profile.bulk_state.pressure
    RHS = profile.temperature*np.sum(contact_density(profile))
    error = _relative_error(LHS, RHS)

    if pout:
        print(f'\n--------------------------------------------')
        print(f'Contact Sum Rule Results:')
        print(f'pressure = {LHS:.10f}\nkbT*rho(0) = {RHS:.10f}')
        print(f'Relative Error = {error:.10f}')
        print(f'--------------------------------------------\n')

    if fout:
        with open(fout, 'a') as out:
            out.write(f'p = {LHS:.12f}\tkbTrho(0) = {RHS:.12f}\n')
            out.write(f'Relative Error = {error:.12f}\n\n')

    return LHS, RHS, error

def interfacial_entropy(profile, reference=None, pout=False, fout=None):

    """
    Calculates the interfacial entropy, s = -dgamma/dT at constant chemical
    potential. As the equilibrium profile is stationary, the derivative
    only involves the explicit temperature dependence of the functional,
        dgamma/dT = int_{r > R} (df/dT - df_b/dT) dV / A(R),
    where the derivatives are taken at fixed density.

    Returns:
        Interfacial entropy
    """

    region, area = _interface(profile, reference)
    T = profile.temperature

    local = profile.engine.temperature_derivative(profile.density, T)
    bulk = profile.functional.bulk_temperature_derivative(profile.bulk_state.density, T)
    dgamma = np.sum((local[region] - bulk)*profile.grid.weights[region])/area

    _report('Interfacial Entropy', -dgamma, pout, fout)
    return -dgamma

def resolve(profile, bulk_state):

    """
    Finds the equilibrium profile at a new bulk state, using the current
    profile as the initial guess.
    """

    logger.debug(f'Finding equilibrium profile at bulk density {bulk_state.density}, T = {bulk_state.temperature}')
    return minimisation.solve(profile.grid, bulk_state, profile.external_field, profile.config,
                              initial_profile=profile.density)

def _shifted_chemical_potential(profile, dmu, species):

    state = profile.bulk_state
    mu = state.chemical_potential[species] + dmu
    density = bulk_density_from_chemical_potential(profile.functional, mu, state.temperature,
                                                   state.density, species)
    return resolve(profile, state.update(density=density))

def mu_derivative(profile, species=0, dmu=1e-4):

    """
    Calculates the equilibrium profiles at chemical potentials mu +- dmu of
    one species, by central differences.

    Returns:
        profile at mu - dmu, profile at mu + dmu
    """

    minus = _shifted_chemical_potential(profile, -dmu, species)
    plus = _shifted_chemical_potential(profile, dmu, species)
    return minus, plus

def local_compressibility(profile, species=0, dmu=1e-4):

    """
    Calculates the local compressibility, drho(r)/dmu, of every species with
    respect to the chemical potential of one species.

    Returns:
        Local compressibility, shape (n_species, N)
    """

    minus, plus = mu_derivative(profile, species, dmu)
    return (plus.density - minus.density)/(2.0*dmu)

def local_thermal_susceptibility(profile, dT=1e-4):

    """
    Calculates the local thermal susceptibility, drho(r)/dT at constant
    chemical potential, for a one-component fluid.

    Returns:
        Local thermal susceptibility, shape (n_species, N)
    """

    state = profile.bulk_state
    profiles = []
    for T in (state.temperature - dT, state.temperature + dT):
        density = bulk_density_from_chemical_potential(profile.functional, state.chemical_potential[0],
                                                       T, state.density)
        bulk = state.update(density=density, temperature=T)
        profiles.append(resolve(profile, bulk))

    return (profiles[1].density - profiles[0].density)/(2.0*dT)

def adsorption_sum_rule(profile, species=0, dmu=1e-4, reference=None, pout=False, fout=None):

    """
    Checks the Gibbs adsorption sum rule, Gamma_i = -dgamma/dmu_i, by
    calculating the equilibrium profiles at mu_i +- dmu.

    Args:
        Required:
            profile(ConvergedProfile): Equilibrium profile
        Optional:
            species(int): Species whose chemical potential is varied.
                          Default is 0.
            dmu(float): Change in the chemical potential. Default is 1e-4.
            reference(float): Position of the reference surface
            pout(bool): Print result to terminal. Default is False.
            fout(string): File to append the result to. Default is None.

    Returns:
        surface excess, -dgamma/dmu, relative error
    """

    reference = reference_position(profile, reference)
    minus, plus = mu_derivative(profile, species, dmu)

    gamma_deriv = -(interfacial_tension(plus, reference) - interfacial_tension(minus, reference))/(2.0*dmu)
    adsorp = surface_excess(profile, reference)[species]
    error = _relative_error(adsorp, gamma_deriv)

    if pout:
        print(f'\n----------------------------------------------------')
        print(f'Adsorption = {adsorp:.10f} -dgamma/dmu = {gamma_deriv:.10f}')
        print(f'Relative Error = {error:.10f}')
        print(f'----------------------------------------------------\n')

    if fout:
        with open(fout, 'a') as out:
            out.write(f'\nAdsorption (Gamma) = {adsorp:.12f}\t-dgamma/dmu = {gamma_deriv:.12f}\n')
            out.write(f'Relative error = {error:.12f}\n')

    return adsorp, gamma_deriv, error


class Observables:

    """
    Interfacial measures of an equilibrium profile.

    Attributes:
        adsorption(float): total adsorption
        interfacial_tension(float): interfacial tension
        surface_excess(np.array(float)): surface excess of each species
        grand_potential(float): grand potential
        reference(float): position of the reference surface
    """

    def __init__(self, adsorption, interfacial_tension, surface_excess, grand_potential, reference):
        self.adsorption = adsorption
        self.interfacial_tension = interfacial_tension
        self.surface_excess = surface_excess
        self.grand_potential = grand_potential
        self.reference = reference

    def information(self):
        print(f'Reference surface: {self.reference}')
        print(f'Grand Potential = {self.grand_potential:.10f}')
        print(f'Surface Tension = {self.interfacial_tension:.10f}')
        print(f'Adsorption = {self.adsorption:.10f}')
        print(f'Surface excess = {self.surface_excess}')

def post_process(profile, reference=None):

    """
    Calculates the interfacial measures of an equilibrium profile.

    Args:
        Required:
            profile(ConvergedProfile): Equilibrium profile
        Optional:
            reference(float): Position of the reference surface. For curved
                              systems this should be the solute radius.

    Returns:
        Observables
    """

    reference = reference_position(profile, reference)
    excess = surface_excess(profile, reference)
    return Observables(float(np.sum(excess)), interfacial_tension(profile, reference), excess,
                       grand_potential(profile), reference)
