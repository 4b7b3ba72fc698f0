#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This module contains the exception objects.

Errors raised while setting up a calculation (grid sizes, unsupported
options, array shapes) are contract violations and should not be caught.
Errors raised during the minimisation carry the diagnostic state of the
solver (profile, residual norms) so that a caller can retry, for example
with a smaller damping factor or using the best profile as a warm start.

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

class Error(Exception):
    """Base class for exceptions"""
    pass

class GridSizeError(Error):

    """
    Exception raised when the number of grid points is not compatible with
    the fast transforms.

    Attributes:
        n_points(int): number of grid points which caused the error
        suggestion(int): nearest larger supported number of grid points
        message(string): explanation of supported grid sizes
    """

    def __init__(self, n_points, suggestion=None, message=""):
        self.n_points = n_points
        self.suggestion = suggestion
        message = "This number of grid points is not supported.\n"
        message += "The number of grid points must be at least 2 and only "
        message += "have prime factors 2, 3 and 5."
        if suggestion is not None:
            message += f"\nThe nearest supported number of grid points is {suggestion}."
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f' n_points = {self.n_points}.\n{self.message}'


class UnsupportedGeometryError(Error):

    """
    Exception raised for unsupported input geometry.

    Attributes:
        geometry(string): input geometry which caused the error
        message(string): explanation of supported geometries
    """

    def __init__(self, geometry, message=""):
        self.geometry = geometry
        message = "This geometry is not supported.\n"
        message += "Please choose a supported geometry.\n"
        message += "The supported geometries are planar, cylindrical and spherical."
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f' geometry = {self.geometry}.\n{self.message}'


class UnsupportedFunctionalError(Error):

    """
    Exception raised for unsupported input functional.

    Attributes:
        functional(string): input functional which caused the error
        message(string): explanation of supported functionals
    """

    def __init__(self, functional, message="Functional not supported."):
        self.functional = functional
        message = "This functional is not supported.\n"
        message += "Please choose a supported functional.\n"
        message += "The supported functionals are RF (Rosenfeld), WB (White-Bear), WBII (White-Bear Mark II)."
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f' functional = {self.functional}.\n{self.message}'


class UnsupportedWallTypeError(Error):

    """
    Exception raised for unsupported input wall_type.

    Attributes:
        wall_type(string): input wall_type which caused the error
        geometry(string): geometry for which the wall was requested
        message(string): explanation of supported wall types
    """

    def __init__(self, wall_type, geometry='planar', message=""):
        self.wall_type = wall_type
        self.geometry = geometry
        message = "This wall type is not supported.\n"
        message += "Please choose a supported wall type.\n"
        if geometry == 'planar':
            message += "The supported wall types are HW (hard wall), "
            message += "LJ (Lennard-Jones), SLJ (Lennard-Jones with "
            message += "minimum shifted to occur at the surface of the wall) "
            message += "and WCALJ (Lennard-Jones with WCA splitting)."
        else:
            message += "The supported wall types are HW (hard wall), "
            message += "LJ (Lennard-Jones) and SLJ (Lennard-Jones with "
            message += "minimum shifted to occur at the surface of the wall)."

        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f' wall_type = {self.wall_type}.\n{self.message}'


class UnsupportedMixingSchemeError(Error):

    """
    Exception raised for unsupported input mixing_scheme.

    Attributes:
        mixing_scheme(string): input mixing scheme which caused the error
        message(string): explanation of supported mixing schemes
    """

    def __init__(self, mixing_scheme, message=""):
        self.mixing_scheme = mixing_scheme
        message = "This mixing scheme is not supported.\n"
        message += "Please choose a supported mixing scheme.\n"
        message += "The supported mixing schemes are picard, anderson and newton."
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f' mixing_scheme = {self.mixing_scheme}.\n{self.message}'


class ShapeMismatchError(Error):

    """
    Exception raised when an array does not have the shape required by
    the grid and the number of species.

    Attributes:
        name(string): name of the offending array
        expected(tuple): required shape
        received(tuple): shape supplied
    """

    def __init__(self, name, expected, received):
        self.name = name
        self.expected = tuple(expected)
        self.received = tuple(received)
        self.message = f"Array {name} has shape {self.received} but shape {self.expected} is required."
        super().__init__(self.message)

    def __str__(self):
        return f' name = {self.name}.\n{self.message}'


class PackingFractionOverflow(Error):

    """
    Exception raised when the local packing fraction reaches or exceeds 1.
    This indicates the density profile has become unphysical, normally
    because the minimisation is diverging.

    Attributes:
        node(int): index of the grid point at which the overflow occurred
        species(int): index of the species with the largest density at
                      that grid point
        packing_fraction(float): offending local packing fraction
        contribution(string): name of the functional contribution
    """

    def __init__(self, node, species, packing_fraction, contribution=''):
        self.node = node
        self.species = species
        self.packing_fraction = packing_fraction
        self.contribution = contribution
        message = f"Local packing fraction {packing_fraction:.6f} is not below 1.\n"
        message += "The density profile is unphysical. Try reducing the damping factor."
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f' node = {self.node}, species = {self.species}, contribution = {self.contribution}.\n{self.message}'


class NonFiniteValue(Error):

    """
    Exception raised when NaN or infinite values appear in a density
    profile, weighted density or residual.

    Attributes:
        quantity(string): name of the quantity containing the value
        node(int): index of the first offending grid point (if known)
        species(int): index of the first offending species (if known)
    """

    def __init__(self, quantity, node=None, species=None):
        self.quantity = quantity
        self.node = node
        self.species = species
        self.message = f"Non-finite value found in {quantity}."
        super().__init__(self.message)

    def __str__(self):
        return f' quantity = {self.quantity}, node = {self.node}, species = {self.species}.\n{self.message}'


class MaxIterationsReached(Error):

    """
    Exception raised when the minimisation does not converge within the
    maximum number of iterations. The best profile found is kept so that
    it can be used as the initial guess of a further minimisation.

    Attributes:
        iterations(int): number of iterations performed
        residual_norm(float): residual norm of the best profile
        profile(np.array(float)): best density profile found
        residual_history(list(float)): residual norm at each iteration
    """

    def __init__(self, iterations, residual_norm, profile, residual_history=None):
        self.iterations = iterations
        self.residual_norm = residual_norm
        self.profile = profile
        self.residual_history = list(residual_history) if residual_history is not None else []
        message = f"Density profile failed to converge after {iterations} iterations.\n"
        message += f"Best residual norm = {residual_norm:.6e}."
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f' iterations = {self.iterations}.\n{self.message}'


class Diverged(Error):

    """
    Exception raised when the minimisation diverges, i.e. the residual
    cannot be reduced by damping the update or grows without bound.

    Attributes:
        residual_history(list(float)): residual norm at each iteration
        profile(np.array(float)): last accepted density profile
        reason(string): description of the failure
    """

    def __init__(self, residual_history, profile, reason=""):
        self.residual_history = list(residual_history)
        self.profile = profile
        self.reason = reason
        message = "Density profile diverged.\n"
        if reason:
            message += f"{reason}\n"
        if self.residual_history:
            message += f"Last residual norm = {self.residual_history[-1]:.6e}."
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f' iterations = {len(self.residual_history)}.\n{self.message}'


class SolverAborted(Error):

    """
    Exception raised when the abort check supplied to the solver requests
    that the minimisation stops.

    Attributes:
        iterations(int): number of iterations performed
        residual_norm(float): residual norm of the last accepted profile
        profile(np.array(float)): last accepted density profile
    """

    def __init__(self, iterations, residual_norm, profile):
        self.iterations = iterations
        self.residual_norm = residual_norm
        self.profile = profile
        self.message = f"Minimisation aborted after {iterations} iterations (residual norm = {residual_norm:.6e})."
        super().__init__(self.message)

    def __str__(self):
        return f' iterations = {self.iterations}.\n{self.message}'
