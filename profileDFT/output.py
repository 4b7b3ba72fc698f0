#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classical Density Functional Theory Program.
Computes equilibrium density profiles of inhomogeneous fluids in planar,
cylindrical and spherical geometries.

Created March 2022. Last Update October 2022.
Author: Mary K. Coe
E-mail: m.k.coe@bristol.ac.uk

This module contains the functions which write equilibrium density
profiles to file and plot them.

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

import os
import datetime

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

colours = ('cornflowerblue', 'mediumvioletred', 'teal', 'darkorange', 'olivedrab')

def _precision(dr):
    # Number of decimal places needed to distinguish grid points
    pres = 0
    while dr < 1:
        dr *= 10; pres += 1
    return pres

def write_profile(profile, file_name, observables=None):

    """
    Writes the system parameters and equilibrium density profiles to file.
    Results are appended if the file already exists.

    Args:
        Required:
            profile(ConvergedProfile): Equilibrium profile
            file_name(string): Name of the output file
        Optional:
            observables(Observables): Measures to include in the file

    Returns:
        None
    """

    directory = os.path.dirname(file_name)
    if directory and not os.path.exists(directory):
        os.makedirs(directory)

    grid = profile.grid; state = profile.bulk_state
    pres = _precision(grid.dr)
    reduced = profile.reduced_density()
    names = profile.functional.names

    with open(file_name, 'a') as out:

        out.write(f'Produced {datetime.datetime.now().strftime("%Y-%m-%d %H:%M")}\n\n')

        out.write(f'Geometry = {grid.geometry}\n')
        out.write(f'L = {grid.L}sigma\nN = {grid.N}\ndr = {grid.dr}\n\n')

        out.write(f'Contributions = {", ".join(c.name for c in profile.functional.contributions)}\n')
        out.write(f'T = {state.temperature}\n')
        out.write(f'Pressure = {state.pressure:.12f}\n')
        for i, name in enumerate(names):
            out.write(f'{name}: Bulk Density = {state.density[i]:.10f}\t')
            out.write(f'Excess Chemical Potential = {state.excess_chemical_potential[i]:.12f}\t')
            out.write(f'Chemical Potential = {state.chemical_potential[i]:.12f}\n')

        out.write(f'\nConvergence in {profile.iterations} iterations.\n')
        out.write(f'Residual norm = {profile.residual_norm:.6e}\n\n')

        if observables is not None:
            out.write(f'Reference surface = {observables.reference:.12f}\n')
            out.write(f'Grand Potential = {observables.grand_potential:.12f}\n')
            out.write(f'Surface Tension = {observables.interfacial_tension:.12f}\n')
            out.write(f'Adsorption = {observables.adsorption:.12f}\n\n')

        header = 'i\tr'
        for name in names:
            header += f'\trho ({name})\trho/rho_b ({name})'
        out.write(header + '\n')

        for j in range(grid.N):
            out.write(f'{j}\t{grid.r[j]:.{pres}f}')
            for i in range(len(names)):
                out.write(f'\t{profile.density[i, j]:.12f}\t{reduced[i, j]:.12f}')
            out.write('\n')

def read_profile(file_name):

    """
    Reads the grid points and density profiles from a file written by
    write_profile.

    Returns:
        r(np.array(float)), density(np.array(float)) of shape (n_species, N)
    """

    with open(file_name, 'r') as f:
        lines = f.readlines()

    start = max(i for i, line in enumerate(lines) if line.startswith('i\tr')) + 1
    data = np.array([[float(x) for x in line.split()] for line in lines[start:] if line.strip()])
    return data[:, 1], data[:, 2::2].T

def plot_profile(profile, save=False, file_name='density_profile.pdf', window=10.0):

    """
    Plots the equilibrium density profiles relative to their bulk values.
    The profiles close to the wall are shown in the main plot and the full
    profiles in an inset.

    Args:
        Required:
            profile(ConvergedProfile): Equilibrium profile
        Optional:
            save(bool): If True, the plot is written to file_name and the
                        figure is closed.
            file_name(string): Name of the plot file.
            window(float): Distance from the wall shown in the main plot.
                           Default is 10 particle diameters.

    Returns:
        matplotlib figure
    """

    grid = profile.grid
    reduced = profile.reduced_density()

    reachable = np.any(np.isfinite(profile.external_field), axis=0)
    start = int(np.argmax(reachable))
    surface = grid.r[start] - 0.5*grid.dr
    end = min(grid.index(surface + window), grid.N)

    fig = plt.figure()
    ax_main = fig.add_subplot(111)
    ax_inset = ax_main.inset_axes([0.6, 0.6, 0.38, 0.38], transform=ax_main.transAxes)

    for i, name in enumerate(profile.functional.names):
        colour = colours[i % len(colours)]
        ax_main.plot(grid.r[start:end] - surface, reduced[i, start:end], color=colour, label=name)
        ax_inset.plot(grid.r[start:] - surface, reduced[i, start:], color=colour)

    if grid.geometry == 'planar':
        xlabel = r'$z/\sigma$'; ylabel = r'$\rho(z)/\rho_b$'
    else:
        xlabel = r'$(r-R_s)/\sigma$'; ylabel = r'$\rho(r-R_s)/\rho_b$'

    ax_main.set_xlabel(xlabel); ax_main.set_ylabel(ylabel)
    ax_inset.set_xlabel(xlabel); ax_inset.set_ylabel(ylabel)

    maxy = 0.5*np.ceil(np.amax(reduced)/0.5) if np.amax(reduced) > 0.0 else 1.0
    ax_main.set_xlim(0.0, window)
    ax_main.set_ylim(0.0, maxy)
    ax_main.tick_params(right=True, top=True, direction='in', pad=5)
    ax_inset.set_xlim(0.0, grid.L - surface)
    ax_inset.set_ylim(0.0, maxy)
    ax_inset.tick_params(right=True, top=True, direction='in')

    if len(profile.functional.names) > 1:
        ax_main.legend(loc='lower right', fontsize=7)

    if save:
        fig.savefig(file_name)
        plt.close(fig)

    return fig
