"""
Tests for the grid and the transform engines.
"""

import numpy as np
import pytest

import profileDFT.exceptions as exceptions
from profileDFT.convolution import WeightedDensityConvolver
from profileDFT.grid import Grid, valid_grid_size
from profileDFT.transforms import (CylindricalTransform, PlanarTransform, SphericalTransform,
                                   transform_engine)
from profileDFT.weights import WeightedDensity, WeightFunction, WeightFunctionType


GEOMETRIES = ['planar', 'cylindrical', 'spherical']


def test_valid_grid_size():
    assert valid_grid_size(1024)
    assert valid_grid_size(1000)
    assert not valid_grid_size(1001)
    assert not valid_grid_size(1)


def test_unsupported_grid_size_suggests_alternative():
    with pytest.raises(exceptions.GridSizeError) as err:
        Grid('planar', 1001, 10.0)
    assert err.value.n_points == 1001
    assert err.value.suggestion > 1001
    assert valid_grid_size(err.value.suggestion)


def test_unsupported_geometry():
    with pytest.raises(exceptions.UnsupportedGeometryError):
        Grid('toroidal', 1024, 10.0)


@pytest.mark.parametrize('geometry', GEOMETRIES)
def test_weights_integrate_volume_exactly(geometry):
    grid = Grid(geometry, 512, 6.0)
    assert grid.integrate(np.ones(grid.N)) == pytest.approx(grid.volume, rel=1e-12)
    assert grid.dr == pytest.approx(6.0/512)
    assert grid.r[0] == pytest.approx(0.5*grid.dr)


def test_grid_arrays_are_read_only():
    grid = Grid('planar', 64, 1.0)
    with pytest.raises(ValueError):
        grid.r[0] = 1.0


@pytest.mark.parametrize('geometry,engine_type', [('planar', PlanarTransform),
                                                  ('cylindrical', CylindricalTransform),
                                                  ('spherical', SphericalTransform)])
def test_transform_engine_dispatch(geometry, engine_type):
    grid = Grid(geometry, 64, 4.0)
    assert isinstance(transform_engine(grid), engine_type)


@pytest.mark.parametrize('geometry', GEOMETRIES)
def test_transform_round_trip(geometry):
    grid = Grid(geometry, 128, 8.0)
    engine = transform_engine(grid)
    f = np.exp(-(grid.r - 3.0)**2)[None, :]*np.array([[1.0], [0.5]])
    np.testing.assert_allclose(engine.inverse(engine.forward(f)), f, atol=1e-10)


@pytest.mark.parametrize('geometry', GEOMETRIES)
def test_identity_weight_conserves_mass(geometry):
    grid = Grid(geometry, 256, 8.0)
    density = (0.5 + 0.3*np.exp(-(grid.r - 4.0)**2))[None, :]
    identity = WeightedDensity('rho', [WeightFunction(WeightFunctionType.IDENTITY)])

    convolver = WeightedDensityConvolver(grid, [], 1)
    n = convolver.convolve(density, [identity])

    np.testing.assert_allclose(n, density, rtol=1e-10)
    assert grid.integrate(n[0]) == pytest.approx(grid.integrate(density[0]), rel=1e-10)


@pytest.mark.parametrize('geometry', GEOMETRIES)
def test_uniform_density_gives_bulk_weighted_densities(geometry):
    grid = Grid(geometry, 256, 8.0)
    R = 0.5
    density = np.full((1, grid.N), 0.6)
    wds = [WeightedDensity('n3', [WeightFunction(WeightFunctionType.THETA, R)]),
           WeightedDensity('n2', [WeightFunction(WeightFunctionType.DELTA, R)]),
           WeightedDensity('n2v', [WeightFunction(WeightFunctionType.DELTA_VEC, R)])]

    n = WeightedDensityConvolver(grid, [], 1).convolve(density, wds)

    np.testing.assert_allclose(n[0], 0.6*4.0*np.pi*R**3/3.0, rtol=1e-12)
    np.testing.assert_allclose(n[1], 0.6*4.0*np.pi*R**2, rtol=1e-12)
    np.testing.assert_allclose(n[2], 0.0, atol=1e-12)


def test_planar_theta_conserves_integral():
    grid = Grid('planar', 1024, 20.0)
    R = 0.5
    density = (0.4 + 0.2*np.exp(-(grid.r - 10.0)**2))[None, :]
    n3 = WeightedDensity('n3', [WeightFunction(WeightFunctionType.THETA, R)])

    n = WeightedDensityConvolver(grid, [], 1).convolve(density, [n3])

    w0 = 4.0*np.pi*R**3/3.0
    assert grid.integrate(n[0]) == pytest.approx(w0*grid.integrate(density[0]), rel=1e-10)


def test_convolver_rejects_wrong_shape():
    grid = Grid('planar', 128, 4.0)
    convolver = WeightedDensityConvolver(grid, [], 2)
    with pytest.raises(exceptions.ShapeMismatchError):
        convolver.weighted_densities(np.ones((1, grid.N)))
