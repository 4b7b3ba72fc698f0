"""
Tests for writing, reading and plotting density profiles.
"""

import matplotlib.pyplot as plt
import numpy as np

from profileDFT.measures import post_process
from profileDFT.output import plot_profile, read_profile, write_profile


def test_profile_is_written_and_read_back(ideal_wall_profile, tmp_path):
    file_name = str(tmp_path/'output'/'profile.txt')
    write_profile(ideal_wall_profile, file_name, post_process(ideal_wall_profile))

    r, density = read_profile(file_name)
    np.testing.assert_allclose(r, ideal_wall_profile.grid.r, atol=1e-3)
    np.testing.assert_allclose(density, ideal_wall_profile.density, atol=1e-11)

    with open(file_name) as f:
        text = f.read()
    assert 'Geometry = planar' in text
    assert 'Surface Tension' in text


def test_profiles_are_appended(ideal_wall_profile, tmp_path):
    file_name = str(tmp_path/'profile.txt')
    write_profile(ideal_wall_profile, file_name)
    write_profile(ideal_wall_profile, file_name)

    with open(file_name) as f:
        assert f.read().count('Geometry = planar') == 2
    r, density = read_profile(file_name)
    assert density.shape == ideal_wall_profile.density.shape


def test_plot_profile(ideal_wall_profile, tmp_path):
    file_name = str(tmp_path/'profile.pdf')
    fig = plot_profile(ideal_wall_profile, save=True, file_name=file_name, window=5.0)
    assert len(fig.axes[0].child_axes) == 1
    assert (tmp_path/'profile.pdf').exists()
    assert not plt.fignum_exists(fig.number)


def test_plot_profile_is_left_open_when_not_saved(ideal_wall_profile):
    fig = plot_profile(ideal_wall_profile)
    assert plt.fignum_exists(fig.number)
    plt.close(fig)
