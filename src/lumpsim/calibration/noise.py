# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Synthetic measurement noise.
"""

from typing import Optional

import numpy as np

from lumpsim.types.core import ArrayLike


def add_gaussian_noise(
    data: ArrayLike,
    std: float = 0.005,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Return a copy of ``data`` with i.i.d. zero-mean Gaussian noise added.

    Parameters
    ----------
    data : array-like
        Clean data of any shape, e.g. a (T, nx) state trajectory
    std : float
        Noise standard deviation (0 returns an exact copy)
    seed : int, optional
        Seed for ``numpy.random.default_rng`` (ignored if ``rng`` given)
    rng : np.random.Generator, optional
        Generator to draw from

    Raises
    ------
    ValueError
        If ``std`` is negative or not finite

    Examples
    --------
    >>> noisy = add_gaussian_noise(sol.u, std=0.005, seed=42)
    >>> noisy.shape == sol.u.shape
    True
    """
    if not np.isfinite(std) or std < 0:
        raise ValueError(f"Noise standard deviation must be non-negative, got {std}")

    clean = np.asarray(data, dtype=float)
    if rng is None:
        rng = np.random.default_rng(seed)

    return clean + std * rng.standard_normal(clean.shape)
