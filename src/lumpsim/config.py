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
Demo Configuration

Dataclasses holding the constants of the two demo pipelines. Defaults
reproduce the reference experiments; ``with_overrides`` returns a modified
copy for parameter studies:

>>> config = SuspendedMassConfig().with_overrides(noise=NoiseConfig(std=0.01, seed=1))
>>> config.simulation.tspan
(0.0, 5.0)
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np

from lumpsim.systems.base.numerical_integration.integrator_factory import IntegratorFactory


class _Overridable:
    """Mixin adding ``with_overrides`` to frozen dataclasses."""

    def with_overrides(self, **kwargs):
        """
        Copy with some fields replaced.

        Raises
        ------
        ValueError
            If a keyword is not a field of this config
        """
        names = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(kwargs) - names)
        if unknown:
            raise ValueError(
                f"Unknown {type(self).__name__} fields {unknown}. Valid fields: {sorted(names)}"
            )
        return dataclasses.replace(self, **kwargs)


@dataclass(frozen=True)
class SimulationConfig(_Overridable):
    """
    Integration settings.

    Attributes
    ----------
    tspan : tuple
        (t0, tf)
    saveat : float
        Save step [s]
    method : str
        Integration method name (see ``IntegratorFactory.list_methods``)
    rtol, atol : float
        Integration tolerances
    """

    tspan: Tuple[float, float] = (0.0, 5.0)
    saveat: float = 0.02
    method: str = "Tsit5"
    rtol: float = 1e-8
    atol: float = 1e-10

    def __post_init__(self):
        t0, tf = self.tspan
        if not tf > t0:
            raise ValueError(f"tspan must satisfy tf > t0, got {self.tspan}")
        if self.saveat <= 0:
            raise ValueError(f"saveat must be positive, got {self.saveat}")
        IntegratorFactory.normalize_method(self.method)


@dataclass(frozen=True)
class NoiseConfig(_Overridable):
    """Gaussian measurement noise (std in state units; seed None = fresh entropy)."""

    std: float = 0.005
    seed: Optional[int] = None

    def __post_init__(self):
        if not np.isfinite(self.std) or self.std < 0:
            raise ValueError(f"Noise std must be finite and non-negative, got {self.std}")


@dataclass(frozen=True)
class CalibrationConfig(_Overridable):
    """
    Optimizer settings.

    ``tunables``, ``guess``, ``lower`` and ``upper`` are aligned entry by
    entry.
    """

    tunables: Tuple[str, ...] = ("x_m0", "g", "k", "m", "c")
    guess: Tuple[float, ...] = (1.0, 9.81, 100.0, 30.0, 1.0)
    lower: Optional[Tuple[float, ...]] = (0.0, 9.80, 100.0, 1.0, 0.5)
    upper: Optional[Tuple[float, ...]] = (2.0, 9.82, 5000.0, 100.0, 500.0)
    method: str = "L-BFGS-B"
    gradient: str = "sensitivity"
    maxiter: int = 1000
    stop_below: Optional[float] = None

    def __post_init__(self):
        n = len(self.tunables)
        for name in ("guess", "lower", "upper"):
            values = getattr(self, name)
            if values is not None and len(values) != n:
                raise ValueError(f"{name} has {len(values)} entries, expected {n} (one per tunable)")
        if self.maxiter < 1:
            raise ValueError(f"maxiter must be at least 1, got {self.maxiter}")

    def bounds(self) -> Tuple[Optional[np.ndarray], Optional[np.ndarray]]:
        lower = None if self.lower is None else np.asarray(self.lower, dtype=float)
        upper = None if self.upper is None else np.asarray(self.upper, dtype=float)
        return lower, upper


@dataclass(frozen=True)
class SuspendedMassConfig(_Overridable):
    """
    Suspended-mass pipeline: simulate, add noise, calibrate, compare.

    Attributes
    ----------
    parameters : dict
        Parameter values generating the reference data
    rtol : float
        Relative tolerance for the parameter comparison
    """

    parameters: Dict[str, float] = field(
        default_factory=lambda: {"x_m0": 1.0, "g": 9.81, "k": 1000.0, "m": 10.0, "c": 30.0}
    )
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    noise: NoiseConfig = field(default_factory=NoiseConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    rtol: float = 0.05


@dataclass(frozen=True)
class RLCConfig(_Overridable):
    """RLC step-response pipeline (source switches from 0 to ``V`` after ``t_on``)."""

    parameters: Dict[str, float] = field(
        default_factory=lambda: {"R": 100.0, "L": 1.0, "C": 0.001}
    )
    V: float = 32.0
    t_on: float = 1.0
    simulation: SimulationConfig = field(
        default_factory=lambda: SimulationConfig(tspan=(0.5, 2.5), saveat=0.005)
    )
