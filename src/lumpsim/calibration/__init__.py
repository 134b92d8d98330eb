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
Calibration
===========

Synthetic noise, MSE losses with forward-sensitivity gradients, and the
Calibrator wrapping ``scipy.optimize.minimize``.

>>> from lumpsim.calibration import Calibrator, add_gaussian_noise
>>> noisy = add_gaussian_noise(sol.u, std=0.005, seed=0)
>>> result = Calibrator(problem, noisy, saveat=0.02, lower=lb, upper=ub).fit(guess)
"""

from .noise import add_gaussian_noise
from .sensitivity import ForwardSensitivityProblem
from .loss import check_data_shape, mse_loss, mse_loss_and_gradient
from .calibrator import CalibrationCallback, Calibrator

__all__ = [
    "add_gaussian_noise",
    "ForwardSensitivityProblem",
    "check_data_shape",
    "mse_loss",
    "mse_loss_and_gradient",
    "Calibrator",
    "CalibrationCallback",
]
