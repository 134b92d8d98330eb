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
Demo pipelines, also installed as the ``lumpsim-suspended-mass`` and
``lumpsim-rlc`` console scripts.
"""

from .suspended_mass import run_suspended_mass_demo
from .rlc_circuit import run_rlc_demo

__all__ = ["run_suspended_mass_demo", "run_rlc_demo"]
