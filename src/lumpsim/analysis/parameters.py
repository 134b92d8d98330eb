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
Reference-vs-fitted parameter comparison.
"""

from typing import Any, List, Mapping, Tuple

import numpy as np

from lumpsim.types.calibration import ParameterComparison


def compare_parameters(
    reference: Mapping[Any, float],
    fitted: Mapping[Any, float],
    rtol: float = 0.05,
) -> Tuple[List[ParameterComparison], bool]:
    """
    Compare two parameter mappings entry by entry.

    Keys are matched by name, so symbols and strings can be mixed. Only
    parameters present in both mappings are compared, in the order of
    ``reference``.

    Parameters
    ----------
    reference, fitted : mapping
        Parameter values keyed by symbol or name
    rtol : float
        Relative tolerance for a match (absolute when the reference is 0)

    Returns
    -------
    rows : list of ParameterComparison
    all_match : bool
        True if every compared parameter matches

    Raises
    ------
    ValueError
        If ``rtol`` is negative or the mappings share no parameter

    Examples
    --------
    >>> rows, ok = compare_parameters({"k": 1000.0}, {"k": 1040.0}, rtol=0.05)
    >>> rows[0]["relative_error"], ok
    (0.04, True)
    """
    if rtol < 0:
        raise ValueError(f"rtol must be non-negative, got {rtol}")

    fitted_by_name = {str(k): float(v) for k, v in fitted.items()}

    rows: List[ParameterComparison] = []
    for key, ref_value in reference.items():
        name = str(key)
        if name not in fitted_by_name:
            continue
        ref_value = float(ref_value)
        fit_value = fitted_by_name[name]

        error = abs(fit_value - ref_value)
        relative = error / abs(ref_value) if ref_value != 0 else error
        rows.append(
            {
                "name": name,
                "reference": ref_value,
                "fitted": fit_value,
                "relative_error": float(relative),
                "match": bool(relative <= rtol),
            }
        )

    if not rows:
        raise ValueError("Reference and fitted mappings have no parameters in common")

    return rows, all(row["match"] for row in rows)


def format_comparison_table(rows: List[ParameterComparison]) -> str:
    """
    Plain-text table of a parameter comparison.

    Examples
    --------
    >>> print(format_comparison_table(rows))
    parameter     reference        fitted   rel. error  match
    k            1000.0000     1040.0000       4.00%    yes
    """
    lines = [f"{'parameter':<10} {'reference':>12} {'fitted':>13} {'rel. error':>12}  match"]
    for row in rows:
        rel = row["relative_error"]
        rel_str = f"{100 * rel:.2f}%" if np.isfinite(rel) else "n/a"
        lines.append(
            f"{row['name']:<10} {row['reference']:>12.4f} {row['fitted']:>13.4f} "
            f"{rel_str:>12}  {'yes' if row['match'] else 'no'}"
        )
    return "\n".join(lines)
