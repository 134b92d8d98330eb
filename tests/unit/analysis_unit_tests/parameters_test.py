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

"""Unit tests for parameter comparison"""

import pytest
import sympy as sp

from lumpsim.analysis.parameters import compare_parameters, format_comparison_table


class TestCompareParameters:
    def test_within_tolerance(self):
        rows, ok = compare_parameters({"k": 1000.0}, {"k": 1040.0}, rtol=0.05)
        assert ok
        assert rows == [
            {"name": "k", "reference": 1000.0, "fitted": 1040.0, "relative_error": pytest.approx(0.04), "match": True}
        ]

    def test_outside_tolerance(self):
        rows, ok = compare_parameters({"k": 1000.0, "m": 10.0}, {"k": 1000.0, "m": 12.0})
        assert not ok
        assert [row["match"] for row in rows] == [True, False]

    def test_keys_matched_by_name(self):
        k = sp.Symbol("k", real=True)
        rows, ok = compare_parameters({k: 1000.0}, {"k": 1000.0})
        assert ok
        assert rows[0]["name"] == "k"

    def test_reference_order_and_common_keys_only(self):
        rows, _ = compare_parameters({"c": 30.0, "g": 9.81, "k": 1000.0}, {"k": 900.0, "c": 30.0})
        assert [row["name"] for row in rows] == ["c", "k"]

    def test_zero_reference_uses_absolute_error(self):
        rows, ok = compare_parameters({"v0": 0.0}, {"v0": 0.01}, rtol=0.05)
        assert rows[0]["relative_error"] == pytest.approx(0.01)
        assert ok

    def test_negative_rtol(self):
        with pytest.raises(ValueError, match="non-negative"):
            compare_parameters({"k": 1.0}, {"k": 1.0}, rtol=-0.1)

    def test_nothing_in_common(self):
        with pytest.raises(ValueError, match="no parameters in common"):
            compare_parameters({"k": 1.0}, {"m": 1.0})


class TestFormatComparisonTable:
    def test_table(self):
        rows, _ = compare_parameters({"k": 1000.0, "m": 10.0}, {"k": 1040.0, "m": 12.0})
        lines = format_comparison_table(rows).splitlines()
        assert len(lines) == 3
        assert lines[0].startswith("parameter")
        assert "4.00%" in lines[1] and lines[1].endswith("yes")
        assert "20.00%" in lines[2] and lines[2].endswith("no")
