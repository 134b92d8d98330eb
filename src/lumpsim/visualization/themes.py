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
Plotting Themes and Color Schemes

Centralized color palettes and styling so every lumpsim figure looks alike.

Main Classes
------------
ColorSchemes : Color palette definitions
    PLOTLY : Default Plotly colors
    COLORBLIND_SAFE : Wong palette (colorblind accessible)
    ROLES : Fixed colors for the noisy / ideal / fitted traces of a fit

PlotThemes : Complete theme configurations
    DEFAULT : Standard Plotly white theme
    PUBLICATION : Publication-ready styling
    DARK : Dark mode theme

Usage
-----
>>> from lumpsim.visualization.themes import ColorSchemes, PlotThemes
>>> colors = ColorSchemes.get_colors('colorblind_safe', n_colors=4)
>>> fig = PlotThemes.apply_theme(fig, theme='publication')
"""

from typing import Dict, List, Optional, Union

import plotly.graph_objects as go


class ColorSchemes:
    """
    Predefined color palettes for plotting.

    Examples
    --------
    >>> ColorSchemes.PLOTLY[0]
    '#636EFA'
    >>> ColorSchemes.ROLES["fitted"]
    '#EF553B'
    """

    PLOTLY = [
        "#636EFA",  # Blue
        "#EF553B",  # Red
        "#00CC96",  # Green
        "#AB63FA",  # Purple
        "#FFA15A",  # Orange
        "#19D3F3",  # Cyan
        "#FF6692",  # Pink
        "#B6E880",  # Light green
        "#FF97FF",  # Light purple
        "#FECB52",  # Yellow
    ]

    COLORBLIND_SAFE = [
        "#000000",  # Black
        "#E69F00",  # Orange
        "#56B4E9",  # Sky blue
        "#009E73",  # Bluish green
        "#F0E442",  # Yellow
        "#0072B2",  # Blue
        "#D55E00",  # Vermillion
        "#CC79A7",  # Reddish purple
    ]

    # Trace roles in calibration plots
    ROLES = {
        "noisy": "#7F7F7F",
        "ideal": "#636EFA",
        "fitted": "#EF553B",
        "loss": "#00CC96",
    }

    @staticmethod
    def get_colors(scheme: str = "plotly", n_colors: Optional[int] = None) -> List[str]:
        """
        Get color palette by name.

        Parameters
        ----------
        scheme : str
            'plotly' or 'colorblind_safe' (alias 'wong')
        n_colors : Optional[int]
            Number of colors needed; cycles through the palette if larger

        Raises
        ------
        ValueError
            If scheme name is not recognized
        """
        scheme_lower = scheme.lower().replace("-", "_").replace(" ", "_")

        if scheme_lower == "plotly":
            palette = ColorSchemes.PLOTLY
        elif scheme_lower in ["colorblind_safe", "wong"]:
            palette = ColorSchemes.COLORBLIND_SAFE
        else:
            raise ValueError(
                f"Unknown color scheme '{scheme}'. Available: plotly, colorblind_safe"
            )

        if n_colors is None:
            return palette.copy()
        return [palette[i % len(palette)] for i in range(n_colors)]


class PlotThemes:
    """
    Complete plotting theme configurations.

    Examples
    --------
    >>> fig = PlotThemes.apply_theme(fig, theme='dark')
    >>> custom = dict(PlotThemes.DEFAULT, font_size=16)
    >>> fig = PlotThemes.apply_theme(fig, theme=custom)
    """

    DEFAULT = {
        "color_scheme": "plotly",
        "template": "plotly_white",
        "font_family": "Arial, sans-serif",
        "font_size": 12,
        "line_width": 2,
    }

    PUBLICATION = {
        "color_scheme": "colorblind_safe",
        "template": "simple_white",
        "font_family": "Times New Roman, serif",
        "font_size": 14,
        "line_width": 2.5,
        "showlegend": True,
    }

    DARK = {
        "color_scheme": "plotly",
        "template": "plotly_dark",
        "font_family": "Arial, sans-serif",
        "font_size": 12,
        "line_width": 2,
    }

    @staticmethod
    def get_theme(theme: Union[str, Dict]) -> Dict:
        """Resolve a theme name or dict to a theme dict."""
        if isinstance(theme, dict):
            return theme
        if not isinstance(theme, str):
            raise TypeError("theme must be str or dict")

        themes = {
            "default": PlotThemes.DEFAULT,
            "publication": PlotThemes.PUBLICATION,
            "dark": PlotThemes.DARK,
        }
        try:
            return themes[theme.lower()]
        except KeyError:
            raise ValueError(
                f"Unknown theme '{theme}'. Available: {', '.join(themes)}"
            ) from None

    @staticmethod
    def apply_theme(fig: go.Figure, theme: Union[str, Dict] = "default") -> go.Figure:
        """
        Apply template, fonts and line widths to a figure.

        Markers (noisy data) keep their size; only line traces are
        restyled.
        """
        config = PlotThemes.get_theme(theme)

        if "template" in config:
            fig.update_layout(template=config["template"])

        font = {}
        if "font_family" in config:
            font["family"] = config["font_family"]
        if "font_size" in config:
            font["size"] = config["font_size"]
        if font:
            fig.update_layout(font=font)

        if "showlegend" in config:
            fig.update_layout(showlegend=config["showlegend"])

        if "line_width" in config:
            for trace in fig.data:
                if getattr(trace, "mode", None) == "lines":
                    trace.line.width = config["line_width"]

        return fig


def hex_to_rgba(hex_color: str, alpha: float = 1.0) -> str:
    """
    Convert a hex color to a Plotly ``rgba(...)`` string.

    Examples
    --------
    >>> hex_to_rgba('#FF0000', 0.5)
    'rgba(255, 0, 0, 0.5)'
    """
    hex_color = hex_color.lstrip("#")
    r, g, b = (int(hex_color[i : i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r}, {g}, {b}, {alpha})"


__all__ = [
    "ColorSchemes",
    "PlotThemes",
    "hex_to_rgba",
]
