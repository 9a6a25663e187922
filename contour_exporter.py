"""
Contour map export.
Writes contour polylines as SVG paths or DXF LWPOLYLINE entities.
"""

import colorsys
import logging
from pathlib import Path
from typing import Optional, Tuple

import ezdxf
import svgwrite
from ezdxf import units

from config import ExportConfig
from models import Bounds, ContourMap, Point

logger = logging.getLogger(__name__)


def normalize_point(point: Point, bounds: Bounds, width: float, height: float,
                    flip_y: bool = True) -> Tuple[float, float]:
    """
    Map a coordinate into a width x height viewport.

    ((coord - min) / (max - min)) * dimension, with y flipped for top-down
    image coordinates.
    """
    x = ((point.x - bounds.min_x) / bounds.width) * width
    y = ((point.y - bounds.min_y) / bounds.height) * height
    if flip_y:
        y = height - y
    return x, y


def elevation_color(normalized: float) -> str:
    """Blue (low) to red (high) ramp as a hex color; hue = (1 - normalized) * 240."""
    hue = (1.0 - max(0.0, min(1.0, normalized))) * 240.0
    r, g, b = colorsys.hls_to_rgb(hue / 360.0, 0.5, 0.7)
    return '#{:02x}{:02x}{:02x}'.format(round(r * 255), round(g * 255), round(b * 255))


class ContourExporter:
    """
    Render a contour map for vector output.

    Example:
        exporter = ContourExporter(bounds)
        exporter.save(contours, 'contours.svg')
    """

    def __init__(self, bounds: Bounds, config: Optional[ExportConfig] = None):
        self.bounds = bounds
        self.config = config or ExportConfig()
        self.width = self.config.width
        # Preserve aspect ratio
        self.height = self.width * (bounds.height / bounds.width)

    def _normalized_level(self, contours: ContourMap, level: float) -> float:
        levels = contours.levels()
        span = levels[-1] - levels[0] if levels else 0.0
        return (level - levels[0]) / span if span > 0 else 0.0

    def _format_level(self, level: float) -> str:
        return f"{level:g}"

    def path_data(self, line) -> str:
        """SVG path 'd' attribute for one polyline."""
        decimals = self.config.decimals
        parts = []
        for index, point in enumerate(line):
            x, y = normalize_point(point, self.bounds, self.width, self.height)
            parts.append(f"{'M' if index == 0 else 'L'}{x:.{decimals}f},{y:.{decimals}f}")
        return ' '.join(parts)

    def build_svg(self, contours: ContourMap, filename: str = 'contour-map.svg') -> svgwrite.Drawing:
        dwg = svgwrite.Drawing(filename, size=(f"{self.width:g}", f"{self.height:g}"),
                               profile='full', debug=False)
        dwg.add(dwg.rect(insert=(0, 0), size=('100%', '100%'), fill='white'))
        group = dwg.g(id='contours')

        for level, lines in contours.items():
            color = elevation_color(self._normalized_level(contours, level))
            for line in lines:
                if len(line) < 2:
                    continue
                path = dwg.path(d=self.path_data(line), stroke=color, fill='none',
                                stroke_width=self.config.stroke_width, opacity=self.config.opacity)
                path['data-elevation'] = self._format_level(level)
                group.add(path)

        dwg.add(group)
        return dwg

    def to_svg_string(self, contours: ContourMap) -> str:
        return self.build_svg(contours).tostring()

    def save_svg(self, contours: ContourMap, filepath) -> str:
        output_path = Path(filepath)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.build_svg(contours, str(output_path)).save()
        logger.info(f"Wrote {contours.polyline_count()} contour paths to {output_path}")
        return str(output_path.absolute())

    def build_dxf(self, contours: ContourMap):
        """DXF document with one layer per level; y is not flipped (DXF is y-up)."""
        doc = ezdxf.new('R2010')
        doc.units = units.MM
        msp = doc.modelspace()

        for level, lines in contours.items():
            layer = f"CONTOUR_{self._format_level(level).replace('.', '_').replace('-', 'M')}"
            if layer not in doc.layers:
                # ACI colors 1-6 cycle through red, yellow, green, cyan, blue, magenta
                doc.layers.add(layer, color=1 + int(self._normalized_level(contours, level) * 5))
            for line in lines:
                if len(line) < 2:
                    continue
                vertices = [normalize_point(p, self.bounds, self.width, self.height, flip_y=False)
                            for p in line]
                msp.add_lwpolyline(vertices, dxfattribs={'layer': layer, 'elevation': level})
        return doc

    def save_dxf(self, contours: ContourMap, filepath) -> str:
        output_path = Path(filepath)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.build_dxf(contours).saveas(str(output_path))
        logger.info(f"Wrote {contours.polyline_count()} contour polylines to {output_path}")
        return str(output_path.absolute())

    def save(self, contours: ContourMap, filepath) -> str:
        """Save by file extension (.svg or .dxf)."""
        suffix = Path(filepath).suffix.lower()
        if suffix == '.svg':
            return self.save_svg(contours, filepath)
        if suffix == '.dxf':
            return self.save_dxf(contours, filepath)
        raise ValueError(f"Unsupported export format '{suffix}', expected .svg or .dxf")
