################################################################################
# File Name: mapimage.py
# Purpose/Description: Offline route map rendering for completed trips
# Author: Mileage Core Team
# Creation Date: 2026-10-08
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-08    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Route map images.

Draws a trip's point sequence onto a plain canvas with Pillow: no tiles and
no network, so it works offline at finalization time. The PNG path becomes
the trip's mapImageUri and the file hash feeds a report's mapHashes.

Projection is equirectangular around the route's mean latitude, which is
accurate enough at trip scale.

Usage:
    renderer = RouteMapRenderer(config)
    result = renderer.renderTrip(trip)
    print(result.path, result.imageHash)
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from PIL import Image, ImageDraw, ImageFont

from .integrity import hashFile
from .types import Coordinates, Trip

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = './data/maps'
DEFAULT_WIDTH = 640
DEFAULT_HEIGHT = 480
DEFAULT_PADDING = 32

BACKGROUND_COLOR = (245, 243, 238)
GRID_COLOR = (225, 222, 214)
ROUTE_COLOR = (33, 102, 172)
START_COLOR = (26, 152, 80)
END_COLOR = (215, 48, 39)
TEXT_COLOR = (60, 60, 60)

ROUTE_WIDTH = 4
MARKER_RADIUS = 7
GRID_STEPS = 4


class MapRenderError(Exception):
    """Route image could not be produced."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


@dataclass
class MapImageResult:
    """
    A rendered route image.

    Attributes:
        path: PNG file location
        imageHash: SHA-256 of the PNG bytes
        width / height: Image size in pixels
    """
    path: str
    imageHash: str
    width: int
    height: int

    def toDict(self) -> dict[str, Any]:
        return {
            'path': self.path,
            'imageHash': self.imageHash,
            'width': self.width,
            'height': self.height,
        }


class RouteMapRenderer:
    """
    Renders trip routes to PNG files.

    Attributes:
        outputDir: Directory receiving <tripId>.png files
        width / height: Canvas size
    """

    def __init__(self, config: dict[str, Any] | None = None):
        mapsConfig = (config or {}).get('maps', {})
        self.outputDir = Path(mapsConfig.get('outputDir', DEFAULT_OUTPUT_DIR))
        self.width = int(mapsConfig.get('width', DEFAULT_WIDTH))
        self.height = int(mapsConfig.get('height', DEFAULT_HEIGHT))
        self.padding = int(mapsConfig.get('padding', DEFAULT_PADDING))

    def renderTrip(self, trip: Trip) -> MapImageResult:
        """
        Draw the trip's route and save it as <outputDir>/<tripId>.png.

        Raises:
            MapRenderError: If the trip has no points or the file cannot be written
        """
        if not trip.points:
            raise MapRenderError("Trip has no points to draw", details={'tripId': trip.id})

        path = self.outputDir / f"{trip.id}.png"
        image = self.renderPoints(trip.points, caption=f"{trip.distanceMiles:.2f} mi")

        try:
            self.outputDir.mkdir(parents=True, exist_ok=True)
            image.save(path, format='PNG')
        except OSError as e:
            raise MapRenderError(
                f"Failed to write map image: {e}",
                details={'tripId': trip.id, 'path': str(path)}
            ) from e

        result = MapImageResult(
            path=str(path),
            imageHash=hashFile(path),
            width=self.width,
            height=self.height,
        )
        logger.info(f"Route map rendered | tripId={trip.id} | points={len(trip.points)}")
        return result

    def renderPoints(self, points: list[Coordinates], caption: str | None = None) -> Image.Image:
        """Draw points onto a new RGB image."""
        image = Image.new('RGB', (self.width, self.height), BACKGROUND_COLOR)
        draw = ImageDraw.Draw(image)

        self._drawGrid(draw)

        pixels = self._project(points)
        if len(pixels) > 1:
            draw.line(pixels, fill=ROUTE_COLOR, width=ROUTE_WIDTH, joint='curve')

        self._drawMarker(draw, pixels[0], START_COLOR)
        self._drawMarker(draw, pixels[-1], END_COLOR)

        if caption:
            draw.text(
                (self.padding // 2, self.height - self.padding + 8),
                caption,
                fill=TEXT_COLOR,
                font=ImageFont.load_default()
            )

        return image

    def _project(self, points: list[Coordinates]) -> list[tuple[float, float]]:
        meanLat = sum(p.lat for p in points) / len(points)
        lngScale = math.cos(math.radians(meanLat))

        xs = [p.lng * lngScale for p in points]
        ys = [p.lat for p in points]
        minX, maxX = min(xs), max(xs)
        minY, maxY = min(ys), max(ys)

        drawWidth = self.width - 2 * self.padding
        drawHeight = self.height - 2 * self.padding
        spanX = maxX - minX
        spanY = maxY - minY
        span = max(spanX, spanY)

        if span == 0:
            return [(self.width / 2, self.height / 2)] * len(points)

        scale = min(drawWidth / spanX if spanX else math.inf,
                    drawHeight / spanY if spanY else math.inf)
        offsetX = self.padding + (drawWidth - spanX * scale) / 2
        offsetY = self.padding + (drawHeight - spanY * scale) / 2

        # Image y grows downward, latitude grows northward
        return [
            (offsetX + (x - minX) * scale, offsetY + (maxY - y) * scale)
            for x, y in zip(xs, ys)
        ]

    def _drawGrid(self, draw: ImageDraw.ImageDraw) -> None:
        for step in range(1, GRID_STEPS):
            x = self.width * step / GRID_STEPS
            y = self.height * step / GRID_STEPS
            draw.line([(x, 0), (x, self.height)], fill=GRID_COLOR, width=1)
            draw.line([(0, y), (self.width, y)], fill=GRID_COLOR, width=1)

    def _drawMarker(
        self,
        draw: ImageDraw.ImageDraw,
        center: tuple[float, float],
        color: tuple[int, int, int]
    ) -> None:
        x, y = center
        draw.ellipse(
            [x - MARKER_RADIUS, y - MARKER_RADIUS, x + MARKER_RADIUS, y + MARKER_RADIUS],
            fill=color,
            outline=(255, 255, 255),
            width=2
        )
