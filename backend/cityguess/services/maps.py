import base64
import io
import logging
from typing import Optional

import httpx
from fastapi import HTTPException, status
from PIL import Image, UnidentifiedImageError

from ..models.game import City

logger = logging.getLogger(__name__)

STATIC_MAP_URL = "https://maps.googleapis.com/maps/api/staticmap"
INTERACTIVE_MAP_URL = "https://maps.googleapis.com/maps/api/js"

# Google prints its attribution along the bottom of every static tile
WATERMARK_PIXELS = 20


def crop_bottom(image_bytes: bytes, pixels: int = WATERMARK_PIXELS) -> bytes:
    """
    Cut ``pixels`` rows off the bottom of an image.

    Args:
        image_bytes: Encoded image (any format Pillow reads)
        pixels: Rows to remove

    Returns:
        PNG bytes
    """
    with Image.open(io.BytesIO(image_bytes)) as img:
        width, height = img.size
        cropped = img.crop((0, 0, width, max(1, height - pixels)))
        out = io.BytesIO()
        cropped.save(out, format="PNG")
    return out.getvalue()


def to_data_url(image_bytes: bytes) -> str:
    """Encode PNG bytes so they can go straight into an <img src>."""
    return "data:image/png;base64," + base64.b64encode(image_bytes).decode("ascii")


class StaticMapClient:
    """Client for the Google Static Maps API."""

    def __init__(self, api_key: str, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def interactive_map_url(self) -> str:
        """URL of the clickable satellite map the player guesses on."""
        return f"{INTERACTIVE_MAP_URL}?key={self.api_key}&maptype=satellite&callback=initMap"

    async def _fetch(self, params: list) -> bytes:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(STATIC_MAP_URL, params=params + [("key", self.api_key)])
                response.raise_for_status()
                return response.content
            except httpx.HTTPStatusError as e:
                logger.warning("Static map request failed: %s", e.response.status_code)
                raise HTTPException(
                    status_code=status.HTTP_502_BAD_GATEWAY,
                    detail=f"Error fetching map image: {e.response.status_code}"
                )
            except httpx.RequestError as e:
                logger.warning("Cannot reach map provider: %s", e)
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail="Cannot reach map provider."
                )

    async def get_city_image(self, city: City) -> str:
        """
        Get a satellite tile centered on a city, attribution cropped off.

        Returns:
            data:image/png;base64 string
        """
        image_bytes = await self._fetch([
            ("size", "640x400"),
            ("maptype", "satellite"),
            ("center", f"{city.latitude},{city.longitude}"),
            ("zoom", "14"),
        ])
        try:
            cropped = crop_bottom(image_bytes)
        except UnidentifiedImageError:
            logger.warning("Map provider returned %s bytes that are not an image", len(image_bytes))
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Map provider returned an unreadable image."
            )
        return to_data_url(cropped)

    async def get_guess_map(self, city: City, guess_lat: float, guess_lng: float) -> str:
        """
        Get a satellite map with the guess, the real city and a line between them.

        Returns:
            data:image/png;base64 string
        """
        guess = f"{guess_lat},{guess_lng}"
        actual = f"{city.latitude},{city.longitude}"
        image_bytes = await self._fetch([
            ("maptype", "satellite"),
            ("size", "1000x600"),
            ("visible", guess),
            ("visible", actual),
            ("markers", f"color:blue|label:G|{guess}"),
            ("markers", f"color:red|{actual}"),
            ("path", f"color:0x0000ff|weight:5|{guess}|{actual}"),
        ])
        return to_data_url(image_bytes)
