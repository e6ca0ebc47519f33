import json
import logging
import random
from pathlib import Path
from typing import Dict, Optional, Union

from ..exceptions import CityNotFound
from ..models.game import City

logger = logging.getLogger(__name__)

DEFAULT_CITY_FILE = Path(__file__).resolve().parent.parent / "resources" / "cities.json"


class CityCatalogue:
    """In-memory list of playable cities, keyed by their population rank."""

    def __init__(self, cities: Dict[str, City]):
        if not cities:
            raise ValueError("City catalogue is empty")
        self._cities = cities

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]] = None) -> "CityCatalogue":
        """
        Load cities from a JSON array of city objects.

        Args:
            path: JSON file, defaults to the bundled resources/cities.json

        Returns:
            CityCatalogue
        """
        path = Path(path) if path else DEFAULT_CITY_FILE
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)

        cities = {}
        for item in raw:
            city = City(**item)
            cities[city.rank] = city

        logger.info("Loaded %d cities from %s", len(cities), path)
        return cls(cities)

    def __len__(self) -> int:
        return len(self._cities)

    def resolve(self, city_id: str) -> City:
        """Get the city with the given id (its rank as a string)."""
        city = self._cities.get(str(city_id).strip())
        if city is None:
            raise CityNotFound(f"City {city_id!r} does not exist.")
        return city

    def random_city(self) -> City:
        return random.choice(list(self._cities.values()))
