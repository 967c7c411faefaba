"""
Telecom Aggregate Simulator

Generates realistic telecom footfall aggregates for development and demos.
Includes:
- A catalogue of Rajasthan tourist places with base daily demand
- A diurnal curve peaking in the early afternoon
- Carrier split and international breakdown by country
- Confidence scores, a share of which fall below the default threshold

Output is a flat polars frame in the batch loader's file format, with
``data_source`` set to SIMULATED.
"""

import json
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

import numpy as np
import polars as pl
from faker import Faker

from footfall.domain.models import DataSource

# =============================================================================
# CONFIGURATION
# =============================================================================

# (district, city, place, peak devices per window)
PLACES: List[Tuple[str, str, str, int]] = [
    ("Jaipur", "Jaipur", "Amber Fort", 22000),
    ("Jaipur", "Jaipur", "Hawa Mahal", 15000),
    ("Jaipur", "Jaipur", "City Palace", 11000),
    ("Jaipur", "Jaipur", "Jantar Mantar", 7000),
    ("Udaipur", "Udaipur", "City Palace Udaipur", 9000),
    ("Udaipur", "Udaipur", "Lake Pichola", 6000),
    ("Jodhpur", "Jodhpur", "Mehrangarh Fort", 12000),
    ("Jaisalmer", "Jaisalmer", "Jaisalmer Fort", 8000),
    ("Ajmer", "Pushkar", "Pushkar Lake", 5000),
    ("Sawai Madhopur", "Sawai Madhopur", "Ranthambore National Park", 3000),
    ("Sirohi", "Mount Abu", "Dilwara Temples", 4000),
]

CARRIERS = ["Jio", "Airtel", "Vi", "BSNL"]
CARRIER_SHARE = [0.45, 0.33, 0.17, 0.05]

VISITOR_COUNTRIES = ["US", "UK", "DE", "FR", "AU", "JP"]
COUNTRY_SHARE = [0.28, 0.22, 0.15, 0.15, 0.12, 0.08]

def diurnal_factor(hour: float) -> float:
    """Share of peak demand present at a given hour of day."""
    return 0.1 + 0.9 * float(np.exp(-((hour - 13.0) ** 2) / (2 * 3.5 ** 2)))


class TelecomSimulator:
    """
    Generate simulated telecom aggregates.

    Example:
        simulator = TelecomSimulator(seed=7)
        df = simulator.generate(datetime(2024, 5, 1), hours=24)
        df.write_csv("telecom.csv")
    """

    def __init__(
        self,
        state: str = "Rajasthan",
        places: Optional[List[Tuple[str, str, str, int]]] = None,
        seed: int = 42,
        low_confidence_rate: float = 0.1,
    ):
        self.state = state
        self.places = places or PLACES
        self.low_confidence_rate = low_confidence_rate
        self._rng = np.random.default_rng(seed)
        self._fake = Faker("en_IN")
        self._fake.seed_instance(seed)
        self._location_ids = {
            place: self._fake.bothify("LOC-####-??").upper()
            for _, _, place, _ in self.places
        }

    def _confidence(self) -> float:
        if self._rng.random() < self.low_confidence_rate:
            return round(float(self._rng.uniform(0.2, 0.5)), 2)
        return round(float(self._rng.beta(8, 2)), 2)

    def generate(
        self,
        start: datetime,
        hours: int = 24,
        window_minutes: int = 60,
    ) -> pl.DataFrame:
        """
        Generate one aggregate per place per window.

        Args:
            start: Start of the first window (naive UTC)
            hours: Number of hours to cover
            window_minutes: Window length

        Returns:
            Flat frame with JSON-encoded breakdown columns
        """
        windows = int(hours * 60 // window_minutes)
        rows = []

        for i in range(windows):
            window_start = start + timedelta(minutes=i * window_minutes)
            window_end = window_start + timedelta(minutes=window_minutes)
            factor = diurnal_factor(window_start.hour + window_start.minute / 60)

            for district, city, place, peak in self.places:
                total = int(self._rng.poisson(peak * factor))
                international_share = float(self._rng.uniform(0.05, 0.25))
                international = int(round(total * international_share))
                domestic = total - international

                by_country = self._rng.multinomial(international, COUNTRY_SHARE)
                by_carrier = self._rng.multinomial(domestic, CARRIER_SHARE)

                rows.append({
                    "window_start": window_start,
                    "window_end": window_end,
                    "window_minutes": window_minutes,
                    "state": self.state,
                    "district": district,
                    "city": city,
                    "tourist_place": place,
                    "location_id": self._location_ids[place],
                    "total_devices": total,
                    "domestic_devices": domestic,
                    "international_devices": international,
                    "international_breakdown": json.dumps(
                        {c: int(n) for c, n in zip(VISITOR_COUNTRIES, by_country) if n}
                    ),
                    "network_distribution": json.dumps(
                        {c: int(n) for c, n in zip(CARRIERS, by_carrier)}
                    ),
                    "confidence_score": self._confidence(),
                    "data_source": DataSource.SIMULATED.value,
                })

        return pl.DataFrame(rows, schema={
            "window_start": pl.Datetime("us"),
            "window_end": pl.Datetime("us"),
            "window_minutes": pl.Int64,
            "state": pl.String,
            "district": pl.String,
            "city": pl.String,
            "tourist_place": pl.String,
            "location_id": pl.String,
            "total_devices": pl.Int64,
            "domestic_devices": pl.Int64,
            "international_devices": pl.Int64,
            "international_breakdown": pl.String,
            "network_distribution": pl.String,
            "confidence_score": pl.Float64,
            "data_source": pl.String,
        })
