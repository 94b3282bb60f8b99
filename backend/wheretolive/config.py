from pydantic import field_validator
from pydantic_settings import BaseSettings

from wheretolive.services.departure_times import DepartureSlot
from wheretolive.services.errors import ConfigurationError


class Settings(BaseSettings):
    # Google Maps
    google_maps_api_key: str = ""
    google_maps_base_url: str = "https://maps.googleapis.com/maps/api"
    google_maps_timeout_seconds: float = 30.0
    google_maps_max_concurrency: int = 10
    google_maps_max_elements: int = 100  # origins × destinations per request
    google_maps_max_dimension: int = 25  # origins or destinations per request

    # Departure sampling ("<weekday> HH:MM", local to the search area)
    reference_departure: str = "mon 12:00"
    transit_departure_samples: list[str] = [
        "mon 07:00",  # morning commute
        "tue 09:30",
        "sat 16:00",  # weekend leisure
        "sun 20:30",
    ]

    # Mock mode (no API key)
    mock_timezone: str = "Europe/London"

    # Ranking
    rank_timeout_seconds: float = 90.0

    # CORS
    cors_origins: str = "*"

    @field_validator("reference_departure")
    @classmethod
    def check_reference_departure(cls, value: str) -> str:
        _parse_slot(value)
        return value

    @field_validator("transit_departure_samples")
    @classmethod
    def check_transit_departure_samples(cls, value: list[str]) -> list[str]:
        for slot in value:
            _parse_slot(slot)
        return value

    @property
    def reference_slot(self) -> DepartureSlot:
        return DepartureSlot.parse(self.reference_departure)

    @property
    def transit_slots(self) -> list[DepartureSlot]:
        return [DepartureSlot.parse(s) for s in self.transit_departure_samples]

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def _parse_slot(value: str) -> DepartureSlot:
    try:
        return DepartureSlot.parse(value)
    except ConfigurationError as e:
        # pydantic reports ValueError as a validation error
        raise ValueError(str(e)) from e


settings = Settings()
