from pydantic import BaseModel, Field

from wheretolive.services.journey_types import TravelMode


class ImportantPlace(BaseModel):
    id: str = Field(..., min_length=1)
    visits_per_month: float = Field(..., ge=0, allow_inf_nan=False)


class LatLng(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class RankPlacesToLiveRequest(BaseModel):
    places_to_live: list[str]
    important_places: list[ImportantPlace]
    lat_lng: LatLng | None = None
    travel_modes: list[TravelMode] | None = None


class JourneySummary(BaseModel):
    destination_id: str
    success: bool
    travel_mode: TravelMode
    travel_time_seconds: float | None
    visits_per_month: float
    monthly_travel_time_seconds: float | None


class PlaceRankSummary(BaseModel):
    candidate_id: str
    scored: bool
    total_monthly_cost: float | None
    per_destination_breakdown: list[JourneySummary]


class RankPlacesToLiveResponse(BaseModel):
    timezone: str
    travel_modes: list[TravelMode]
    search_time_ms: int
    rankings: list[PlaceRankSummary]
