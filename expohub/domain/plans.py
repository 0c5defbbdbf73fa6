"""Plan decoded from a natural-language question: one closed type per intent."""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from expohub.domain.catalog import TOP_TYPES
from expohub.domain.filters import ShipmentFilters

MetricName = Literal["kilograms", "boxes"]
GranularityName = Literal["week", "month", "season"]


class PlanFilters(BaseModel):
    """Filters extracted by the router; accepts `season_ids` and `seasonIds` spellings."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    season_ids: List[int] = Field(default_factory=list, alias="seasonIds")
    exporter_ids: List[int] = Field(default_factory=list, alias="exporterIds")
    species_ids: List[int] = Field(default_factory=list, alias="speciesIds")
    variety_ids: List[int] = Field(default_factory=list, alias="varietyIds")
    market_ids: List[int] = Field(default_factory=list, alias="marketIds")
    country_ids: List[int] = Field(default_factory=list, alias="countryIds")
    region_ids: List[int] = Field(default_factory=list, alias="regionIds")
    transport_type_ids: List[int] = Field(default_factory=list, alias="transportTypeIds")
    arrival_port_ids: List[int] = Field(default_factory=list, alias="arrivalPortIds")
    week_from: Optional[str] = Field(None, alias="weekFrom")
    week_to: Optional[str] = Field(None, alias="weekTo")

    def to_shipment_filters(self, granularity: GranularityName = "week",
                            metric: MetricName = "kilograms") -> ShipmentFilters:
        return ShipmentFilters(
            season_ids=list(self.season_ids),
            exporter_ids=list(self.exporter_ids),
            species_ids=list(self.species_ids),
            variety_ids=list(self.variety_ids),
            market_ids=list(self.market_ids),
            country_ids=list(self.country_ids),
            region_ids=list(self.region_ids),
            transport_type_ids=list(self.transport_type_ids),
            arrival_port_ids=list(self.arrival_port_ids),
            week_from=self.week_from,
            week_to=self.week_to,
            granularity=granularity,
            metric=metric,
        )


class _PlanParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    metric: MetricName = "kilograms"


class KpisParams(_PlanParams):
    pass


class TimeseriesParams(_PlanParams):
    granularity: GranularityName = "week"


class TopsParams(_PlanParams):
    top_type: str = Field("exporters", alias="topType")
    top_n: int = Field(5, alias="topN", ge=1, le=100)

    @field_validator("top_type")
    @classmethod
    def _known_top_type(cls, v: str) -> str:
        if v not in TOP_TYPES:
            raise ValueError(f"Unknown top type: {v}")
        return v


class RankingsParams(_PlanParams):
    top_n: int = Field(10, alias="topN", ge=1, le=100)


class SearchParams(_PlanParams):
    search_term: str = Field(..., min_length=1)


class _BasePlan(BaseModel):
    model_config = ConfigDict(extra="ignore")

    filters: PlanFilters = Field(default_factory=PlanFilters)

    def shipment_filters(self) -> ShipmentFilters:
        granularity = getattr(self.params, "granularity", "week")
        return self.filters.to_shipment_filters(granularity, self.params.metric)

    def to_payload(self) -> dict:
        """Wire form returned to the UI (`{intent, filters, params}`)."""
        return {
            "intent": self.intent,
            "filters": {k: v for k, v in self.filters.model_dump().items() if v},
            "params": self.params.model_dump(by_alias=True),
        }


class KpisPlan(_BasePlan):
    intent: Literal["kpis"] = "kpis"
    params: KpisParams = Field(default_factory=KpisParams)


class TimeseriesPlan(_BasePlan):
    intent: Literal["timeseries"] = "timeseries"
    params: TimeseriesParams = Field(default_factory=TimeseriesParams)


class TopsPlan(_BasePlan):
    intent: Literal["tops"] = "tops"
    params: TopsParams = Field(default_factory=TopsParams)


class RankingsPlan(_BasePlan):
    intent: Literal["rankings"] = "rankings"
    params: RankingsParams = Field(default_factory=RankingsParams)


class SearchPlan(_BasePlan):
    intent: Literal["search"] = "search"
    params: SearchParams


Plan = Annotated[
    Union[KpisPlan, TimeseriesPlan, TopsPlan, RankingsPlan, SearchPlan],
    Field(discriminator="intent"),
]

plan_adapter: TypeAdapter[Plan] = TypeAdapter(Plan)
