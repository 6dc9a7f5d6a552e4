"""Pydantic DTOs for reactor telemetry."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReactorSnapshot(BaseModel):
    """One sample of reactor state as posted by the controller agent.

    Wire names are camelCase. Measurement fields accept JSON integers or
    floats and are held as ``float``; the counters (fuel, waste, computer id)
    only accept integers. Missing fields take the zero value and unknown
    fields are dropped, and a JSON null leaves the zero value in place.
    NaN and Infinity are rejected so every snapshot re-encodes as valid JSON.
    """

    model_config = ConfigDict(
        allow_inf_nan=False,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
        strict=True,
    )

    status: str = ""
    energy_stored: float = Field(default=0.0, alias="energyStored")
    energy_produced_last_tick: float = Field(default=0.0, alias="energyProducedLastTick")
    fuel_temp: float = Field(default=0.0, alias="fuelTemp")
    casing_temp: float = Field(default=0.0, alias="casingTemp")
    fuel_amount: int = Field(default=0, alias="fuelAmount")
    waste_amount: int = Field(default=0, alias="wasteAmount")
    fuel_consumed_last_tick: float = Field(default=0.0, alias="fuelConsumedLastTick")
    fuel_reactivity: float = Field(default=0.0, alias="fuelReactivity")
    computer_id: int = Field(default=0, alias="computerID")
    computer_label: str = Field(default="", alias="computerLabel")
    control_rod_insertion: float = Field(default=0.0, alias="controlRodInsertion")
    reactor_type: str = Field(default="", alias="reactorType")
    # Overwritten on ingest, so any integral client value is tolerated
    timestamp: int = Field(default=0, strict=False)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    def stamped(self, timestamp: int) -> "ReactorSnapshot":
        return self.model_copy(update={"timestamp": timestamp})

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
