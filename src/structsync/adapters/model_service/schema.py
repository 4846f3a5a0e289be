"""Pydantic models describing the model service payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ModelServiceBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ReturnCodeResponse(ModelServiceBaseModel):
    """Write calls answer with the model's integer return code; zero means success."""

    ret: int

    @property
    def ok(self) -> bool:
        return self.ret == 0


class FrameNamesResponse(ModelServiceBaseModel):
    names: list[str] = Field(default_factory=list)

    @field_validator("names", mode="after")
    @classmethod
    def _drop_blank(cls, value: list[str]) -> list[str]:
        return [name.strip() for name in value if name and name.strip()]


class FramePointsResponse(ModelServiceBaseModel):
    ret: int = 0
    point_i: str | None = Field(default=None, alias="pointI")
    point_j: str | None = Field(default=None, alias="pointJ")


class CoordinatesResponse(ModelServiceBaseModel):
    ret: int = 0
    x: float
    y: float
    z: float


class CoordinatesBody(ModelServiceBaseModel):
    x: float
    y: float
    z: float


class LockStatusResponse(ModelServiceBaseModel):
    locked: bool


class LockBody(ModelServiceBaseModel):
    locked: bool


class DistributedLoadBody(ModelServiceBaseModel):
    """Body for ``POST /frames/{name}/loads/distributed``; distances are relative."""

    load_pattern: str = Field(alias="loadPattern")
    load_type: int = Field(alias="loadType")
    direction: int
    dist1: float
    dist2: float
    value1: float
    value2: float
    coordinate_system: str = Field(alias="coordinateSystem")
    relative_distances: bool = Field(default=True, alias="relativeDistances")
    replace: bool = True
