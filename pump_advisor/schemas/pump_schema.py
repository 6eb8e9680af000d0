"""Pump catalog data models."""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

WATTS_PER_STAGE = 53


class CurvePoint(BaseModel):
    """One (head, flow) control point on a pump performance curve."""
    head: float = Field(ge=0)
    flow: float = Field(ge=0)


class PumpModel(BaseModel):
    """
    A catalog pump with its performance curve.

    Flat catalog entries (max flow / max head only) are normalized to the
    two-point curve ``[(0, max_flow), (max_head, max_flow)]`` so every model
    is selected through the same interpolation.
    """
    model: str = Field(min_length=1)
    stages: int = Field(ge=1)
    voltage: int = 48
    max_flow: float = Field(gt=0)
    max_head: float = Field(gt=0)
    curve: list[CurvePoint] = Field(default_factory=list)

    @model_validator(mode="after")
    def _normalize_curve(self) -> "PumpModel":
        if not self.curve:
            self.curve = [
                CurvePoint(head=0, flow=self.max_flow),
                CurvePoint(head=self.max_head, flow=self.max_flow),
            ]
            return self
        if self.curve[0].head != 0:
            raise ValueError(f"Curve for {self.model} must start at head 0")
        for prev, point in zip(self.curve, self.curve[1:]):
            if point.head < prev.head:
                raise ValueError(f"Curve heads for {self.model} must be non-decreasing")
        return self

    @property
    def power_required(self) -> int:
        return self.stages * WATTS_PER_STAGE

    def flow_at(self, head: float) -> float:
        """Deliverable flow (GPM) at ``head`` by linear interpolation.

        Returns 0.0 when ``head`` falls outside the curve.
        """
        for p1, p2 in zip(self.curve, self.curve[1:]):
            if p1.head <= head <= p2.head:
                span = p2.head - p1.head
                if span == 0:
                    return max(p1.flow, p2.flow)
                return p1.flow + (p2.flow - p1.flow) * (head - p1.head) / span
        return 0.0


class PumpSelection(BaseModel):
    """Selector output: the chosen model and its flow at the design head."""
    pump: PumpModel
    flow_at_tdh: float


def flat_pump(model: str, stages: int, max_flow: float, max_head: float,
              voltage: int = 48) -> PumpModel:
    """Build a model from flat max-flow/max-head figures."""
    return PumpModel(
        model=model, stages=stages, voltage=voltage,
        max_flow=max_flow, max_head=max_head,
    )


def parse_curve(raw: Optional[str]) -> list[CurvePoint]:
    """Parse ``"0:5.0;12.5:5.0;..."`` into curve points (empty for blank input)."""
    if not raw or not raw.strip():
        return []
    points = []
    for pair in raw.split(";"):
        pair = pair.strip()
        if not pair:
            continue
        head, _, flow = pair.partition(":")
        points.append(CurvePoint(head=float(head), flow=float(flow)))
    return points
