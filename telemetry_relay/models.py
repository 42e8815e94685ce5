from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_validator


# one measurement; same shape on the udp hop and the http hop
class Message(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_count: int = Field(..., alias="totalCount", gt=0)
    seq_num: int = Field(..., alias="sequenceNumber", ge=1)
    value: float = Field(..., allow_inf_nan=False)

    @model_validator(mode="after")
    def _seq_in_range(self):
        if self.seq_num > self.total_count:
            raise ValueError(
                f"sequenceNumber {self.seq_num} is outside 1..{self.total_count}"
            )
        return self

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


# completeness summary for one closed batch
class BatchReport(BaseModel):
    sender: str
    expected: int
    received: int
    missing: List[int] = Field(default_factory=list)
    missing_count: int
    first_arrival: float | None = None
    last_arrival: float | None = None
    duration_ms: int | None = None
    complete: bool
