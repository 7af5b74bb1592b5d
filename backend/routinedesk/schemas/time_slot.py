import re

from pydantic import BaseModel, Field, field_validator, model_validator

from routinedesk.schemas.routine import DAY_NAMES

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class TimeSlotBase(BaseModel):
    label: str = Field(min_length=1, max_length=50)
    start_time: str
    end_time: str
    sort_order: int = Field(ge=0)
    is_break: bool = False
    applicable_days: list[int] = Field(default_factory=list, max_length=7)
    program_id: str | None = Field(default=None, min_length=1, max_length=36)
    semester: int | None = Field(default=None, ge=1, le=8)
    section: str | None = Field(default=None, min_length=1, max_length=20)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @field_validator("applicable_days")
    @classmethod
    def validate_days(cls, value: list[int]) -> list[int]:
        invalid = [day for day in value if day < 0 or day >= len(DAY_NAMES)]
        if invalid:
            raise ValueError("Day indices must be between 0 and 6")
        return sorted(set(value))

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeSlotBase":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("End time must be after start time")
        return self

    @property
    def duration_minutes(self) -> int:
        return parse_time_to_minutes(self.end_time) - parse_time_to_minutes(self.start_time)


class TimeSlotCreate(TimeSlotBase):
    id: int = Field(ge=0)


class TimeSlotOut(TimeSlotBase):
    id: int

    model_config = {"from_attributes": True}
