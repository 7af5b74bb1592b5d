from pydantic import BaseModel, EmailStr, Field, field_validator


class UnavailableSlot(BaseModel):
    day_index: int = Field(ge=0, le=6)
    slot_index: int = Field(ge=0)
    reason: str = Field(default="Unavailable", max_length=200)


class TeacherBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    short_name: str = Field(min_length=1, max_length=20)
    email: EmailStr | None = None
    department: str | None = Field(default=None, max_length=200)
    available_days: list[int] = Field(default_factory=list, max_length=7)
    unavailable_slots: list[UnavailableSlot] = Field(default_factory=list, max_length=60)

    @field_validator("short_name")
    @classmethod
    def normalize_short_name(cls, value: str) -> str:
        trimmed = value.strip().upper()
        if not trimmed:
            raise ValueError("Short name cannot be empty")
        return trimmed

    @field_validator("available_days")
    @classmethod
    def validate_days(cls, value: list[int]) -> list[int]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("Day indices must be between 0 and 6")
        return sorted(set(value))


class TeacherCreate(TeacherBase):
    pass


class TeacherAvailabilityUpdate(BaseModel):
    available_days: list[int] | None = Field(default=None, max_length=7)
    unavailable_slots: list[UnavailableSlot] | None = Field(default=None, max_length=60)


class TeacherOut(TeacherBase):
    id: str
    is_active: bool = True

    model_config = {"from_attributes": True}

    def is_available(self, day_index: int) -> bool:
        return not self.available_days or day_index in self.available_days

    def blocked_reason(self, day_index: int, slot_index: int) -> str | None:
        for blocked in self.unavailable_slots:
            if blocked.day_index == day_index and blocked.slot_index == slot_index:
                return blocked.reason
        return None
