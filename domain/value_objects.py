"""Domain Value Objects"""
from pydantic import BaseModel, Field, validator
from datetime import date


class DateRange(BaseModel):
    """Value Object for a stay window"""
    check_in: date
    check_out: date

    @validator('check_out')
    def check_out_after_check_in(cls, v, values):
        if 'check_in' in values and v <= values['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def overlaps(self, check_in: date, check_out: date) -> bool:
        """Inclusive overlap: a stay ending on another's arrival day conflicts"""
        return check_in <= self.check_out and check_out >= self.check_in

    class Config:
        frozen = True


class GuestCount(BaseModel):
    """Value Object for room occupancy"""
    adults: int = Field(ge=1)
    children: int = Field(ge=0, default=0)

    class Config:
        frozen = True
