from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum

DEFAULT_MIN_PRICE = 1
DEFAULT_MAX_PRICE = 999


def reject_nulls(update: BaseModel, nullable=()):
    """Refuse explicit nulls on fields a stored document must always have."""
    cleared = sorted(
        f for f in update.model_fields_set if getattr(update, f) is None and f not in nullable
    )
    if cleared:
        raise ValueError(f"{', '.join(cleared)} cannot be null")
    return update


class HotelType(str, Enum):
    HOTEL = "hotel"
    APARTMENT = "apartment"
    RESORT = "resort"
    VILLA = "villa"
    CABIN = "cabin"


# Hotel collection
class Hotel(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., description="Hotel name")
    type: HotelType = Field(..., description="hotel | apartment | resort | villa | cabin")
    city: str
    address: str
    distance: str = Field(..., description="Distance from the city centre, free text")
    photos: List[str] = Field(default_factory=list, description="Photo URLs in display order")
    title: str
    desc: str = Field(..., description="Long description")
    rating: Optional[float] = Field(None, ge=0, le=5, description="Average rating 0-5")
    rooms: List[str] = Field(default_factory=list, description="Ids of the rooms this hotel owns")
    cheapestPrice: float = Field(..., ge=0, description="Lowest nightly price, used by search")
    featured: bool = False


class HotelUpdate(BaseModel):
    """Editable hotel fields. ``rooms`` is maintained by room create/delete only."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    name: Optional[str] = None
    type: Optional[HotelType] = None
    city: Optional[str] = None
    address: Optional[str] = None
    distance: Optional[str] = None
    photos: Optional[List[str]] = None
    title: Optional[str] = None
    desc: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    cheapestPrice: Optional[float] = Field(None, ge=0)
    featured: Optional[bool] = None

    @model_validator(mode="after")
    def check_nulls(self):
        return reject_nulls(self, nullable=("rating",))


class HotelRecord(Hotel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: str = Field(..., alias="_id")
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class HotelFilter(BaseModel):
    """
    Hotel search criteria.

    Attribute fields match exactly. ``min``/``max`` (also accepted as
    ``minPrice``/``maxPrice``) bound ``cheapestPrice``
    inclusively and fall back to 1 and 999 only when not given.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, use_enum_values=True)

    name: Optional[str] = None
    type: Optional[HotelType] = None
    city: Optional[str] = None
    featured: Optional[bool] = None
    rating: Optional[float] = None
    min_price: Optional[float] = Field(None, validation_alias=AliasChoices("min", "minPrice", "min_price"))
    max_price: Optional[float] = Field(None, validation_alias=AliasChoices("max", "maxPrice", "max_price"))

    @model_validator(mode="after")
    def check_price_range(self):
        if self.price_range[0] > self.price_range[1]:
            raise ValueError("min must not be greater than max")
        return self

    @property
    def price_range(self):
        low = DEFAULT_MIN_PRICE if self.min_price is None else self.min_price
        high = DEFAULT_MAX_PRICE if self.max_price is None else self.max_price
        return low, high

    def to_query(self) -> Dict[str, Any]:
        query = self.model_dump(exclude_none=True, exclude={"min_price", "max_price"})
        low, high = self.price_range
        query["cheapestPrice"] = {"$gte": low, "$lte": high}
        return query


# Room collection
class RoomNumber(BaseModel):
    number: int
    unavailableDates: List[datetime] = Field(default_factory=list)


class Room(BaseModel):
    title: str
    price: float = Field(..., ge=0, description="Nightly price")
    maxPeople: int = Field(..., ge=1)
    desc: str
    roomNumbers: List[RoomNumber] = Field(default_factory=list, description="Physical rooms of this type")


class RoomUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    maxPeople: Optional[int] = Field(None, ge=1)
    desc: Optional[str] = None
    roomNumbers: Optional[List[RoomNumber]] = None

    @model_validator(mode="after")
    def check_nulls(self):
        return reject_nulls(self)


class RoomRecord(Room):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class TypeCount(BaseModel):
    type: str
    count: int
