"""
Hotel and room repositories.

A room belongs to a hotel iff the hotel's ``rooms`` list holds the room id.
Room documents carry no back-reference, so the two repositories keep that
list in step: room creation appends, room deletion removes. The two writes
are independent; a failed link write is raised as LinkInconsistencyError
after the primary write has already happened.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from database import DocumentStore
from errors import LinkInconsistencyError, NotFound, PersistenceError, ValidationError
from schemas import (
    Hotel,
    HotelFilter,
    HotelRecord,
    HotelType,
    HotelUpdate,
    Room,
    RoomRecord,
    RoomUpdate,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

HOTEL_COLLECTION = "hotel"
ROOM_COLLECTION = "room"


def validate(model: Type[M], data: Union[M, Mapping[str, Any]]) -> M:
    """Coerce a payload into ``model``, raising our ValidationError on bad input."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        raise ValidationError(f"Invalid {model.__name__} payload", errors=errors) from e


def changed_fields(update: BaseModel) -> Dict[str, Any]:
    return update.model_dump(exclude_unset=True)


class RoomRepository:
    def __init__(self, rooms: DocumentStore, hotels: DocumentStore):
        self.rooms = rooms
        self.hotels = hotels

    def get_room(self, id: str) -> RoomRecord:
        doc = self.rooms.find_by_id(id)
        if doc is None:
            raise NotFound("Room", id)
        return RoomRecord.model_validate(doc)

    def get_rooms(self, ids: Sequence[str]) -> List[Optional[RoomRecord]]:
        """Resolve ``ids`` in order; ids with no stored room come back as None."""
        found = self.rooms.find_by_ids(ids)
        return [RoomRecord.model_validate(found[i]) if i in found else None for i in ids]

    def list_rooms(self) -> List[RoomRecord]:
        return [RoomRecord.model_validate(d) for d in self.rooms.find_many({})]

    def create_room(self, hotel_id: str, attributes: Union[Room, Mapping[str, Any]]) -> RoomRecord:
        room = validate(Room, attributes)
        if self.hotels.find_by_id(hotel_id) is None:
            raise NotFound("Hotel", hotel_id)

        created = RoomRecord.model_validate(self.rooms.insert(room.model_dump()))
        logger.info("Created room %s for hotel %s", created.id, hotel_id)

        self._link(hotel_id, created.id, self.hotels.add_to_set, created, "attach room to")
        return created

    def update_room(self, id: str, partial: Union[RoomUpdate, Mapping[str, Any]]) -> RoomRecord:
        fields = changed_fields(validate(RoomUpdate, partial))
        if not fields:
            return self.get_room(id)
        doc = self.rooms.update_by_id(id, fields)
        if doc is None:
            raise NotFound("Room", id)
        return RoomRecord.model_validate(doc)

    def delete_room(self, hotel_id: str, id: str) -> None:
        if not self.rooms.delete_by_id(id):
            raise NotFound("Room", id)
        logger.info("Deleted room %s", id)

        self._link(hotel_id, id, self.hotels.pull, "Room has been deleted", "detach room from")

    def _link(self, hotel_id: str, room_id: str, write, outcome: Any, action: str) -> None:
        """Run the secondary write on the hotel's ``rooms`` list and report failure."""
        try:
            linked = write(hotel_id, "rooms", room_id)
            reason = None if linked else "hotel no longer exists"
        except PersistenceError as e:
            linked, reason = False, e.detail
        if not linked:
            logger.warning(
                "Link inconsistency: could not %s hotel %s (room %s): %s",
                action, hotel_id, room_id, reason,
            )
            raise LinkInconsistencyError(
                f"Could not {action} hotel: {reason}", hotel_id, room_id, outcome
            )


class HotelRepository:
    def __init__(self, hotels: DocumentStore, rooms: RoomRepository):
        self.hotels = hotels
        self.rooms = rooms

    def create_hotel(self, attributes: Union[Hotel, Mapping[str, Any]]) -> HotelRecord:
        hotel = validate(Hotel, attributes)
        created = HotelRecord.model_validate(self.hotels.insert(hotel.model_dump()))
        logger.info("Created hotel %s (%s)", created.id, created.name)
        return created

    def get_hotel(self, id: str) -> HotelRecord:
        doc = self.hotels.find_by_id(id)
        if doc is None:
            raise NotFound("Hotel", id)
        return HotelRecord.model_validate(doc)

    def list_hotels(
        self,
        filter: Union[HotelFilter, Mapping[str, Any], None] = None,
        limit: Optional[int] = None,
    ) -> List[HotelRecord]:
        criteria = validate(HotelFilter, filter or {})
        docs = self.hotels.find_many(criteria.to_query(), limit or 0)
        return [HotelRecord.model_validate(d) for d in docs]

    def update_hotel(self, id: str, partial: Union[HotelUpdate, Mapping[str, Any]]) -> HotelRecord:
        fields = changed_fields(validate(HotelUpdate, partial))
        if not fields:
            return self.get_hotel(id)
        doc = self.hotels.update_by_id(id, fields)
        if doc is None:
            raise NotFound("Hotel", id)
        return HotelRecord.model_validate(doc)

    def delete_hotel(self, id: str) -> None:
        # Rooms the hotel owned are left in place.
        if not self.hotels.delete_by_id(id):
            raise NotFound("Hotel", id)
        logger.info("Deleted hotel %s", id)

    def count_by_city(self, cities: Sequence[str]) -> List[int]:
        return [self.hotels.count({"city": city}) for city in cities]

    def count_by_type(self) -> Dict[str, int]:
        return {t.value: self.hotels.count({"type": t.value}) for t in HotelType}

    def get_rooms_for_hotel(self, id: str) -> List[Optional[RoomRecord]]:
        hotel = self.get_hotel(id)
        rooms = self.rooms.get_rooms(hotel.rooms)
        for room_id, room in zip(hotel.rooms, rooms):
            if room is None:
                logger.warning("Link inconsistency: hotel %s lists missing room %s", id, room_id)
        return rooms
