"""
Search and booking facade.

Stateless composition of the hotel and room repositories. The HTTP layer
talks only to this class.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from pymongo.database import Database

from database import DocumentStore
from repositories import HOTEL_COLLECTION, ROOM_COLLECTION, HotelRepository, RoomRepository
from schemas import HotelRecord, RoomRecord


class BookingFacade:
    def __init__(self, hotels: HotelRepository, rooms: RoomRepository):
        self.hotels = hotels
        self.rooms = rooms

    @classmethod
    def from_database(cls, database: Database) -> "BookingFacade":
        hotel_store = DocumentStore(database, HOTEL_COLLECTION)
        room_store = DocumentStore(database, ROOM_COLLECTION)
        rooms = RoomRepository(room_store, hotel_store)
        return cls(HotelRepository(hotel_store, rooms), rooms)

    # ---------- Read paths ----------
    def search_hotels(self, filter: Optional[Mapping[str, Any]] = None, limit: Optional[int] = None) -> List[HotelRecord]:
        return self.hotels.list_hotels(filter, limit)

    def rooms_for_hotel(self, hotel_id: str) -> List[Optional[RoomRecord]]:
        return self.hotels.get_rooms_for_hotel(hotel_id)

    def count_by_city(self, cities: Sequence[str]) -> List[int]:
        return self.hotels.count_by_city(cities)

    def count_by_type(self) -> Dict[str, int]:
        return self.hotels.count_by_type()

    # ---------- Hotel commands ----------
    def create_hotel(self, attributes) -> HotelRecord:
        return self.hotels.create_hotel(attributes)

    def get_hotel(self, hotel_id: str) -> HotelRecord:
        return self.hotels.get_hotel(hotel_id)

    def update_hotel(self, hotel_id: str, partial) -> HotelRecord:
        return self.hotels.update_hotel(hotel_id, partial)

    def delete_hotel(self, hotel_id: str) -> None:
        self.hotels.delete_hotel(hotel_id)

    # ---------- Room commands ----------
    def create_room(self, hotel_id: str, attributes) -> RoomRecord:
        return self.rooms.create_room(hotel_id, attributes)

    def get_room(self, room_id: str) -> RoomRecord:
        return self.rooms.get_room(room_id)

    def list_rooms(self) -> List[RoomRecord]:
        return self.rooms.list_rooms()

    def update_room(self, room_id: str, partial) -> RoomRecord:
        return self.rooms.update_room(room_id, partial)

    def delete_room(self, hotel_id: str, room_id: str) -> None:
        self.rooms.delete_room(hotel_id, room_id)
