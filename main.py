import logging
import os
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database

from auth import verify_admin
from database import get_db
from errors import BookingError, LinkInconsistencyError, ValidationError
from schemas import Hotel, HotelRecord, HotelType, HotelUpdate, Room, RoomRecord, RoomUpdate, TypeCount
from search import BookingFacade

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Hotel Booking API", version="1.0.0")

# CORS for the frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_facade(db: Database = Depends(get_db)) -> BookingFacade:
    return BookingFacade.from_database(db)


# ---------- Error translation ----------
@app.exception_handler(LinkInconsistencyError)
async def link_inconsistency_handler(request: Request, exc: LinkInconsistencyError):
    # The primary write went through; report it alongside the failed link.
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "linked": False,
            "hotel_id": exc.hotel_id,
            "room_id": exc.room_id,
            "result": jsonable_encoder(exc.outcome),
        },
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "errors": exc.errors})


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# ---------- Hotels ----------
hotels = APIRouter(prefix="/api/hotels", tags=["hotels"])

TYPE_LABELS = {
    HotelType.HOTEL.value: "hotel",
    HotelType.APARTMENT.value: "apartments",
    HotelType.RESORT.value: "resorts",
    HotelType.VILLA.value: "villas",
    HotelType.CABIN.value: "cabins",
}


@hotels.get("/countByCity", response_model=List[int])
def count_by_city(cities: str = Query(..., description="Comma separated city names"), facade: BookingFacade = Depends(get_facade)):
    return facade.count_by_city(cities.split(","))


@hotels.get("/countByType", response_model=List[TypeCount])
def count_by_type(facade: BookingFacade = Depends(get_facade)):
    counts = facade.count_by_type()
    return [TypeCount(type=TYPE_LABELS[t], count=n) for t, n in counts.items()]


@hotels.get("/room/{id}", response_model=List[Optional[RoomRecord]])
def get_hotel_rooms(id: str, facade: BookingFacade = Depends(get_facade)):
    return facade.rooms_for_hotel(id)


@hotels.post("", response_model=HotelRecord, dependencies=[Depends(verify_admin)])
def create_hotel(body: Hotel, facade: BookingFacade = Depends(get_facade)):
    return facade.create_hotel(body)


@hotels.put("/{id}", response_model=HotelRecord, dependencies=[Depends(verify_admin)])
def update_hotel(id: str, body: HotelUpdate, facade: BookingFacade = Depends(get_facade)):
    return facade.update_hotel(id, body)


@hotels.delete("/{id}", dependencies=[Depends(verify_admin)])
def delete_hotel(id: str, facade: BookingFacade = Depends(get_facade)):
    facade.delete_hotel(id)
    return "Hotel has been deleted"


@hotels.get("/{id}", response_model=HotelRecord)
def get_hotel(id: str, facade: BookingFacade = Depends(get_facade)):
    return facade.get_hotel(id)


@hotels.get("", response_model=List[HotelRecord])
def get_hotels(
    min: Optional[float] = Query(None, description="Lowest cheapestPrice, default 1"),
    max: Optional[float] = Query(None, description="Highest cheapestPrice, default 999"),
    limit: Optional[int] = Query(None, ge=0),
    name: Optional[str] = None,
    type: Optional[HotelType] = None,
    city: Optional[str] = None,
    featured: Optional[bool] = None,
    rating: Optional[float] = None,
    facade: BookingFacade = Depends(get_facade),
):
    filter = {"min": min, "max": max, "name": name, "type": type, "city": city, "featured": featured, "rating": rating}
    return facade.search_hotels({k: v for k, v in filter.items() if v is not None}, limit)


# ---------- Rooms ----------
rooms = APIRouter(prefix="/api/rooms", tags=["rooms"])


@rooms.post("/{hotel_id}", response_model=RoomRecord, dependencies=[Depends(verify_admin)])
def create_room(hotel_id: str, body: Room, facade: BookingFacade = Depends(get_facade)):
    return facade.create_room(hotel_id, body)


@rooms.put("/{id}", response_model=RoomRecord, dependencies=[Depends(verify_admin)])
def update_room(id: str, body: RoomUpdate, facade: BookingFacade = Depends(get_facade)):
    return facade.update_room(id, body)


@rooms.delete("/{id}/{hotel_id}", dependencies=[Depends(verify_admin)])
def delete_room(id: str, hotel_id: str, facade: BookingFacade = Depends(get_facade)):
    facade.delete_room(hotel_id, id)
    return "Room has been deleted"


@rooms.get("/{id}", response_model=RoomRecord)
def get_room(id: str, facade: BookingFacade = Depends(get_facade)):
    return facade.get_room(id)


@rooms.get("", response_model=List[RoomRecord])
def get_rooms(facade: BookingFacade = Depends(get_facade)):
    return facade.list_rooms()


app.include_router(hotels)
app.include_router(rooms)


# ---------- Routes ----------
@app.get("/test")
def test(db: Database = Depends(get_db)):
    # Simple round-trip to the DB
    return {"ok": True, "message": "Backend is running", "collections": db.list_collection_names()}


@app.get("/")
def root():
    return {"name": "Hotel Booking API", "status": "ok"}
