from concurrent.futures import ThreadPoolExecutor

from bson import ObjectId
import pytest

from errors import LinkInconsistencyError, NotFound, PersistenceError, ValidationError
from search import BookingFacade

TIMESTAMPS = {"createdAt", "updatedAt"}


def same_record(a, b):
    """Compare records ignoring timestamps, which the store truncates on write."""
    return a.model_dump(exclude=TIMESTAMPS) == b.model_dump(exclude=TIMESTAMPS)


@pytest.fixture
def hotel(facade: BookingFacade, hotel_data):
    return facade.create_hotel(hotel_data())


# ---------- Hotels ----------
def test_create_and_get_hotel(facade, hotel):
    fetched = facade.get_hotel(hotel.id)

    assert fetched.name == "Hotel Lumiere"
    assert fetched.type == "hotel"
    assert fetched.rooms == []


def test_create_hotel_rejects_bad_payload(facade, hotel_data):
    with pytest.raises(ValidationError):
        facade.create_hotel(hotel_data(cheapestPrice="cheap"))


def test_get_missing_hotel(facade):
    with pytest.raises(NotFound):
        facade.get_hotel(str(ObjectId()))
    with pytest.raises(NotFound):
        facade.get_hotel("not-an-id")


def test_update_hotel_replaces_named_fields_only(facade, hotel):
    updated = facade.update_hotel(hotel.id, {"city": "Lyon", "featured": True})

    assert updated.city == "Lyon"
    assert updated.featured is True
    assert updated.name == hotel.name


def test_empty_update_is_a_no_op(facade, hotel):
    before = facade.get_hotel(hotel.id)

    assert facade.update_hotel(hotel.id, {}) == before
    assert facade.get_hotel(hotel.id) == before


def test_update_hotel_can_clear_rating(facade, hotel):
    assert facade.update_hotel(hotel.id, {"rating": None}).rating is None
    assert facade.get_hotel(hotel.id).rating is None


def test_update_hotel_rejects_null_required_fields(facade, hotel):
    with pytest.raises(ValidationError):
        facade.update_hotel(hotel.id, {"name": None})

    assert facade.get_hotel(hotel.id).name == hotel.name


def test_update_hotel_cannot_overwrite_rooms(facade, hotel):
    with pytest.raises(ValidationError):
        facade.update_hotel(hotel.id, {"rooms": []})


def test_update_missing_hotel(facade):
    with pytest.raises(NotFound):
        facade.update_hotel(str(ObjectId()), {"city": "Lyon"})


def test_delete_hotel_leaves_rooms_behind(facade, hotel, room_data):
    room = facade.create_room(hotel.id, room_data())

    facade.delete_hotel(hotel.id)

    with pytest.raises(NotFound):
        facade.get_hotel(hotel.id)
    assert facade.get_room(room.id).id == room.id
    with pytest.raises(NotFound):
        facade.delete_hotel(hotel.id)


# ---------- Search ----------
def test_search_price_range_is_inclusive(facade, hotel_data):
    for price in (49, 50, 100, 150, 151):
        facade.create_hotel(hotel_data(name=f"H{price}", cheapestPrice=price))

    found = facade.search_hotels({"min": 50, "max": 150})

    assert sorted(h.cheapestPrice for h in found) == [50, 100, 150]


def test_search_accepts_min_price_and_max_price_keys(facade, hotel_data):
    for price in (49, 50, 150, 151):
        facade.create_hotel(hotel_data(name=f"H{price}", cheapestPrice=price))

    found = facade.search_hotels({"minPrice": 50, "maxPrice": 150})

    assert sorted(h.cheapestPrice for h in found) == [50, 150]


def test_search_default_range(facade, hotel_data):
    for price in (0, 1, 999, 1000):
        facade.create_hotel(hotel_data(name=f"H{price}", cheapestPrice=price))

    assert sorted(h.cheapestPrice for h in facade.search_hotels()) == [1, 999]
    assert sorted(h.cheapestPrice for h in facade.search_hotels({"min": 0})) == [0, 1, 999]


def test_search_by_attributes_and_limit(facade, hotel_data):
    facade.create_hotel(hotel_data(name="A", city="Paris", featured=True))
    facade.create_hotel(hotel_data(name="B", city="Paris", featured=True))
    facade.create_hotel(hotel_data(name="C", city="Paris"))
    facade.create_hotel(hotel_data(name="D", city="Tokyo", featured=True))

    featured = facade.search_hotels({"city": "Paris", "featured": True})
    assert [h.name for h in featured] == ["A", "B"]
    assert [h.name for h in facade.search_hotels({"featured": True}, limit=2)] == ["A", "B"]


def test_search_rejects_unknown_filter_keys(facade):
    with pytest.raises(ValidationError):
        facade.search_hotels({"rooms": {"$size": 0}})


def test_count_by_city_is_positional(facade, hotel_data):
    facade.create_hotel(hotel_data(city="Paris"))
    facade.create_hotel(hotel_data(city="Paris"))
    facade.create_hotel(hotel_data(city="Tokyo"))

    assert facade.count_by_city(["Paris", "Paris", "Tokyo", "Oslo"]) == [2, 2, 1, 0]


def test_count_by_type_on_empty_store(facade):
    assert facade.count_by_type() == {"hotel": 0, "apartment": 0, "resort": 0, "villa": 0, "cabin": 0}


def test_count_by_type(facade, hotel_data):
    facade.create_hotel(hotel_data(type="villa"))
    facade.create_hotel(hotel_data(type="villa"))
    facade.create_hotel(hotel_data(type="cabin"))

    counts = facade.count_by_type()
    assert counts["villa"] == 2
    assert counts["cabin"] == 1
    assert counts["hotel"] == 0


# ---------- Rooms ----------
def test_create_room_links_it_to_the_hotel(facade, hotel, room_data):
    room = facade.create_room(hotel.id, room_data())

    assert facade.get_hotel(hotel.id).rooms == [room.id]
    assert same_record(facade.get_room(room.id), room)
    assert [r.id for r in facade.rooms_for_hotel(hotel.id)] == [room.id]
    assert room.roomNumbers[0].number == 101


def test_two_room_creations_both_end_up_linked(facade, hotel, room_data):
    first = facade.create_room(hotel.id, room_data(title="Single"))
    second = facade.create_room(hotel.id, room_data(title="Suite"))

    assert facade.get_hotel(hotel.id).rooms == [first.id, second.id]


def test_concurrent_room_creations_are_all_linked(facade, hotel, room_data):
    with ThreadPoolExecutor(max_workers=8) as pool:
        futures = [pool.submit(facade.create_room, hotel.id, room_data(title=f"Room {i}")) for i in range(20)]
        created_ids = [f.result().id for f in futures]

    assert len(set(created_ids)) == 20
    assert sorted(facade.get_hotel(hotel.id).rooms) == sorted(created_ids)


def test_create_room_for_missing_hotel_persists_nothing(facade, room_data):
    with pytest.raises(NotFound):
        facade.create_room(str(ObjectId()), room_data())

    assert facade.list_rooms() == []


def test_create_room_reports_failed_link(facade, hotel, room_data, monkeypatch):
    def broken(*args):
        raise PersistenceError("Database error during update")

    monkeypatch.setattr(facade.rooms.hotels, "add_to_set", broken)

    with pytest.raises(LinkInconsistencyError) as exc_info:
        facade.create_room(hotel.id, room_data())

    created = exc_info.value.outcome
    assert exc_info.value.hotel_id == hotel.id
    assert same_record(facade.get_room(created.id), created)
    assert facade.get_hotel(hotel.id).rooms == []


def test_rooms_for_hotel_preserves_order(facade, db, hotel, room_data):
    ids = [facade.create_room(hotel.id, room_data(title=t)).id for t in ("A", "B", "C")]
    db["hotel"].update_one({"_id": ObjectId(hotel.id)}, {"$set": {"rooms": ids[::-1]}})

    assert [r.title for r in facade.rooms_for_hotel(hotel.id)] == ["C", "B", "A"]


def test_rooms_for_hotel_reports_dangling_ids(facade, db, hotel, room_data):
    ids = [facade.create_room(hotel.id, room_data(title=t)).id for t in ("A", "B", "C")]
    db["room"].delete_one({"_id": ObjectId(ids[1])})

    rooms = facade.rooms_for_hotel(hotel.id)

    assert len(rooms) == 3
    assert rooms[1] is None
    assert [rooms[0].title, rooms[2].title] == ["A", "C"]


def test_rooms_for_missing_hotel(facade):
    with pytest.raises(NotFound):
        facade.rooms_for_hotel(str(ObjectId()))


def test_update_room(facade, hotel, room_data):
    room = facade.create_room(hotel.id, room_data())

    updated = facade.update_room(room.id, {"price": 99})

    assert updated.price == 99
    assert updated.title == room.title
    assert facade.update_room(room.id, {}).price == 99
    with pytest.raises(NotFound):
        facade.update_room(str(ObjectId()), {"price": 1})


def test_delete_room_unlinks_it(facade, hotel, room_data):
    keep = facade.create_room(hotel.id, room_data(title="Keep"))
    gone = facade.create_room(hotel.id, room_data(title="Gone"))

    facade.delete_room(hotel.id, gone.id)

    with pytest.raises(NotFound):
        facade.get_room(gone.id)
    assert facade.get_hotel(hotel.id).rooms == [keep.id]


def test_delete_missing_room(facade, hotel):
    with pytest.raises(NotFound):
        facade.delete_room(hotel.id, str(ObjectId()))


def test_delete_room_reports_failed_unlink(facade, hotel, room_data):
    room = facade.create_room(hotel.id, room_data())
    other_hotel = str(ObjectId())

    with pytest.raises(LinkInconsistencyError):
        facade.delete_room(other_hotel, room.id)

    # The deletion itself is not reversed.
    with pytest.raises(NotFound):
        facade.get_room(room.id)
    assert facade.get_hotel(hotel.id).rooms == [room.id]
