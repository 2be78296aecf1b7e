"""
Error taxonomy shared by the persistence driver, the repositories and the API.

Repositories raise these; main.py turns them into HTTP responses.
"""

from typing import Any, Optional


class BookingError(Exception):
    """Base class for every error the booking core raises."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(BookingError):
    status_code = 404

    def __init__(self, kind: str, id: Any):
        super().__init__(f"{kind} not found")
        self.kind = kind
        self.id = str(id)


class ValidationError(BookingError):
    status_code = 400

    def __init__(self, detail: str, errors: Optional[list] = None):
        super().__init__(detail)
        self.errors = errors or []


class PersistenceError(BookingError):
    status_code = 500


class LinkInconsistencyError(BookingError):
    """
    The primary write of a hotel/room command succeeded but updating the
    hotel's ``rooms`` list did not.

    ``outcome`` holds what the primary write produced (the created room, or a
    deletion confirmation) so callers can report both halves.
    """

    status_code = 207

    def __init__(self, detail: str, hotel_id: Any, room_id: Any, outcome: Any = None):
        super().__init__(detail)
        self.hotel_id = str(hotel_id)
        self.room_id = str(room_id)
        self.outcome = outcome
