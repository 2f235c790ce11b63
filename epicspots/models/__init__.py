"""SQLAlchemy models for Epic Spots.

All models are imported here so that ``Base.metadata`` knows every table
before ``create_all`` runs. If you add a new model, import it in this file.
"""

from epicspots.models.reservation import Reservation
from epicspots.models.spot import Spot
from epicspots.models.user import User, UserRole

__all__ = [
    "Reservation",
    "Spot",
    "User",
    "UserRole",
]
