# Import all models so that SQLAlchemy registers them for metadata.create_all
from bloodbooking.models.booking import Booking, SummaryEntry
from bloodbooking.models.settings import ActivitySettings

__all__ = [
    "Booking",
    "SummaryEntry",
    "ActivitySettings",
]
