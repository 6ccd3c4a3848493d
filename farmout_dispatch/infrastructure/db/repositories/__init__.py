from farmout_dispatch.infrastructure.db.repositories.activity_log_sql import ActivityLogSQL
from farmout_dispatch.infrastructure.db.repositories.driver_repo_sql import DriverRepoSQL
from farmout_dispatch.infrastructure.db.repositories.offer_repo_sql import OfferRepoSQL
from farmout_dispatch.infrastructure.db.repositories.reservation_repo_sql import ReservationRepoSQL

__all__ = [
    "ActivityLogSQL",
    "DriverRepoSQL",
    "OfferRepoSQL",
    "ReservationRepoSQL",
]
