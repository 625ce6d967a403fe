"""
Models package — re-exports Base and all models.

Import models here so `Base.metadata` picks up every table
automatically.

When adding a new model:
    1. Create `clarence/db/models/<table_name>.py`
    2. Import it here
"""

from clarence.db.models.base import Base
from clarence.db.models.carrier import Carrier
from clarence.db.models.carrier_quote import CarrierQuote
from clarence.db.models.policy import Policy
from clarence.db.models.quote_request import QuoteRequest
from clarence.db.models.quote_request_coverage import QuoteRequestCoverage
from clarence.db.models.user import User

__all__ = [
    "Base",
    "Carrier",
    "CarrierQuote",
    "Policy",
    "QuoteRequest",
    "QuoteRequestCoverage",
    "User",
]
