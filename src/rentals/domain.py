"""Rentals bounded context: rental orders, agreements, payments and delivery gating.

Owns the Order aggregate and everything that mutates it: pricing, order
numbering, payment recording, e-signature agreement tracking and the
delivery gate that keeps unsigned rentals off the truck.
"""

import structlog
from protean.domain import Domain

rentals = Domain(name="rentals")

logger = structlog.get_logger(__name__)
