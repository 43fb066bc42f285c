"""Stock ledger bounded context: the inventory fulfillment ledger.

Records every quantity-affecting event against stocked components (supplier
receiving, gate rejection, returns to supplier, manual and picking-list
issuance, finished-goods reservations) and keeps on-hand balances, supplier
order progress and the append-only transaction journal consistent.
"""

from protean.domain import Domain

from stockledger.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

ledger = Domain(name="stockledger")
