"""Fixed-point scales and risk parameters.

Every monetary amount in the engine is an ``int`` scaled by ``PRECISION``
(18 decimals). Divisions use ``//`` on non-negative operands, so results
truncate toward zero and rounding dust stays with the protocol.
"""

PRECISION = 10**18
FEED_DECIMALS = 8  # Chainlink/Pyth USD feeds
ADDITIONAL_FEED_PRECISION = 10**10  # lifts an 8-decimal feed to PRECISION

# Only half of nominal collateral value counts toward solvency (200% ratio).
LIQUIDATION_THRESHOLD = 50
LIQUIDATION_PRECISION = 100
LIQUIDATION_BONUS = 10  # percent of the covered collateral paid on top

MIN_HEALTH_FACTOR = 1 * PRECISION
MAX_HEALTH_FACTOR = 2**256 - 1  # debt-free positions

# Oracle freshness: a quote older than heartbeat * multiple is stale.
DEFAULT_HEARTBEAT_SECONDS = 3600
DEFAULT_STALENESS_MULTIPLE = 3
