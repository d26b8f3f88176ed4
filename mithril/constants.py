# All engine amounts are integers in 18-decimal fixed point.
PRECISION = 10 ** 18

# Price feeds report 8 decimals; this brings a quote up to PRECISION.
FEED_DECIMALS = 8
ADDITIONAL_FEED_PRECISION = 10 ** 10

# Only LIQUIDATION_THRESHOLD / LIQUIDATION_PRECISION of the collateral value backs debt,
# which means 200% over-collateralization at MIN_HEALTH_FACTOR.
LIQUIDATION_THRESHOLD = 50
LIQUIDATION_PRECISION = 100

# Extra collateral, in percent of the covered amount, paid to liquidators.
LIQUIDATION_BONUS = 10

MIN_HEALTH_FACTOR = PRECISION

# Health factor of an account with no debt.
MAX_HEALTH_FACTOR = 2 ** 256 - 1

SECONDS_IN_AN_HOUR = 60 * 60
SECONDS_IN_A_DAY = 24 * SECONDS_IN_AN_HOUR
