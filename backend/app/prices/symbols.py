"""Tracked symbols and per-symbol parameters for the price simulator."""

# The fixed allowlist of exchange-qualified pairs subscribed upstream
TRACKED_SYMBOLS: tuple[str, ...] = (
    "BINANCE:ETHUSDC",
    "BINANCE:ETHUSDT",
    "BINANCE:ETHBTC",
)

# Bounds for the in-memory aggregation
HISTORY_CAPACITY = 10_000
HOURLY_AVERAGE_CAPACITY = 24

# Realistic starting prices for the simulator
SEED_PRICES: dict[str, float] = {
    "BINANCE:ETHUSDC": 2500.00,
    "BINANCE:ETHUSDT": 2500.00,
    "BINANCE:ETHBTC": 0.0375,
}

# Per-symbol GBM parameters
# sigma: annualized volatility (crypto is far more volatile than equities)
# mu: annualized drift / expected return
SYMBOL_PARAMS: dict[str, dict[str, float]] = {
    "BINANCE:ETHUSDC": {"sigma": 0.65, "mu": 0.05},
    "BINANCE:ETHUSDT": {"sigma": 0.65, "mu": 0.05},
    "BINANCE:ETHBTC": {"sigma": 0.45, "mu": 0.0},
}

# Default parameters for symbols not listed above
DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.60, "mu": 0.05}

# Pairs quoted in dollar stablecoins track each other almost perfectly
STABLECOIN_QUOTED: set[str] = {"BINANCE:ETHUSDC", "BINANCE:ETHUSDT"}

STABLECOIN_CORR = 0.95
CROSS_QUOTE_CORR = 0.5
DEFAULT_CORR = 0.3
