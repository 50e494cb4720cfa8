"""Tests for GBMSimulator."""

from fakes import ETHBTC, ETHUSDC, ETHUSDT

from app.prices.simulator import GBMSimulator
from app.prices.symbols import SEED_PRICES, STABLECOIN_CORR, TRACKED_SYMBOLS


class TestGBMSimulator:
    """Unit tests for the GBM price simulator."""

    def test_step_returns_all_symbols(self):
        sim = GBMSimulator(symbols=TRACKED_SYMBOLS)
        result = sim.step()
        assert set(result.keys()) == set(TRACKED_SYMBOLS)

    def test_prices_are_positive(self):
        """GBM prices can never go negative (exp() is always positive)."""
        sim = GBMSimulator(symbols=[ETHBTC])
        for _ in range(10_000):
            prices = sim.step()
            assert prices[ETHBTC] > 0

    def test_initial_prices_match_seeds(self):
        sim = GBMSimulator(symbols=[ETHUSDC])
        assert sim.get_price(ETHUSDC) == SEED_PRICES[ETHUSDC]

    def test_small_prices_not_rounded_away(self):
        """ETH/BTC trades around 0.04; two-decimal rounding would flatten it."""
        sim = GBMSimulator(symbols=[ETHBTC])
        price = sim.step()[ETHBTC]
        assert 0.01 < price < 0.1
        assert round(price, 2) != price

    def test_duplicate_symbols_collapsed(self):
        sim = GBMSimulator(symbols=[ETHUSDC, ETHUSDC])
        assert sim.symbols == [ETHUSDC]

    def test_unknown_symbol_gets_random_seed_price(self):
        sim = GBMSimulator(symbols=["KRAKEN:SOLUSD"])
        price = sim.get_price("KRAKEN:SOLUSD")
        assert price is not None
        assert 1.0 <= price <= 100.0

    def test_empty_step(self):
        sim = GBMSimulator(symbols=[])
        assert sim.step() == {}

    def test_prices_change_over_time(self):
        sim = GBMSimulator(symbols=[ETHUSDT])
        initial_price = sim.get_price(ETHUSDT)
        for _ in range(1000):
            sim.step()
        assert sim.get_price(ETHUSDT) != initial_price

    def test_cholesky_none_with_one_symbol(self):
        sim = GBMSimulator(symbols=[ETHUSDC])
        assert sim._cholesky is None

    def test_cholesky_built_for_tracked_symbols(self):
        sim = GBMSimulator(symbols=TRACKED_SYMBOLS)
        assert sim._cholesky is not None
        assert sim._cholesky.shape == (3, 3)

    def test_get_price_returns_none_for_unknown(self):
        sim = GBMSimulator(symbols=[ETHUSDC])
        assert sim.get_price("UNKNOWN") is None

    def test_stablecoin_pairs_highly_correlated(self):
        assert GBMSimulator._pairwise_correlation(ETHUSDC, ETHUSDT) == STABLECOIN_CORR

    def test_cross_quote_correlation(self):
        assert GBMSimulator._pairwise_correlation(ETHUSDC, ETHBTC) == 0.5

    def test_unknown_pair_default_correlation(self):
        assert GBMSimulator._pairwise_correlation(ETHUSDC, "KRAKEN:SOLUSD") == 0.3

    def test_default_dt_is_reasonable(self):
        assert 0 < GBMSimulator.DEFAULT_DT < 0.0001
