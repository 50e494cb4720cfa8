"""GBM-based crypto price simulator for running without a Finnhub token."""

from __future__ import annotations

import asyncio
import logging
import math
import random
import time
from collections.abc import Iterable

import numpy as np

from .interface import FeedSource, TickCallback
from .models import PriceTick
from .symbols import (
    CROSS_QUOTE_CORR,
    DEFAULT_CORR,
    DEFAULT_PARAMS,
    SEED_PRICES,
    STABLECOIN_CORR,
    STABLECOIN_QUOTED,
    SYMBOL_PARAMS,
    TRACKED_SYMBOLS,
)

logger = logging.getLogger(__name__)


class GBMSimulator:
    """Geometric Brownian Motion simulator for correlated crypto prices.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Where:
        S(t)   = current price
        mu     = annualized drift (expected return)
        sigma  = annualized volatility
        dt     = time step as fraction of a year
        Z      = correlated standard normal random variable

    Crypto trades around the clock, so a year is 365 * 24h of seconds.
    """

    SECONDS_PER_YEAR = 365 * 24 * 3600  # 31,536,000
    DEFAULT_DT = 0.5 / SECONDS_PER_YEAR  # ~1.59e-8

    def __init__(
        self,
        symbols: Iterable[str],
        dt: float = DEFAULT_DT,
        event_probability: float = 0.001,
    ) -> None:
        self._dt = dt
        self._event_prob = event_probability

        self._symbols: list[str] = []
        self._prices: dict[str, float] = {}
        self._params: dict[str, dict[str, float]] = {}

        for symbol in symbols:
            if symbol in self._prices:
                continue
            self._symbols.append(symbol)
            self._prices[symbol] = SEED_PRICES.get(symbol, random.uniform(1.0, 100.0))
            self._params[symbol] = SYMBOL_PARAMS.get(symbol, dict(DEFAULT_PARAMS))

        # Cholesky decomposition of the correlation matrix (for correlated moves)
        self._cholesky: np.ndarray | None = self._build_cholesky()

    @property
    def symbols(self) -> list[str]:
        return list(self._symbols)

    def step(self) -> dict[str, float]:
        """Advance all symbols by one time step. Returns {symbol: new_price}."""
        n = len(self._symbols)
        if n == 0:
            return {}

        z_independent = np.random.standard_normal(n)
        if self._cholesky is not None:
            z_correlated = self._cholesky @ z_independent
        else:
            z_correlated = z_independent

        result: dict[str, float] = {}
        for i, symbol in enumerate(self._symbols):
            mu = self._params[symbol]["mu"]
            sigma = self._params[symbol]["sigma"]

            drift = (mu - 0.5 * sigma**2) * self._dt
            diffusion = sigma * math.sqrt(self._dt) * z_correlated[i]
            self._prices[symbol] *= math.exp(drift + diffusion)

            # Occasional sharp move, the kind of wick crypto books see often
            if random.random() < self._event_prob:
                shock = random.uniform(0.01, 0.03) * random.choice([-1, 1])
                self._prices[symbol] *= 1 + shock
                logger.debug("Random event on %s: %+.1f%%", symbol, shock * 100)

            result[symbol] = self._prices[symbol]

        return result

    def get_price(self, symbol: str) -> float | None:
        return self._prices.get(symbol)

    def _build_cholesky(self) -> np.ndarray | None:
        n = len(self._symbols)
        if n <= 1:
            return None

        corr = np.eye(n)
        for i in range(n):
            for j in range(i + 1, n):
                rho = self._pairwise_correlation(self._symbols[i], self._symbols[j])
                corr[i, j] = rho
                corr[j, i] = rho

        return np.linalg.cholesky(corr)

    @staticmethod
    def _pairwise_correlation(s1: str, s2: str) -> float:
        """Stablecoin-quoted pairs move together; ETH/BTC less so."""
        if s1 in STABLECOIN_QUOTED and s2 in STABLECOIN_QUOTED:
            return STABLECOIN_CORR
        if s1 in SEED_PRICES and s2 in SEED_PRICES:
            return CROSS_QUOTE_CORR
        return DEFAULT_CORR


class SimulatedFeed(FeedSource):
    """FeedSource backed by the GBM simulator.

    Runs a background asyncio task that steps the simulator every
    ``update_interval`` seconds and emits one PriceTick per symbol.
    """

    def __init__(
        self,
        on_tick: TickCallback,
        symbols: Iterable[str] = TRACKED_SYMBOLS,
        update_interval: float = 0.5,
        event_probability: float = 0.001,
    ) -> None:
        self._on_tick = on_tick
        self._symbols = tuple(symbols)
        self._interval = update_interval
        self._event_prob = event_probability
        self._sim: GBMSimulator | None = None
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._sim = GBMSimulator(symbols=self._symbols, event_probability=self._event_prob)
        # Emit seed prices so subscribers have data immediately
        self._emit({symbol: self._sim.get_price(symbol) for symbol in self._symbols})
        self._task = asyncio.create_task(self._run_loop(), name="simulator-loop")
        logger.info("Simulator started with %d symbols", len(self._symbols))

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Simulator stopped")

    def _emit(self, prices: dict[str, float | None]) -> None:
        now_ms = int(time.time() * 1000)
        for symbol, price in prices.items():
            if price is not None:
                self._on_tick(PriceTick(symbol=symbol, price=price, timestamp=now_ms))

    async def _run_loop(self) -> None:
        """Core loop: step the simulation, emit ticks, sleep."""
        while True:
            await asyncio.sleep(self._interval)
            try:
                if self._sim:
                    self._emit(self._sim.step())
            except Exception:
                logger.exception("Simulator step failed")
