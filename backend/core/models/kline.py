"""Candle (OHLCV) data models."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Candle(BaseModel):
    """A single OHLCV candle."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) candle."""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Check if this is a bearish (red) candle."""
        return self.close < self.open

    @property
    def typical_price(self) -> float:
        """(high + low + close) / 3."""
        return (self.high + self.low + self.close) / 3

    @property
    def range_size(self) -> float:
        """Get the full range (high - low) of the candle."""
        return self.high - self.low


class CandleSeries(BaseModel):
    """Chronological candle sequence plus derived parallel price arrays.

    The parallel arrays are tuples computed once at construction, so a
    series can be shared between indicator calls without copying.
    """

    model_config = ConfigDict(frozen=True)

    candles: tuple[Candle, ...] = Field(default_factory=tuple)
    opens: tuple[float, ...] = Field(default_factory=tuple)
    highs: tuple[float, ...] = Field(default_factory=tuple)
    lows: tuple[float, ...] = Field(default_factory=tuple)
    closes: tuple[float, ...] = Field(default_factory=tuple)
    volumes: tuple[float, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _check_lengths(self):
        n = len(self.closes)
        for name in ("opens", "highs", "lows", "volumes"):
            if len(getattr(self, name)) != n:
                raise ValueError(
                    f"{name} has {len(getattr(self, name))} values, expected {n}"
                )
        return self

    @classmethod
    def from_candles(cls, candles: Iterable[Candle]) -> "CandleSeries":
        """Build a series from candles, sorted by timestamp."""
        ordered = tuple(sorted(candles, key=lambda c: c.timestamp))
        return cls(
            candles=ordered,
            opens=tuple(c.open for c in ordered),
            highs=tuple(c.high for c in ordered),
            lows=tuple(c.low for c in ordered),
            closes=tuple(c.close for c in ordered),
            volumes=tuple(c.volume for c in ordered),
        )

    @classmethod
    def from_arrays(
        cls,
        closes: Sequence[float],
        highs: Sequence[float] | None = None,
        lows: Sequence[float] | None = None,
        volumes: Sequence[float] | None = None,
        opens: Sequence[float] | None = None,
    ) -> "CandleSeries":
        """Build a series from bare price arrays (no timestamps).

        Missing highs/lows/opens default to the closes, missing volumes to 0.
        """
        closes = tuple(float(c) for c in closes)
        return cls(
            opens=tuple(float(v) for v in (opens if opens is not None else closes)),
            highs=tuple(float(v) for v in (highs if highs is not None else closes)),
            lows=tuple(float(v) for v in (lows if lows is not None else closes)),
            closes=closes,
            volumes=tuple(
                float(v) for v in (volumes if volumes is not None else [0.0] * len(closes))
            ),
        )

    def tail(self, n: int) -> "CandleSeries":
        """Return a new series holding only the last ``n`` entries."""
        if n >= len(self):
            return self
        return CandleSeries(
            candles=self.candles[-n:] if self.candles else (),
            opens=self.opens[-n:],
            highs=self.highs[-n:],
            lows=self.lows[-n:],
            closes=self.closes[-n:],
            volumes=self.volumes[-n:],
        )

    def head(self, n: int) -> "CandleSeries":
        """Return a new series holding only the first ``n`` entries."""
        if n >= len(self):
            return self
        return CandleSeries(
            candles=self.candles[:n] if self.candles else (),
            opens=self.opens[:n],
            highs=self.highs[:n],
            lows=self.lows[:n],
            closes=self.closes[:n],
            volumes=self.volumes[:n],
        )

    @property
    def last_close(self) -> float:
        return self.closes[-1] if self.closes else 0.0

    def __len__(self) -> int:
        return len(self.closes)
