"""Tests for indicator primitives, momentum, volatility and volume indicators."""

import pytest

from core.indicators import (
    IndicatorCalculator,
    atr_position_size,
    atr_stop_loss,
    bandwidth_percentile,
    bollinger_label,
    calculate_adl,
    calculate_atr,
    calculate_bollinger_bands,
    calculate_macd,
    calculate_macd_series,
    calculate_obv,
    calculate_rsi,
    calculate_stochastic,
    calculate_volume_ratio,
    calculate_vwap,
    detect_macd_crossover,
    detect_volatility_regime,
    detect_volume_spike,
    ema,
    get_bollinger_signal,
    get_macd_signal,
    get_rsi_signal,
    get_stochastic_signal,
    get_volume_signal,
    highest,
    lowest,
    sma,
    std_dev,
    true_range,
    wilder_average,
    wilder_smoothing,
)
from core.models import (
    BollingerBands,
    CandleSeries,
    IndicatorSnapshot,
    MACDResult,
    StochasticResult,
)


def zigzag(n: int, start: float = 100.0) -> list[float]:
    """Closes alternating up 2 / down 1, so both gains and losses exist."""
    closes = [start]
    for i in range(1, n):
        closes.append(closes[-1] + (2 if i % 2 else -1))
    return closes


class TestPrimitives:
    def test_ema_seeds_with_first_value(self):
        values = [float(i) for i in range(1, 11)]
        result = ema(values, 5)

        assert len(result) == 10
        assert result[0] == 1.0
        assert all(b > a for a, b in zip(result, result[1:]))

    def test_ema_empty(self):
        assert ema([], 5) == []

    def test_sma_uses_trailing_window(self):
        assert sma([float(i) for i in range(1, 11)], 3) == pytest.approx(9.0)

    def test_sma_insufficient_data(self):
        assert sma([1.0, 2.0], 3) == 0.0

    def test_std_dev_is_population(self):
        assert std_dev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)

    def test_highest_lowest(self):
        values = [5.0, 1.0, 8.0, 3.0, 2.0]
        assert highest(values, 3) == 8.0
        assert lowest(values, 3) == 2.0
        assert highest([], 3) == 0.0

    def test_true_range_skips_first_candle(self):
        tr = true_range([10, 12], [8, 9], [9, 11])
        assert tr == [pytest.approx(3.0)]

    def test_true_range_uses_previous_close_gap(self):
        # Gap up: |high - prev_close| dominates
        tr = true_range([10, 20], [9, 19], [9.5, 19.5])
        assert tr == [pytest.approx(10.5)]

    def test_wilder_average(self):
        # seed (1+2)/2 = 1.5, then (1.5+3)/2 = 2.25, then (2.25+4)/2 = 3.125
        assert wilder_average([1, 2, 3, 4], 2) == pytest.approx(3.125)
        assert wilder_average([1], 2) == 0.0

    def test_wilder_smoothing(self):
        assert wilder_smoothing([1, 2, 3], 2) == [pytest.approx(3.0), pytest.approx(4.5)]
        assert wilder_smoothing([1], 2) == []


class TestRSI:
    def test_insufficient_data_is_neutral(self):
        assert calculate_rsi([100.0] * 10, 14) == 50.0

    def test_only_gains_is_100(self):
        assert calculate_rsi([float(i) for i in range(30)]) == 100.0

    def test_flat_series_hits_zero_loss_exception(self):
        # No losses at all, so the zero-loss guard returns 100, not 50
        assert calculate_rsi([100.0] * 30) == 100.0

    def test_only_losses_is_0(self):
        assert calculate_rsi([float(100 - i) for i in range(30)]) == 0.0

    @pytest.mark.parametrize("n", [15, 20, 40, 100])
    def test_bounded(self, n):
        rsi = calculate_rsi(zigzag(n))
        assert 0 <= rsi <= 100

    def test_signal_oversold(self):
        vote = get_rsi_signal(25)
        assert vote.signal == "BUY"
        assert vote.strength == pytest.approx(5 / 30 * 100)
        assert vote.reason == "RSI oversold at 25.00"

    def test_signal_overbought(self):
        vote = get_rsi_signal(85)
        assert vote.signal == "SELL"
        assert vote.strength == pytest.approx(50)

    def test_signal_neutral(self):
        assert get_rsi_signal(50).signal == "HOLD"


class TestMACD:
    def test_insufficient_data_is_zero(self):
        result = calculate_macd([100.0] * 20)
        assert result == MACDResult()

    def test_uptrend_is_positive(self):
        result = calculate_macd([100.0 + i for i in range(60)])
        assert result.macd > 0

    @pytest.mark.parametrize("n", [26, 40, 80])
    def test_histogram_is_macd_minus_signal(self, n):
        result = calculate_macd(zigzag(n))
        assert result.histogram == pytest.approx(result.macd - result.signal, abs=0.011)

    def test_series_matches_last_value(self):
        closes = zigzag(50)
        series = calculate_macd_series(closes)
        assert len(series) == 50
        assert series[-1] == calculate_macd(closes)

    def test_signal_votes(self):
        assert get_macd_signal(MACDResult(macd=1, signal=0.5, histogram=0.5)).signal == "BUY"
        assert get_macd_signal(MACDResult(macd=0.5, signal=1, histogram=-0.5)).signal == "SELL"
        assert get_macd_signal(MACDResult()).signal == "HOLD"

    def test_buy_strength_capped(self):
        vote = get_macd_signal(MACDResult(macd=30, signal=10, histogram=20))
        assert vote.strength == 100

    def test_crossover(self):
        prev = MACDResult(macd=0.5, signal=1, histogram=-0.5)
        curr = MACDResult(macd=1, signal=0.5, histogram=0.5)
        assert detect_macd_crossover(curr, prev) == "bullish"
        assert detect_macd_crossover(prev, curr) == "bearish"
        assert detect_macd_crossover(curr, curr) is None


class TestStochastic:
    def test_insufficient_data_is_neutral(self):
        result = calculate_stochastic([1.0] * 10, [1.0] * 10, [1.0] * 10)
        assert (result.k, result.d, result.signal) == (50.0, 50.0, "neutral")

    def test_flat_window_is_50(self):
        flat = [100.0] * 30
        result = calculate_stochastic(flat, flat, flat)
        assert result.k == 50.0
        assert result.d == 50.0

    def test_rising_closes_are_overbought(self):
        closes = [float(i) for i in range(1, 31)]
        result = calculate_stochastic(closes, closes, closes)
        assert result.k == 100.0
        assert result.signal == "overbought"

        vote = get_stochastic_signal(result)
        assert vote.signal == "SELL"
        assert vote.strength == 30

    def test_falling_closes_are_oversold(self):
        closes = [float(100 - i) for i in range(30)]
        result = calculate_stochastic(closes, closes, closes)
        assert result.k == 0.0
        assert result.signal == "oversold"
        assert get_stochastic_signal(result).signal == "BUY"

    def test_oversold_crossover_reason(self):
        vote = get_stochastic_signal(StochasticResult(k=15, d=10, signal="oversold"))
        assert vote.signal == "BUY"
        assert vote.strength == pytest.approx(50)
        assert "reversal likely" in vote.reason


class TestBollinger:
    def test_insufficient_data_is_neutral(self):
        assert calculate_bollinger_bands([100.0] * 5) == BollingerBands()

    def test_flat_series_collapses_bands(self):
        bands = calculate_bollinger_bands([100.0] * 20)
        assert bands.upper == bands.middle == bands.lower == 100.0
        assert bands.percent_b == 0.5
        assert bands.bandwidth == 0.0

    def test_middle_is_sma(self):
        bands = calculate_bollinger_bands([float(i) for i in range(1, 21)])
        assert bands.middle == 10.5
        assert bands.lower < bands.middle < bands.upper

    def test_signal_near_lower_band_with_squeeze(self):
        vote = get_bollinger_signal(BollingerBands(percent_b=0.1, bandwidth=5))
        assert vote.signal == "BUY"
        assert vote.strength == pytest.approx(50)
        assert "Squeeze detected" in vote.reason

    def test_signal_upper_band(self):
        vote = get_bollinger_signal(BollingerBands(percent_b=0.9, bandwidth=20))
        assert vote.signal == "SELL"
        assert "Squeeze" not in vote.reason

    def test_labels(self):
        assert bollinger_label(BollingerBands(percent_b=0.1)) == "Near Lower Band - Buy Signal"
        assert bollinger_label(BollingerBands(percent_b=0.95)) == "Near Upper Band - Sell Signal"
        assert bollinger_label(BollingerBands()) == "Neutral"

    def test_bandwidth_percentile(self):
        assert bandwidth_percentile(5, [1, 2, 3, 10]) == 75.0
        assert bandwidth_percentile(5, []) == 50.0


class TestATR:
    def test_insufficient_data_is_zero(self):
        result = calculate_atr([1.0] * 10, [1.0] * 10, [1.0] * 10)
        assert result.atr == 0.0

    def test_constant_range(self):
        closes = [100.0] * 30
        highs = [101.0] * 30
        lows = [99.0] * 30
        result = calculate_atr(highs, lows, closes)

        assert result.atr == 2.0
        assert result.tr == 2.0
        assert result.atr_percent == 2.0

    def test_stop_loss(self):
        assert atr_stop_loss(1000, 20) == 960.0
        assert atr_stop_loss(1000, 20, direction="short") == 1040.0

    def test_position_size(self):
        assert atr_position_size(100_000, 1, 100, 5, 2) == 100
        assert atr_position_size(100_000, 1, 100, 0) == 0

    @pytest.mark.parametrize(
        "atr_percent,regime",
        [(1.0, "low"), (2.0, "normal"), (4.0, "high"), (6.0, "extreme")],
    )
    def test_volatility_regime(self, atr_percent, regime):
        assert detect_volatility_regime(atr_percent) == regime


class TestVolume:
    SPIKE = [100.0] * 19 + [300.0]

    def test_ratio_defaults_to_one(self):
        assert calculate_volume_ratio([100.0] * 5) == 1.0
        assert calculate_volume_ratio([0.0] * 20) == 1.0

    def test_ratio(self):
        # 300 / ((19 * 100 + 300) / 20)
        assert calculate_volume_ratio(self.SPIKE) == 2.73
        assert detect_volume_spike(self.SPIKE)

    def test_breakout(self):
        closes = [100.0] * 19 + [105.0]
        vote = get_volume_signal(self.SPIKE, closes)
        assert vote.signal == "BUY"
        assert vote.reason == "High volume breakout (2.73x avg)"
        assert vote.volume_ratio == 2.73

    def test_breakdown(self):
        closes = [100.0] * 19 + [95.0]
        vote = get_volume_signal(self.SPIKE, closes)
        assert vote.signal == "SELL"
        assert vote.reason == "High volume breakdown (2.73x avg)"

    def test_normal_volume(self):
        vote = get_volume_signal([100.0] * 20, [100.0] * 20)
        assert vote.signal == "HOLD"
        assert vote.strength == 0

    def test_vwap(self):
        result = calculate_vwap([10, 20], [10, 20], [10, 20], [1, 3])
        assert result.vwap == 17.5
        assert result.signal == "above"
        assert result.distance == 14.29

    def test_vwap_zero_volume(self):
        result = calculate_vwap([10, 20], [10, 20], [10, 20], [0, 0])
        assert result.vwap == 0.0
        assert result.distance == 0.0

    def test_vwap_at(self):
        result = calculate_vwap([100, 100], [100, 100], [100, 100], [5, 5])
        assert result.signal == "at"

    def test_obv(self):
        assert calculate_obv([1, 2, 2, 1], [10, 20, 30, 40]) == [10, 30, 30, -10]

    def test_adl_ignores_rangeless_candle(self):
        adl = calculate_adl([10, 12], [10, 8], [10, 12], [100, 50])
        assert adl == [0.0, pytest.approx(50.0)]


class TestIndicatorCalculator:
    def test_short_series_is_neutral(self):
        series = CandleSeries.from_arrays([100.0] * 5)
        snapshot = IndicatorCalculator().calculate(series)
        assert snapshot.rsi == 50.0
        assert snapshot.macd == MACDResult()
        assert snapshot.bollinger_signal == "Neutral"

    def test_full_series(self):
        closes = zigzag(80)
        series = CandleSeries.from_arrays(
            closes,
            highs=[c + 1 for c in closes],
            lows=[c - 1 for c in closes],
            volumes=[1000.0] * 80,
        )
        snapshot = IndicatorCalculator().calculate(series)

        assert isinstance(snapshot, IndicatorSnapshot)
        assert 0 <= snapshot.rsi <= 100
        assert snapshot.atr.atr > 0
        assert snapshot.volume_ratio == 1.0
        assert snapshot.ichimoku.tenkan > 0
