"""Multi-indicator signal generator.

This module is pure business logic with no I/O dependencies. Each
indicator casts a directional vote scaled by a fixed weight; the summed
score decides BUY / SELL / HOLD and every contributing factor leaves a
human-readable reason, in evaluation order.
"""

import logging
from typing import Iterable, Literal

from core.indicators import (
    IndicatorCalculator,
    get_adx_signal,
    get_stochastic_signal,
    get_volume_signal,
)
from core.indicators.calculator import BOLLINGER_LOWER_ZONE, BOLLINGER_UPPER_ZONE
from core.indicators.volatility import atr_stop_loss
from core.models import (
    Analysis,
    CandleSeries,
    IndicatorSnapshot,
    PositionSizeTier,
    Recommendation,
    RiskLevel,
    RiskScore,
    Signal,
    SignalConfig,
    SignalType,
)
from core.risk import calculate_risk_score

logger = logging.getLogger(__name__)

ADX_TREND_THRESHOLD = 25
RSI_OVERSOLD = 30
RSI_OVERBOUGHT = 70

SortKey = Literal["confidence", "risk", "risk_reward"]


class InsufficientDataError(ValueError):
    """Raised when a series is too short for a full analysis."""


class SignalGenerator:
    """
    Combine every indicator and the risk score into one trading decision.

    Score contributions (default weights):
    - RSI: +/-10 at the extremes, +5 in the healthy 50-60 band
    - MACD: +/-15 by histogram sign
    - Bollinger: +/-10 near the lower/upper band
    - ADX: +/-15 for a confirmed strong trend
    - Stochastic, SuperTrend, Ichimoku: +/-10
    - VWAP, Parabolic SAR, Volume, Risk: +/-5
    """

    def __init__(self, config: SignalConfig | None = None):
        self.config = config or SignalConfig()
        self.calculator = IndicatorCalculator(self.config)

    def analyze(self, series: CandleSeries, symbol: str | None = None) -> Analysis:
        """
        Analyse the latest bar of ``series``.

        Raises:
            InsufficientDataError: fewer than ``config.min_history`` candles
        """
        cfg = self.config
        if len(series) < cfg.min_history:
            raise InsufficientDataError(
                f"Insufficient data for analysis: {len(series)} candles, "
                f"minimum {cfg.min_history} required"
            )

        snapshot = self.calculator.calculate(series)
        risk = calculate_risk_score(series.closes, series.volumes, cfg.risk_period)
        score, reasons = self._score(series, snapshot, risk)

        if score > cfg.buy_threshold:
            signal_type = SignalType.BUY
        elif score < cfg.sell_threshold:
            signal_type = SignalType.SELL
        else:
            signal_type = SignalType.HOLD
            reasons.append("Mixed signals - Wait for clearer trend confirmation")

        entry = series.last_close
        levels = calculate_trade_levels(signal_type, entry, snapshot.atr.atr, risk.level, cfg)
        target_price, stop_loss, risk_reward = levels

        if signal_type == SignalType.BUY:
            reasons.append(
                f"ATR-based Stop Loss: {stop_loss:.2f} "
                f"({_percent_from(entry, stop_loss):.2f}%)"
            )
            reasons.append(
                f"Target: {target_price:.2f} ({_percent_from(entry, target_price):.2f}%)"
            )

        confidence = round(abs(score), 2)
        signal = Signal(
            type=signal_type,
            confidence=confidence,
            entry_price=entry,
            target_price=target_price,
            stop_loss=stop_loss,
            risk_reward=risk_reward,
            reasons=tuple(reasons),
            risk_score=risk,
            indicators=snapshot,
        )

        logger.debug(
            "%s: %s confidence=%.2f risk=%s (%d reasons)",
            symbol or "<series>",
            signal_type.value,
            confidence,
            risk.level.value,
            len(reasons),
        )

        return Analysis(
            symbol=symbol,
            signal=signal,
            recommendation=generate_recommendation(
                signal_type, confidence, risk.level, snapshot.adx.adx
            ),
        )

    def _score(
        self,
        series: CandleSeries,
        snapshot: IndicatorSnapshot,
        risk: RiskScore,
    ) -> tuple[float, list[str]]:
        w = self.config.weights
        score = 0.0
        reasons: list[str] = []

        # RSI
        rsi = snapshot.rsi
        if rsi < RSI_OVERSOLD:
            score += w.rsi
            reasons.append(f"RSI oversold at {rsi:.2f} - Strong buy signal")
        elif rsi > RSI_OVERBOUGHT:
            score -= w.rsi
            reasons.append(f"RSI overbought at {rsi:.2f} - Caution advised")
        elif 50 <= rsi <= 60:
            score += w.rsi_healthy
            reasons.append(f"RSI healthy at {rsi:.2f} - Neutral to bullish")

        # MACD
        histogram = snapshot.macd.histogram
        if histogram > 0:
            score += w.macd
            reasons.append(f"MACD bullish ({histogram:.2f}) - Upward momentum")
        else:
            score -= w.macd
            reasons.append(f"MACD bearish ({histogram:.2f}) - Downward pressure")

        # Bollinger
        percent_b = snapshot.bollinger.percent_b
        if percent_b < BOLLINGER_LOWER_ZONE:
            score += w.bollinger
            reasons.append("Price near lower Bollinger Band - potential bounce")
        elif percent_b > BOLLINGER_UPPER_ZONE:
            score -= w.bollinger
            reasons.append("Price near upper Bollinger Band - potential reversal")

        # ADX
        adx = snapshot.adx
        if adx.adx > ADX_TREND_THRESHOLD:
            vote = get_adx_signal(adx).signal
            if vote == "BUY":
                score += w.adx
                reasons.append(
                    f"Strong uptrend confirmed - ADX: {adx.adx:.2f}, +DI: {adx.plus_di:.2f}"
                )
            elif vote == "SELL":
                score -= w.adx
                reasons.append(
                    f"Strong downtrend confirmed - ADX: {adx.adx:.2f}, -DI: {adx.minus_di:.2f}"
                )
        else:
            reasons.append(f"Weak trend - ADX: {adx.adx:.2f} - Range-bound market")

        # Stochastic
        stoch_vote = get_stochastic_signal(snapshot.stochastic)
        if stoch_vote.signal == "BUY":
            score += w.stochastic
            reasons.append(stoch_vote.reason)
        elif stoch_vote.signal == "SELL":
            score -= w.stochastic
            reasons.append(stoch_vote.reason)

        # VWAP
        vwap = snapshot.vwap
        if vwap.signal == "above":
            score += w.vwap
            reasons.append(
                f"Price above VWAP (+{vwap.distance:.2f}%) - Institutional support"
            )
        elif vwap.signal == "below":
            score -= w.vwap
            reasons.append(
                f"Price below VWAP ({vwap.distance:.2f}%) - Institutional selling"
            )

        # SuperTrend
        supertrend = snapshot.supertrend
        if supertrend.signal == "BUY":
            score += w.supertrend
            reasons.append(f"SuperTrend bullish - Price above {supertrend.supertrend:.2f}")
        elif supertrend.signal == "SELL":
            score -= w.supertrend
            reasons.append(f"SuperTrend bearish - Price below {supertrend.supertrend:.2f}")

        # Ichimoku
        if snapshot.ichimoku.signal == "bullish":
            score += w.ichimoku
            reasons.append("Ichimoku Cloud bullish - Price above cloud with positive momentum")
        elif snapshot.ichimoku.signal == "bearish":
            score -= w.ichimoku
            reasons.append("Ichimoku Cloud bearish - Price below cloud with negative momentum")

        # Parabolic SAR
        sar = snapshot.parabolic_sar
        if sar.signal == "BUY":
            score += w.parabolic_sar
            reasons.append(f"Parabolic SAR buy signal - SAR at {sar.sar:.2f}")
        elif sar.signal == "SELL":
            score -= w.parabolic_sar
            reasons.append(f"Parabolic SAR sell signal - SAR at {sar.sar:.2f}")

        # Volume
        volume_vote = get_volume_signal(
            series.volumes, series.closes, self.config.volume_period
        )
        if volume_vote.signal == "BUY":
            score += w.volume
            reasons.append(volume_vote.reason)
        elif volume_vote.signal == "SELL":
            score -= w.volume
            reasons.append(volume_vote.reason)

        # Risk
        if risk.level == RiskLevel.LOW:
            score += w.risk
            reasons.append("Low risk profile - suitable for conservative investors")
        elif risk.level in (RiskLevel.HIGH, RiskLevel.EXTREME):
            score -= w.risk
            reasons.append(f"{risk.level.value} risk - trade with caution")

        return score, reasons


def calculate_trade_levels(
    signal_type: SignalType,
    entry: float,
    atr: float,
    risk_level: RiskLevel,
    config: SignalConfig | None = None,
) -> tuple[float | None, float | None, float | None]:
    """
    Target, stop loss and risk/reward for a decision at ``entry``.

    BUY: stop ``stop_atr_mult`` ATRs below entry, target 2.5 ATRs above
    (3 for LOW risk). SELL: fixed 6% target below and 4% stop above, with
    no risk/reward. HOLD: all None.
    """
    cfg = config or SignalConfig()

    if signal_type == SignalType.BUY:
        stop_loss = atr_stop_loss(entry, atr, cfg.stop_atr_mult, "long")
        multiplier = (
            cfg.target_atr_mult_low_risk if risk_level == RiskLevel.LOW else cfg.target_atr_mult
        )
        target_price = round(entry + atr * multiplier, 2)

        potential_loss = entry - stop_loss
        risk_reward = None
        if potential_loss > 0:
            risk_reward = round((target_price - entry) / potential_loss, 2)
        return target_price, stop_loss, risk_reward

    if signal_type == SignalType.SELL:
        # Fixed percentages, not ATR
        target_price = round(entry * (1 - cfg.sell_target_pct), 2)
        stop_loss = round(entry * (1 + cfg.sell_stop_pct), 2)
        return target_price, stop_loss, None

    return None, None, None


def _percent_from(entry: float, price: float) -> float:
    return (price - entry) / entry * 100 if entry else 0.0


def generate_recommendation(
    signal_type: SignalType,
    confidence: float,
    risk_level: RiskLevel,
    adx: float,
) -> Recommendation:
    """Qualitative trading plan for a decision, its confidence, risk and ADX."""
    if signal_type == SignalType.BUY:
        if confidence > 70 and risk_level == RiskLevel.LOW and adx > 25:
            return Recommendation(
                strategy="Strong Buy - Swing Trade with Trend Confirmation",
                description=(
                    "Exceptional buy opportunity with strong trend confirmation from ADX. "
                    "Multiple indicators aligned bullishly with low risk profile. "
                    "Suitable for swing trading with 3-6 week holding period. "
                    "All major trend indicators confirm upward momentum."
                ),
                position_size=PositionSizeTier.LARGE,
                timeframe="3-6 weeks",
            )
        if confidence > 60 and adx > 20:
            return Recommendation(
                strategy="Moderate Buy - Position Trade",
                description=(
                    "Good buy opportunity with positive trend strength. "
                    "Multiple technical indicators showing bullish alignment. "
                    "Consider position trading with 2-4 week holding period. "
                    "Monitor ADX for trend weakening."
                ),
                position_size=PositionSizeTier.MEDIUM,
                timeframe="2-4 weeks",
            )
        if confidence > 50:
            return Recommendation(
                strategy="Cautious Buy - Short-term Trade",
                description=(
                    "Moderate buy signal with mixed trend strength. "
                    "Suitable for short-term trading with tight stop loss. "
                    "Use ATR-based stops and book profits on strength. "
                    "Monitor volume and momentum indicators closely."
                ),
                position_size=PositionSizeTier.SMALL,
                timeframe="1-2 weeks",
            )
        return Recommendation(
            strategy="Weak Buy - Day Trade Only",
            description=(
                "Weak buy signal with limited conviction. "
                "Only for experienced day traders. "
                "Use very tight stops and book profits quickly. "
                "High chance of reversal, so monitor closely."
            ),
            position_size=PositionSizeTier.SMALL,
            timeframe="1-3 days",
        )

    if signal_type == SignalType.SELL:
        if confidence > 70:
            return Recommendation(
                strategy="Strong Sell - Exit All Positions",
                description=(
                    "Clear exit signal with multiple bearish confirmations. "
                    "If holding, book profits immediately or cut losses. "
                    "Strong downward momentum detected across multiple timeframes. "
                    "Consider shorting if experienced."
                ),
                position_size=PositionSizeTier.SMALL,
                timeframe="Exit Immediately",
            )
        if confidence > 50:
            return Recommendation(
                strategy="Moderate Sell - Reduce Exposure",
                description=(
                    "Negative signals building up with trend weakness. "
                    "Consider reducing position size or tightening stop loss significantly. "
                    "Watch for potential reversal patterns. "
                    "Avoid new long positions."
                ),
                position_size=PositionSizeTier.SMALL,
                timeframe="Reduce within 2-3 days",
            )
        return Recommendation(
            strategy="Weak Sell - Caution Advised",
            description=(
                "Some negative indicators present but not confirmed. "
                "Tighten stops and avoid adding to positions. "
                "Wait for clearer confirmation before taking action."
            ),
            position_size=PositionSizeTier.SMALL,
            timeframe="Monitor closely",
        )

    return Recommendation(
        strategy="Hold - Wait for Clarity",
        description=(
            "Mixed signals across indicators with no clear trend direction. "
            "Wait for stronger confirmation from multiple indicators. "
            "Focus on capital preservation. "
            "Look for better risk-reward opportunities elsewhere."
        ),
        position_size=PositionSizeTier.SMALL,
        timeframe="Wait & Watch",
    )


# =============================================================================
# Screening
# =============================================================================

def filter_analyses(
    analyses: Iterable[Analysis],
    min_confidence: float | None = None,
    signal_type: SignalType | None = None,
    max_risk: RiskLevel | None = None,
    min_risk_reward: float | None = None,
) -> list[Analysis]:
    """
    Keep analyses matching every given criterion.

    ``min_risk_reward`` only rejects signals that have a risk/reward ratio;
    signals without one pass.
    """
    result = []
    for analysis in analyses:
        signal = analysis.signal
        if min_confidence is not None and signal.confidence < min_confidence:
            continue
        if signal_type is not None and signal.type != signal_type:
            continue
        if max_risk is not None and signal.risk_score.level.rank > max_risk.rank:
            continue
        if (
            min_risk_reward is not None
            and signal.risk_reward is not None
            and signal.risk_reward < min_risk_reward
        ):
            continue
        result.append(analysis)
    return result


def sort_analyses(
    analyses: Iterable[Analysis],
    by: SortKey = "confidence",
    descending: bool = True,
) -> list[Analysis]:
    """Sort by confidence, risk score or risk/reward (missing ratio sorts as 0)."""
    if by == "confidence":
        key = lambda a: a.signal.confidence  # noqa: E731
    elif by == "risk":
        key = lambda a: a.signal.risk_score.score  # noqa: E731
    elif by == "risk_reward":
        key = lambda a: a.signal.risk_reward or 0.0  # noqa: E731
    else:
        raise ValueError(f"Unknown sort key: {by}")

    return sorted(analyses, key=key, reverse=descending)
