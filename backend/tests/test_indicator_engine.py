"""
TrendPulse — Indicator Engine Tests

EMA/SMA/RSI/MACD/ATR series, Fibonacci pullback levels and snapshot assembly.
"""

import math

import pytest

from trendpulse.engines.indicator_engine import IndicatorEngine
from trendpulse.models import MACDData


@pytest.fixture
def engine():
    return IndicatorEngine()


def _sine(n: int, amplitude: float = 10.0) -> list[float]:
    return [100 + math.sin(i * 0.3) * amplitude + i * 0.05 for i in range(n)]


# ═══════════════════════════════════════════════
#  MOVING AVERAGES
# ═══════════════════════════════════════════════

class TestEMA:

    def test_seed_is_mean_of_first_period(self, engine):
        ema = engine.ema([float(i) for i in range(1, 21)], 20)
        assert len(ema) == 1
        assert ema[0] == 10.5

    def test_shorter_than_period_is_empty(self, engine):
        assert len(engine.ema([1.0, 2.0, 3.0], 5)) == 0
        assert len(engine.ema([], 20)) == 0

    def test_recursion(self, engine):
        # seed 2.0, multiplier 0.5
        ema = engine.ema([1.0, 2.0, 3.0, 4.0, 5.0], 3)
        assert list(ema) == [2.0, 3.0, 4.0]

    def test_one_point_per_index_from_period_minus_one(self, engine):
        values = _sine(120)
        assert len(engine.ema(values, 50)) == 120 - 50 + 1

    def test_constant_series(self, engine):
        ema = engine.ema([42.5] * 60, 20)
        assert len(ema) == 41
        assert all(v == 42.5 for v in ema)


class TestSMA:

    def test_full_windows_only(self, engine):
        sma = engine.sma([1.0, 2.0, 3.0, 4.0, 5.0], 2)
        assert list(sma) == [1.5, 2.5, 3.5, 4.5]

    def test_shorter_than_period_is_empty(self, engine):
        assert len(engine.sma([1.0, 2.0], 3)) == 0

    def test_window_equals_length(self, engine):
        sma = engine.sma([2.0, 4.0, 6.0], 3)
        assert list(sma) == [4.0]


# ═══════════════════════════════════════════════
#  MOMENTUM
# ═══════════════════════════════════════════════

class TestRSI:

    def test_needs_more_than_period_values(self, engine):
        assert len(engine.rsi([float(i) for i in range(14)], 14)) == 0
        assert len(engine.rsi([float(i) for i in range(15)], 14)) == 1

    def test_all_gains_is_100(self, engine):
        rsi = engine.rsi([100.0 + i for i in range(40)], 14)
        assert all(v == 100.0 for v in rsi)

    def test_all_losses_is_0(self, engine):
        rsi = engine.rsi([100.0 - i for i in range(40)], 14)
        assert all(v == 0.0 for v in rsi)

    def test_flat_series_resolves_to_100(self, engine):
        rsi = engine.rsi([50.0] * 30, 14)
        assert all(v == 100.0 for v in rsi)

    @pytest.mark.parametrize("amplitude", [0.5, 5.0, 25.0])
    def test_bounded(self, engine, amplitude):
        rsi = engine.rsi(_sine(200, amplitude), 14)
        assert len(rsi) == 200 - 14
        assert all(0.0 <= v <= 100.0 for v in rsi)

    def test_wilder_smoothing(self, engine):
        # period 2: deltas +2, -1, +1 → seed gain 1.0, loss 0.5
        rsi = engine.rsi([10.0, 12.0, 11.0, 12.0], 2)
        assert rsi[0] == pytest.approx(100 - 100 / (1 + 1.0 / 0.5))
        # gain (1.0*1 + 1)/2 = 1.0, loss (0.5*1 + 0)/2 = 0.25
        assert rsi[1] == pytest.approx(100 - 100 / (1 + 1.0 / 0.25))


class TestMACD:

    def test_histogram_identity(self, engine):
        macd = engine.macd(_sine(150))
        assert macd.available
        assert macd.histogram == macd.macd_line - macd.signal_line

    def test_short_series_returns_sentinel(self, engine):
        # 50 values → EMA26 has 25 points
        macd = engine.macd(_sine(50))
        assert macd == MACDData.empty()
        assert not macd.available

    def test_minimum_series(self, engine):
        macd = engine.macd(_sine(51))
        assert macd.available
        assert macd.previous_histogram is not None

    def test_rising_series_is_positive(self, engine):
        values = [100.0 + i * 0.01 * i for i in range(120)]
        macd = engine.macd(values)
        assert macd.macd_line > 0
        assert macd.macd_line > macd.signal_line

    def test_line_pairs_emas_by_index(self, engine):
        values = _sine(80)
        ema12 = engine.ema(values, 12)
        ema26 = engine.ema(values, 26)
        macd = engine.macd(values)
        assert macd.macd_line == pytest.approx(float(ema12[-1] - ema26[-1]))


# ═══════════════════════════════════════════════
#  VOLATILITY
# ═══════════════════════════════════════════════

class TestATR:

    def test_needs_period_plus_one_candles(self, engine, flat_series):
        assert len(engine.atr(flat_series(14), 14)) == 0
        assert len(engine.atr(flat_series(15), 14)) == 1

    def test_constant_range(self, engine, make_candle):
        candles = [make_candle(100, 101, 99, 100, time=i) for i in range(30)]
        atr = engine.atr(candles, 14)
        assert all(v == 2.0 for v in atr)

    def test_gap_uses_previous_close(self, engine, make_candle):
        candles = [make_candle(100, 101, 99, 100, time=0), make_candle(110, 111, 109, 110, time=1)]
        tr = engine.true_ranges(candles)
        assert list(tr) == [11.0]

    def test_never_negative(self, engine, trend_series):
        atr = engine.atr(trend_series(n=120, slope=-0.2), 14)
        assert len(atr) == 120 - 14
        assert all(v >= 0 for v in atr)


# ═══════════════════════════════════════════════
#  LEVELS
# ═══════════════════════════════════════════════

class TestPullbackLevels:

    def test_known_levels(self, engine, make_candle):
        candles = [make_candle(104, 110, 103, 105, time=0), make_candle(105, 106, 100, 102, time=1)]
        levels = engine.pullback_levels(candles)
        assert levels.level0 == 110
        assert levels.level1 == 100
        assert levels.level05 == 105
        assert levels.level0382 == pytest.approx(106.18)
        assert levels.level0618 == pytest.approx(103.82)

    def test_monotonic_non_increasing(self, engine, trend_series):
        for slope in (0.1, -0.2, 0.0):
            levels = engine.pullback_levels(trend_series(n=80, slope=slope))
            values = levels.as_list()
            assert all(a >= b for a, b in zip(values, values[1:]))

    def test_flat_window_returns_flat_price(self, engine, make_candle):
        candles = [make_candle(50, 50, 50, 50, time=i) for i in range(5)]
        levels = engine.pullback_levels(candles)
        assert levels.as_list() == [50.0] * 7

    def test_empty_window(self, engine):
        assert engine.pullback_levels([]) is None


# ═══════════════════════════════════════════════
#  SNAPSHOT
# ═══════════════════════════════════════════════

class TestSnapshot:

    def test_partial_history_leaves_long_emas_unset(self, engine, trend_series):
        snap = engine.compute_snapshot(trend_series(n=60))
        assert snap.ema20 is not None
        assert snap.ema50 is not None
        assert snap.sma50 is not None
        assert snap.ema100 is None
        assert snap.ema200 is None
        assert snap.macd.available
        assert 0 <= snap.rsi <= 100
        assert snap.atr == pytest.approx(1.6)

    def test_full_history(self, engine, trend_series):
        snap = engine.compute_snapshot(trend_series(n=250))
        assert snap.ema20 > snap.ema50 > snap.ema100 > snap.ema200

    def test_golden_cross(self, engine):
        assert engine.golden_cross(101.0, 100.0)
        assert not engine.golden_cross(100.0, 100.0)
        assert not engine.golden_cross(None, 100.0)
