"""Unit tests for backtesting.slippage."""

import pytest
from intraday_backtester.backtesting.slippage import apply_slippage
from intraday_backtester.core.config import SlippageConfig


def test_no_config_is_identity():
    assert apply_slippage(100.0, True, None, is_entry=True) == 100.0
    assert apply_slippage(100.0, False) == 100.0


def test_percent_long():
    cfg = SlippageConfig(model="percent", value=0.1)
    assert apply_slippage(100.0, True, cfg, is_entry=True) == pytest.approx(100.1)
    assert apply_slippage(100.0, True, cfg, is_entry=False) == pytest.approx(99.9)


def test_percent_short():
    cfg = SlippageConfig(model="percent", value=0.1)
    assert apply_slippage(100.0, False, cfg, is_entry=True) == pytest.approx(99.9)
    assert apply_slippage(100.0, False, cfg, is_entry=False) == pytest.approx(100.1)


def test_fixed_is_additive():
    cfg = SlippageConfig(model="fixed", value=0.05)
    assert apply_slippage(100.0, True, cfg, is_entry=True) == pytest.approx(100.05)
    assert apply_slippage(100.0, True, cfg, is_entry=False) == pytest.approx(99.95)
    assert apply_slippage(100.0, False, cfg, is_entry=True) == pytest.approx(99.95)
    assert apply_slippage(100.0, False, cfg, is_entry=False) == pytest.approx(100.05)


def test_exit_is_default():
    cfg = SlippageConfig(model="percent", value=1.0)
    assert apply_slippage(50.0, True, cfg) == pytest.approx(49.5)


@pytest.mark.parametrize("model", ["percent", "fixed"])
@pytest.mark.parametrize("is_long", [True, False])
@pytest.mark.parametrize("is_entry", [True, False])
def test_slippage_always_hurts_trader(model, is_long, is_entry):
    price = apply_slippage(100.0, is_long, SlippageConfig(model=model, value=0.25), is_entry=is_entry)
    pays_more = is_long == is_entry
    assert (price > 100.0) if pays_more else (price < 100.0)


def test_zero_value_is_identity():
    assert apply_slippage(100.0, True, SlippageConfig(model="percent", value=0.0), is_entry=True) == 100.0
