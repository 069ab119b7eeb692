"""
ta-engine CLI - Command-line interface.

Loads candles from a feed (CSV file, Binance, Yahoo Finance, or the
deterministic mock generator) and prints indicator output.
"""
import json
from typing import Dict, List, Optional

import typer

from ta_engine.data.adapters.base import DataFeed
from ta_engine.shared.models.data import OHLCV, candles_to_frame, get_ohlcv_slices
from ta_engine.shared.models.result import MAType, Result
from ta_engine.shared.utils.error_policy import IndicatorError, enforce_success

app = typer.Typer(help="ta-engine - Technical analysis indicators over OHLCV candles")


def _build_feed(csv: Optional[str], symbol: Optional[str], interval: str,
                regime: str, bars: int, seed: int, yahoo: Optional[str] = None) -> DataFeed:
    if csv:
        from ta_engine.data.adapters.csv_feed import CSVFeed
        return CSVFeed(csv)
    if yahoo:
        from ta_engine.data.adapters.yahoo import YahooFeed
        return YahooFeed(yahoo, interval)
    if symbol:
        from ta_engine.data.adapters.binance import BinanceFeed
        return BinanceFeed(symbol, interval)
    from ta_engine.data.adapters.mocks import MockFeed
    return MockFeed(regime, bars, seed)


def _load(feed: DataFeed) -> List[OHLCV]:
    import ccxt

    try:
        candles = feed.get_data()
    except (OSError, ValueError, ccxt.BaseError) as e:
        typer.echo(f"❌ Failed to load candles: {e}")
        raise typer.Exit(code=1)
    if not candles:
        typer.echo("📭 Feed returned no candles")
        raise typer.Exit(code=1)
    return candles


def _parse_value(raw: str):
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            pass
    try:
        return MAType[raw.upper()]
    except KeyError:
        raise typer.BadParameter(f"Cannot parse parameter value '{raw}'")


def parse_params(items: List[str]) -> Dict[str, object]:
    """Turn ``key=value`` strings into indicator keyword arguments."""
    params: Dict[str, object] = {}
    for item in items:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{item}'")
        params[key.strip()] = _parse_value(raw.strip())
    return params


def _fmt_series(values, tail: int) -> str:
    shown = values[-tail:] if tail > 0 else values
    prefix = "... " if len(shown) < len(values) else ""
    return prefix + ", ".join(f"{v:.4f}" for v in shown)


def _print_result(label: str, result: Result, tail: int, names: Dict[str, str]) -> None:
    typer.echo(f"\n{label}:")
    typer.echo(f"   begin_index={result.begin_index} count={result.element_count}")
    for key, title in names.items():
        typer.echo(f"   {title}: {_fmt_series(result[key], tail)}")


@app.command()
def compute(
    indicator: str = typer.Argument(..., help="Indicator name (see 'ta-engine indicators')"),
    param: List[str] = typer.Option([], "--param", "-p", help="Indicator parameter as key=value"),
    start: int = typer.Option(0, help="First requested index"),
    end: Optional[int] = typer.Option(None, help="Last requested index (default: last candle)"),
    csv: Optional[str] = typer.Option(None, help="CSV file with time,open,high,low,close,volume"),
    symbol: Optional[str] = typer.Option(None, help="Binance symbol (e.g. BTC/USDT)"),
    yahoo: Optional[str] = typer.Option(None, help="Yahoo Finance ticker (e.g. AAPL, BTC-USD)"),
    interval: str = typer.Option("1d", help="Binance or Yahoo candle interval"),
    regime: str = typer.Option("trending", help="Mock regime (trending/ranging/volatile)"),
    bars: int = typer.Option(200, help="Mock candle count"),
    seed: int = typer.Option(42, help="Mock random seed"),
    as_json: bool = typer.Option(False, "--json", help="Print the full Result as JSON"),
    tail: int = typer.Option(10, help="Values to show per series (0 = all)"),
):
    """
    Compute one indicator over candles from a feed.
    """
    from ta_engine.indicators.registry import compute as run_indicator, get_indicator

    try:
        spec = get_indicator(indicator)
    except KeyError as e:
        typer.echo(f"❌ {e.args[0]}")
        raise typer.Exit(code=1)

    try:
        params = parse_params(param)
    except typer.BadParameter as e:
        typer.echo(f"❌ {e.message}")
        raise typer.Exit(code=1)

    candles = _load(_build_feed(csv, symbol, interval, regime, bars, seed, yahoo))
    open_, high, low, close, volume = get_ohlcv_slices(candles)
    data = {'open': open_, 'high': high, 'low': low, 'close': close, 'volume': volume}

    try:
        result = run_indicator(spec.name, data, start, end, **params)
    except TypeError as e:
        typer.echo(f"❌ Bad parameters for {spec.name}: {e}")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        raise typer.Exit(code=0 if result.ok else 1)

    try:
        enforce_success(result, spec.name.upper())
    except IndicatorError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)

    names = {'values': spec.name.upper()}
    names.update({extra: extra for extra in spec.extras})
    _print_result(f"{spec.description} ({len(candles)} candles)", result, tail, names)


@app.command()
def demo(
    csv: Optional[str] = typer.Option(None, help="CSV file with time,open,high,low,close,volume"),
    regime: str = typer.Option("trending", help="Mock regime when no CSV is given"),
    bars: int = typer.Option(200, help="Mock candle count"),
    seed: int = typer.Option(42, help="Mock random seed"),
    tail: int = typer.Option(5, help="Values to show per series (0 = all)"),
):
    """
    Run the example indicator set over one candle series.
    """
    from ta_engine.indicators import (
        adx, apo, atr, bbands, cci, ema, macd, mfi, obv, roc, rsi, sma, stoch, stoch_rsi, willr,
    )

    candles = _load(_build_feed(csv, None, "1d", regime, bars, seed))
    _, high, low, close, volume = get_ohlcv_slices(candles)
    end = len(close) - 1
    typer.echo(f"📊 {len(candles)} candles loaded")

    runs = [
        ("Simple Moving Average (SMA 5)", sma(0, end, close, 5), {'values': 'SMA'}),
        ("Exponential Moving Average (EMA 5)", ema(0, end, close, 5), {'values': 'EMA'}),
        ("Relative Strength Index (RSI 14)", rsi(0, end, close, 14), {'values': 'RSI'}),
        ("MACD (12, 26, 9)", macd(0, end, close, 12, 26, 9),
         {'values': 'MACD Line', 'signal': 'Signal Line', 'hist': 'Histogram'}),
        ("Bollinger Bands (20, 2, 2)", bbands(0, end, close, 20, 2.0, 2.0),
         {'values': 'Middle Band', 'upper_band': 'Upper Band', 'lower_band': 'Lower Band'}),
        ("Average True Range (ATR 14)", atr(0, end, high, low, close, 14), {'values': 'ATR'}),
        ("Stochastic Oscillator (5, 3, 3)", stoch(0, end, high, low, close, 5, 3, slowd_period=3),
         {'values': 'Slow K', 'slow_d': 'Slow D'}),
        ("On Balance Volume (OBV)", obv(0, end, close, volume), {'values': 'OBV'}),
        ("Average Directional Index (ADX 14)", adx(0, end, high, low, close, 14),
         {'values': 'ADX', 'plus_di': '+DI', 'minus_di': '-DI'}),
        ("Commodity Channel Index (CCI 14)", cci(0, end, high, low, close, 14), {'values': 'CCI'}),
        ("Williams %R (14)", willr(0, end, high, low, close, 14), {'values': 'Williams %R'}),
        ("Money Flow Index (MFI 14)", mfi(0, end, high, low, close, volume, 14), {'values': 'MFI'}),
        ("Rate of Change (ROC 10)", roc(0, end, close, 10), {'values': 'ROC'}),
        ("Stochastic RSI (14, 14, 3)", stoch_rsi(0, end, close, 14, 14, 3),
         {'values': 'StochRSI', 'fast_d': 'StochRSI Signal'}),
        ("Absolute Price Oscillator (APO 12, 26)", apo(0, end, close, 12, 26), {'values': 'APO'}),
    ]

    failures = 0
    for label, result, names in runs:
        if not result.ok:
            failures += 1
            typer.echo(f"\n{label}:\n   ❌ {result.ret_code.name}: {result.reason}")
            continue
        _print_result(label, result, tail, names)

    if failures:
        raise typer.Exit(code=1)


@app.command()
def snapshot(
    csv: Optional[str] = typer.Option(None, help="CSV file with time,open,high,low,close,volume"),
    symbol: Optional[str] = typer.Option(None, help="Binance symbol (e.g. BTC/USDT)"),
    yahoo: Optional[str] = typer.Option(None, help="Yahoo Finance ticker (e.g. AAPL, BTC-USD)"),
    interval: str = typer.Option("1d", help="Binance or Yahoo candle interval"),
    regime: str = typer.Option("trending", help="Mock regime (trending/ranging/volatile)"),
    bars: int = typer.Option(200, help="Mock candle count"),
    seed: int = typer.Option(42, help="Mock random seed"),
):
    """
    Print the latest value of every service indicator as JSON.
    """
    from ta_engine.services.indicator_service import IndicatorService

    candles = _load(_build_feed(csv, symbol, interval, regime, bars, seed, yahoo))
    try:
        snap = IndicatorService().compute_frame(candles_to_frame(candles), symbol or yahoo or interval)
    except (ValueError, IndicatorError) as e:
        typer.echo(f"❌ Snapshot failed: {e}")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(snap.to_dict(), indent=2))


@app.command()
def validate(
    csv: Optional[str] = typer.Option(None, help="CSV file with time,open,high,low,close,volume"),
    regime: str = typer.Option("volatile", help="Mock regime when no CSV is given"),
    bars: int = typer.Option(300, help="Mock candle count"),
    seed: int = typer.Option(42, help="Mock random seed"),
):
    """
    Cross-check the engines against pandas reference calculations.
    """
    from ta_engine.indicators.validation import validate_all_indicators

    candles = _load(_build_feed(csv, None, "1d", regime, bars, seed))
    results = validate_all_indicators(candles_to_frame(candles))

    for check in results['validations']:
        mark = "✅" if check.get('passed') else "❌"
        detail = check.get('error') or f"max_diff={check['max_diff']:.2e} samples={check['samples']}"
        typer.echo(f"{mark} {check['indicator']}: {detail}")

    typer.echo(f"\n{results['passed_count']}/{results['total_count']} checks passed")
    if not results['all_passed']:
        raise typer.Exit(code=1)


@app.command()
def indicators():
    """List available indicators."""
    from ta_engine.indicators.registry import INDICATORS

    for name, spec in sorted(INDICATORS.items()):
        extras = f" (+{', '.join(spec.extras)})" if spec.extras else ""
        typer.echo(f"{name:10s} {spec.description} [{', '.join(spec.inputs)}]{extras}")


if __name__ == "__main__":
    app()
