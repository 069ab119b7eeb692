"""
Data feed boundary.

A feed turns a time range into a list of OHLCV records. Feeds hold only
configuration; each ``get_data`` call fetches afresh.
"""

from datetime import datetime
from typing import List, Optional, Protocol, Union

from ta_engine.shared.models.data import OHLCV


TimeBound = Optional[Union[datetime, int, float]]

# Standard interval notation -> Yahoo-style notation
_INTERVALS = {
    '1m': '1m',
    '5m': '5m',
    '15m': '15m',
    '30m': '30m',
    '1h': '1h',
    '1d': '1d',
    '1w': '1wk',
    '1M': '1mo',
}


class DataFeed(Protocol):
    """Anything that can return OHLCV records for a time range."""

    def get_data(self, start_time: TimeBound = None, end_time: TimeBound = None) -> List[OHLCV]:
        ...


def convert_interval(interval: str) -> str:
    """
    Convert standard interval notation ('1w', '1M', ...) to the
    week/month spelling used by Yahoo-style APIs.

    Unknown intervals fall back to '1d'.
    """
    return _INTERVALS.get(interval, '1d')


def to_epoch_seconds(value: TimeBound) -> Optional[int]:
    """Normalise a datetime or Unix-seconds bound; None means unbounded."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return int(value.timestamp())
    return int(value)
