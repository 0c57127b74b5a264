import datetime
from typing import Union


def get_datetime_stamp(microseconds=False, split=False) -> Union[str,tuple]:
    """Used for every text timestamp, so file names sort in time order

    Args:
        microseconds (bool, optional): Whether to include us in timestamp. Defaults to False.
        split (bool, optional): Whether to return date and time seperately. Defaults to False.

    Returns:
        str or tuple: Returns str timestamp or tuple (date_ts,time_ts) if split==True
    """
    fmt = "%Y-%m-%dT%H-%M-%S-%f" if microseconds else "%Y-%m-%dT%H-%M-%S"
    now = datetime.datetime.now(datetime.timezone.utc).strftime(fmt)
    if not split:
        return now
    return tuple(now.split("T"))


def deep_update(base:dict, other:dict) -> dict:
    """Merge other into a copy of base, nested dicts are merged key by key"""
    merged = dict(base)
    for key, value in other.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_update(merged[key], value)
        else:
            merged[key] = value
    return merged
