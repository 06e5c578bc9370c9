from typing import Union

BoolOption = Union[bool, str, None]


def coerce_bool(value: BoolOption, default: bool = False) -> bool:
    """
    Normalizes a boolean tool option that may arrive as a bool or a string.

    Only "true" (any case) and "1" are truthy strings; every other string is
    falsy. ``None`` means the option was omitted and yields ``default``.
    """
    if value is None:
        return default
    if isinstance(value, str):
        return value.lower() == "true" or value == "1"
    return bool(value)
