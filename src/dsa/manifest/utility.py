import math


IEC_SUFFIXES = [" B", " KB", " MB", " GB", " TB", " PB", " EB"]


def max_levels():
    return 7


def level_name(level: int) -> str:
    return f"L{level}"


def humanize(size: int) -> str:
    if size < 10:
        return f"{size}"

    # largest power of 1024 not above size
    exponent = 0
    while exponent < len(IEC_SUFFIXES) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1

    value = math.floor(size / 1024**exponent * 10 + 0.5) / 10
    if value < 10:
        return f"{value:.1f}{IEC_SUFFIXES[exponent]}"
    return f"{math.floor(value + 0.5)}{IEC_SUFFIXES[exponent]}"


class ManifestError(Exception):
    """Base class for malformed or inconsistent manifest input."""

    pass


class VersionConfiguration:
    def __init__(self, num_levels: int = max_levels(), strict: bool = False):
        # strict: raise on deletes of non-resident files and re-adds of resident ones
        self.num_levels = num_levels
        self.strict = strict
