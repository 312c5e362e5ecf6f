"""Closed numeric ranges for ray parameters and color channels.

An Interval bounds the valid ray parameters of an intersection query and
clamps color channels on output. ``min > max`` denotes an empty range.
"""

import math

import taichi as ti


@ti.dataclass
class Interval:
    """A range of doubles [min, max].

    Attributes:
        min: Lower bound.
        max: Upper bound. Smaller than min for the empty interval.
    """

    min: ti.f64
    max: ti.f64


@ti.func
def make_interval(lo: ti.f64, hi: ti.f64) -> Interval:
    """Create an interval inside a kernel."""
    return Interval(min=lo, max=hi)


@ti.func
def empty_interval() -> Interval:
    """The empty interval (+inf, -inf)."""
    return Interval(min=math.inf, max=-math.inf)


@ti.func
def universe_interval() -> Interval:
    """The interval containing every double (-inf, +inf)."""
    return Interval(min=-math.inf, max=math.inf)


@ti.func
def interval_size(interval: Interval) -> ti.f64:
    """max - min. Negative iff the interval is empty."""
    return interval.max - interval.min


@ti.func
def interval_contains(interval: Interval, x: ti.f64) -> ti.i32:
    """Inclusive bounds test: min <= x <= max."""
    return interval.min <= x and x <= interval.max


@ti.func
def interval_surrounds(interval: Interval, x: ti.f64) -> ti.i32:
    """Exclusive bounds test: min < x < max.

    Intersection queries use this so that a hit exactly on a bound is
    rejected.
    """
    return interval.min < x and x < interval.max


@ti.func
def interval_clamp(interval: Interval, x: ti.f64) -> ti.f64:
    """Saturate x to [min, max]."""
    result = x
    if x < interval.min:
        result = interval.min
    if x > interval.max:
        result = interval.max
    return result
