"""Forecast accuracy, seasonal positioning and naive trend extrapolation.

All percentage-based measures return None when their denominator is zero
rather than raising, so one empty month never hides the rest of a series.
"""

from __future__ import annotations

import pandas as pd

from stocklens.features.analytics.schemas import (
    AccuracyRating,
    ForecastBias,
    ForecastPerformance,
    RegionPerformance,
    SalesPerformance,
)
from stocklens.features.analytics.statistics import SERIES_KEYS

# (exclusive upper bound, rating); anything else is Very Poor
ACCURACY_BANDS: tuple[tuple[float, AccuracyRating], ...] = (
    (5.0, AccuracyRating.EXCELLENT),
    (10.0, AccuracyRating.GOOD),
    (20.0, AccuracyRating.FAIR),
    (30.0, AccuracyRating.POOR),
)

OVER_FORECAST_RATIO = 1.1
UNDER_FORECAST_RATIO = 0.9
TREND_WEIGHT = 0.5

# (ratio to series average, rating), checked with strict ">" in order
REGION_BANDS: tuple[tuple[float, RegionPerformance], ...] = (
    (1.2, RegionPerformance.HIGH),
    (1.0, RegionPerformance.GOOD),
    (0.8, RegionPerformance.AVERAGE),
)


def absolute_error(actual: float, forecast: float) -> float:
    return abs(actual - forecast)


def absolute_percentage_error(actual: float, forecast: float) -> float | None:
    """Absolute error as a percentage of actual; None when actual is zero."""
    if actual == 0:
        return None
    return abs(actual - forecast) / actual * 100


def accuracy_rating(percentage_error: float | None) -> AccuracyRating:
    """Band an absolute percentage error.

    Bands are strict upper bounds: 4.9 is Excellent, 5.0 is Good. An undefined
    error is Very Poor.
    """
    if percentage_error is None:
        return AccuracyRating.VERY_POOR
    for upper, rating in ACCURACY_BANDS:
        if percentage_error < upper:
            return rating
    return AccuracyRating.VERY_POOR


def forecast_bias(actual: float, forecast: float) -> ForecastBias:
    """Over when forecast exceeds actual by more than 10%, under when below by more than 10%."""
    if forecast > actual * OVER_FORECAST_RATIO:
        return ForecastBias.OVER_FORECASTED
    if forecast < actual * UNDER_FORECAST_RATIO:
        return ForecastBias.UNDER_FORECASTED
    return ForecastBias.WELL_CALIBRATED


def _position(value: float, peak: float, trough: float, average: float) -> int:
    # 0 peak, 1 trough, 2 above average, 3 below average
    if value == peak:
        return 0
    if value == trough:
        return 1
    if value > average:
        return 2
    return 3


def sales_performance(
    value: float, peak: float, trough: float, average: float
) -> SalesPerformance:
    """Label a month's sales against its series extremes and average.

    Every month equal to the series maximum is a peak (ties included); a
    single-month series is therefore a peak.
    """
    labels = (
        SalesPerformance.PEAK,
        SalesPerformance.TROUGH,
        SalesPerformance.ABOVE_AVERAGE,
        SalesPerformance.BELOW_AVERAGE,
    )
    return labels[_position(value, peak, trough, average)]


def forecast_performance(
    value: float, peak: float, trough: float, average: float
) -> ForecastPerformance:
    """Same as ``sales_performance`` for forecast totals."""
    labels = (
        ForecastPerformance.PEAK,
        ForecastPerformance.TROUGH,
        ForecastPerformance.ABOVE_AVERAGE,
        ForecastPerformance.BELOW_AVERAGE,
    )
    return labels[_position(value, peak, trough, average)]


def variance_from_average(value: float, average: float) -> float | None:
    """Percentage deviation from the average; None when the average is zero."""
    if average == 0:
        return None
    return (value - average) / average * 100


def region_performance(value: float, average: float) -> RegionPerformance:
    for ratio, rating in REGION_BANDS:
        if value > average * ratio:
            return rating
    return RegionPerformance.LOW


def trend_prediction(current: float, previous: float | None) -> float | None:
    """Next-month estimate ``current + 0.5 * (current - previous)``.

    Returns None when there is no previous month to extrapolate from.
    """
    if previous is None or pd.isna(previous):
        return None
    return current + TREND_WEIGHT * (current - previous)


def add_previous_month(monthly: pd.DataFrame, keys: list[str] | None = None) -> pd.DataFrame:
    """Add ``previous_sales``: the prior month's total within the same series.

    Months are ordered by calendar month number inside each series; the first
    month of a series gets NaN.
    """
    keys = list(keys or SERIES_KEYS)
    result = monthly.sort_values([*keys, "month_num"], kind="mergesort").copy()
    series = result.groupby(keys, sort=False, observed=True)["total_sales"]
    result["previous_sales"] = series.shift(1)
    return result.reset_index(drop=True)
