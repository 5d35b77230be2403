from datetime import datetime
from typing import Dict, Iterable, List

from weatherwidget.models import CanonicalWeather, ChartPoint, ForecastDay, HourSample, RawSample, TemperatureUnit
from weatherwidget.units import c_to_f

MAX_FORECAST_DAYS = 3


def _sample_date(sample: RawSample) -> str:
    # the sample's own wall clock decides the day; no timezone shift here
    return datetime.fromisoformat(sample.time_iso).date().isoformat()


def aggregate_days(
    samples: Iterable[RawSample],
    sunrise: str = "",
    sunset: str = "",
    max_days: int = MAX_FORECAST_DAYS,
) -> List[ForecastDay]:
    """Group flat time-ordered samples into at most ``max_days`` forecast days.

    Min/max come from the grouped samples, the representative condition is the
    first sample of each day, and every day gets the same sunrise/sunset since
    flat-list providers only report them for the current day.
    """
    groups: Dict[str, List[RawSample]] = {}
    for sample in samples:
        groups.setdefault(_sample_date(sample), []).append(sample)

    days: List[ForecastDay] = []
    for date_iso in sorted(groups)[:max_days]:
        group = groups[date_iso]
        max_c = max(s.temp_c for s in group)
        min_c = min(s.temp_c for s in group)
        days.append(
            ForecastDay(
                date_iso=date_iso,
                max_temp_c=max_c,
                max_temp_f=c_to_f(max_c),
                min_temp_c=min_c,
                min_temp_f=c_to_f(min_c),
                condition_text=group[0].condition_text,
                condition_icon=group[0].condition_icon,
                sunrise=sunrise,
                sunset=sunset,
                hours=[HourSample.from_celsius(s.time_iso, s.temp_c) for s in group],
            )
        )
    return days


def hourly_series(
    weather: CanonicalWeather,
    unit: TemperatureUnit = "celsius",
    start_hour: int = 0,
    hours: int = 24,
) -> List[ChartPoint]:
    """Chart input: the first day's hours from ``start_hour`` on, in ``unit``.

    When no sample is left at or after ``start_hour`` (a 3-hourly forecast
    late in the local day starts tomorrow) the series starts at the first
    sample instead.
    """
    first_day = weather.days[0].hours
    samples = [s for s in first_day if datetime.fromisoformat(s.time_iso).hour >= start_hour] or first_day
    samples = samples[:hours]
    return [
        ChartPoint(time_iso=s.time_iso, temp=s.temp_c if unit == "celsius" else s.temp_f)
        for s in samples
    ]
