# fridaygt/services/stats.py
from typing import Iterable

from fridaygt.models.lap_time import LapTime
from fridaygt.schemas.stats import LapStatistics


def compute_lap_statistics(lap_times: Iterable[LapTime]) -> LapStatistics:
    """
    Totals over a set of laps; average is rounded to the nearest ms.
    """
    laps = list(lap_times)
    if not laps:
        return LapStatistics()

    times = [lt.time_ms for lt in laps]
    return LapStatistics(
        total_laps=len(laps),
        fastest_time_ms=min(times),
        average_time_ms=round(sum(times) / len(times)),
        unique_tracks=len({lt.track_id for lt in laps}),
        unique_drivers=len({lt.user_id for lt in laps}),
    )
