# fridaygt/schemas/stats.py
from sqlmodel import SQLModel


class LapStatistics(SQLModel):
    """
    Aggregate over a set of lap times.

    fastest_time_ms / average_time_ms are None when there are no laps.
    """

    total_laps: int = 0
    fastest_time_ms: int | None = None
    average_time_ms: int | None = None
    unique_tracks: int = 0
    unique_drivers: int = 0
