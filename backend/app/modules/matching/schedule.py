"""Weekly schedule overlap between a job and a nanny.

Schedules map weekday names to ``{"enabled": bool, "startTime": "HH:MM",
"endTime": "HH:MM"}``. Overlap is measured in minutes of the job's
required time that the nanny covers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

DAYS_OF_WEEK = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

DAY_SHORT_NAMES = {
    "monday": "Seg",
    "tuesday": "Ter",
    "wednesday": "Qua",
    "thursday": "Qui",
    "friday": "Sex",
    "saturday": "Sáb",
    "sunday": "Dom",
}

MIN_SCHEDULE_OVERLAP = 80

Schedule = Mapping[str, Mapping[str, Any]]


@dataclass
class DayOverlap:
    job_enabled: bool
    nanny_enabled: bool
    overlap_minutes: int
    job_minutes: int
    overlap_percentage: int
    overlap_start: str | None = None
    overlap_end: str | None = None


@dataclass
class ScheduleOverlap:
    overlap_percentage: int
    total_overlap_minutes: int = 0
    total_job_minutes: int = 0
    days: dict[str, DayOverlap] = field(default_factory=dict)
    matching_days: list[str] = field(default_factory=list)
    missing_days: list[str] = field(default_factory=list)


def time_to_minutes(value: str | None) -> int:
    if not value:
        return 0
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _day_overlap(job_day: Mapping[str, Any] | None, nanny_day: Mapping[str, Any] | None) -> DayOverlap:
    job_enabled = bool(job_day and job_day.get("enabled"))
    nanny_enabled = bool(nanny_day and nanny_day.get("enabled"))
    if not job_enabled:
        return DayOverlap(False, nanny_enabled, 0, 0, 100)

    job_start = time_to_minutes(job_day.get("startTime"))
    job_end = time_to_minutes(job_day.get("endTime"))
    job_minutes = max(0, job_end - job_start)
    if not nanny_enabled:
        return DayOverlap(True, False, 0, job_minutes, 0)

    start = max(job_start, time_to_minutes(nanny_day.get("startTime")))
    end = min(job_end, time_to_minutes(nanny_day.get("endTime")))
    overlap = max(0, end - start)
    pct = round(overlap / job_minutes * 100) if job_minutes > 0 else 100
    return DayOverlap(
        True,
        True,
        overlap,
        job_minutes,
        pct,
        overlap_start=minutes_to_time(start) if overlap > 0 else None,
        overlap_end=minutes_to_time(end) if overlap > 0 else None,
    )


def calculate_schedule_overlap(job_schedule: Schedule | None, nanny_schedule: Schedule | None) -> ScheduleOverlap:
    if not job_schedule:
        return ScheduleOverlap(overlap_percentage=100)

    result = ScheduleOverlap(overlap_percentage=100)
    for day in DAYS_OF_WEEK:
        info = _day_overlap(job_schedule.get(day), (nanny_schedule or {}).get(day))
        result.days[day] = info
        result.total_overlap_minutes += info.overlap_minutes
        result.total_job_minutes += info.job_minutes
        if info.job_enabled:
            (result.matching_days if info.overlap_minutes > 0 else result.missing_days).append(day)

    if result.total_job_minutes > 0:
        result.overlap_percentage = round(result.total_overlap_minutes / result.total_job_minutes * 100)
    return result


def meets_schedule_requirement(
    job_schedule: Schedule | None, nanny_schedule: Schedule | None, minimum: int = MIN_SCHEDULE_OVERLAP
) -> bool:
    return calculate_schedule_overlap(job_schedule, nanny_schedule).overlap_percentage >= minimum


def format_schedule_summary(result: ScheduleOverlap) -> str:
    if result.total_job_minutes == 0:
        return "Sem requisitos de horário específicos"
    total_hours = round(result.total_job_minutes / 60, 1)
    if result.overlap_percentage == 100:
        return f"Disponibilidade total ({total_hours}h/semana)"
    if result.overlap_percentage == 0:
        return "Sem disponibilidade nos horários necessários"
    hours = round(result.total_overlap_minutes / 60, 1)
    missing = ""
    if result.missing_days:
        missing = " - Indisponível: " + ", ".join(DAY_SHORT_NAMES[d] for d in result.missing_days)
    return f"{result.overlap_percentage}% de disponibilidade ({hours}h de {total_hours}h/semana){missing}"


SLOT_PERIODS = {
    "MORNING": ("06:00", "12:00"),
    "AFTERNOON": ("12:00", "18:00"),
    "EVENING": ("18:00", "23:00"),
    "NIGHT": ("18:00", "23:00"),
    "OVERNIGHT": ("22:00", "23:59"),
}


def slots_to_schedule(slots: Iterable[str] | None) -> dict[str, dict[str, Any]]:
    """Turn availability slots like ``MONDAY_MORNING`` into a per-day schedule.

    Several slots on the same day collapse into one window from the earliest
    start to the latest end.
    """
    schedule: dict[str, dict[str, Any]] = {}
    for slot in slots or []:
        day, _, period = slot.partition("_")
        day = day.lower()
        if day not in DAYS_OF_WEEK or period not in SLOT_PERIODS:
            continue
        start, end = SLOT_PERIODS[period]
        current = schedule.get(day)
        if current is None:
            schedule[day] = {"enabled": True, "startTime": start, "endTime": end}
            continue
        current["startTime"] = min(current["startTime"], start)
        current["endTime"] = max(current["endTime"], end)
    return schedule
