"""Travel time estimates and speed unit conversion."""

import math

from routecraft.models import SpeedSetting, SpeedUnit, TimeEstimate

KM_PER_MILE = 1.60934
METERS_PER_MILE = 1609.34
METERS_PER_KM = 1000.0


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def estimate_time(distance_meters: float, speed: float, unit: SpeedUnit | str) -> TimeEstimate:
    """
    Estimate travel time for a distance at an average speed.

    Args:
        distance_meters: Route distance in meters
        speed: Average speed in ``unit`` per hour
        unit: "mph" or "kph"

    Returns:
        Whole hours plus rounded minutes (0-59)
    """
    unit = SpeedUnit(unit)
    if speed <= 0:
        raise ValueError("speed must be positive")
    if distance_meters < 0:
        raise ValueError("distance must not be negative")

    per_unit = METERS_PER_MILE if unit is SpeedUnit.MPH else METERS_PER_KM
    total_hours = (distance_meters / per_unit) / speed

    hours = math.floor(total_hours)
    minutes = _round_half_up((total_hours - hours) * 60)
    if minutes == 60:
        hours += 1
        minutes = 0

    return TimeEstimate(hours=hours, minutes=minutes)


def convert_speed(speed: float, from_unit: SpeedUnit | str, to_unit: SpeedUnit | str) -> int:
    """Convert a speed between mph and kph, rounded to a whole number."""
    from_unit, to_unit = SpeedUnit(from_unit), SpeedUnit(to_unit)
    if from_unit is to_unit:
        return _round_half_up(speed)
    if from_unit is SpeedUnit.MPH:
        return _round_half_up(speed * KM_PER_MILE)
    return _round_half_up(speed / KM_PER_MILE)


def toggle_unit(setting: SpeedSetting) -> SpeedSetting:
    """Switch between mph and kph, keeping the same pace."""
    new_unit = SpeedUnit.KPH if setting.unit is SpeedUnit.MPH else SpeedUnit.MPH
    return SpeedSetting(
        speed=max(1, convert_speed(setting.speed, setting.unit, new_unit)),
        unit=new_unit,
    )


def format_estimate(estimate: TimeEstimate | None) -> str:
    if estimate is None:
        return "0m"
    if estimate.hours > 0:
        return f"{estimate.hours}h {estimate.minutes}m"
    return f"{estimate.minutes}m"


def format_distance(distance_meters: float | None) -> str:
    return f"{(distance_meters or 0) / 1000:.1f} km"
