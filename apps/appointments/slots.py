# apps/appointments/slots.py
"""
Open slot derivation.

Pure functions over a weekly template, the active bookings for a date and
the current local time. Nothing here touches the database, so it is safe to
call from anywhere and as often as needed.

Malformed template data (inverted or unparseable intervals, a break that
ends before it starts, a non-positive duration) never raises; it only yields
fewer slots.
"""
from datetime import datetime, time

from core.constants import TIME_FORMAT


def to_minutes(value):
    """Minutes since midnight for 'HH:MM' or a time, None when unparseable"""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.strptime(value.strip(), TIME_FORMAT)
    except ValueError:
        return None
    return parsed.hour * 60 + parsed.minute


def format_minutes(minutes):
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def overlaps(start1, end1, start2, end2):
    return start1 < end2 and start2 < end1


def _working_intervals(time_slots):
    for interval in time_slots or []:
        if not isinstance(interval, dict) or interval.get('is_available', True) is False:
            continue
        start = to_minutes(interval.get('start_time'))
        end = to_minutes(interval.get('end_time'))
        if start is None or end is None or start >= end:
            continue
        yield start, end


def _break_window(schedule):
    start = to_minutes(getattr(schedule, 'break_start', None))
    end = to_minutes(getattr(schedule, 'break_end', None))
    if start is None or end is None or start >= end:
        return None
    return start, end


def generate_candidates(schedule, duration_minutes=None):
    """Every slot start the template offers, before bookings and the clock"""
    if schedule is None or not schedule.is_available or not schedule.time_slots:
        return []

    duration = duration_minutes or schedule.slot_duration_minutes
    if not duration or duration <= 0:
        return []

    break_window = _break_window(schedule)
    candidates = set()

    for start, end in _working_intervals(schedule.time_slots):
        current = start
        while current + duration <= end:
            if break_window is None or not overlaps(current, current + duration, *break_window):
                candidates.add(current)
            current += duration

    return sorted(candidates)


def compute_open_slots(schedule, booked_times, target_date, now, duration_minutes=None):
    """Ordered 'HH:MM' starts still bookable on target_date

    booked_times holds the 'HH:MM' starts of active appointments. now is a
    naive local datetime; on today's date only starts strictly after it
    survive.
    """
    booked = {to_minutes(value) for value in booked_times or ()}
    is_today = target_date == now.date()

    open_slots = []
    for minutes in generate_candidates(schedule, duration_minutes):
        if minutes in booked:
            continue
        if is_today and datetime.combine(target_date, time(minutes // 60, minutes % 60)) <= now:
            continue
        open_slots.append(format_minutes(minutes))

    return open_slots
