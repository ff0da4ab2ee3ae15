from models.Schedules import ClassSection, ScheduleSlot

def check_time_overlap(start1, end1, start2, end2) -> bool:
    """Check if two half-open time periods [start, end) overlap"""
    return start1 < end2 and end1 > start2

def slots_conflict(slot_a: ScheduleSlot, slot_b: ScheduleSlot) -> bool:
    """Two slots conflict iff they fall on the same day and their times overlap"""
    if slot_a.day != slot_b.day:
        return False
    return check_time_overlap(slot_a.start_time, slot_a.end_time, slot_b.start_time, slot_b.end_time)

def sections_conflict(section_a: ClassSection, section_b: ClassSection) -> bool:
    """True if any slot of section_a conflicts with any slot of section_b"""
    return any(
        slots_conflict(slot_a, slot_b)
        for slot_a in section_a.slots
        for slot_b in section_b.slots
    )
