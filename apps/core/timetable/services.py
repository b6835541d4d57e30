from __future__ import annotations

import logging
from io import BytesIO

from PIL import Image, ImageDraw
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q

from .models import DAY_CHOICES, ClassSchedule


logger = logging.getLogger(__name__)

WEEKDAY_ORDER = [day for day, _ in DAY_CHOICES]
DAY_LABELS = dict(DAY_CHOICES)


def _overlapping_slots(start_time, end_time):
    # Half-open windows: a slot ending exactly when another begins is free.
    return (
        Q(start_time__lte=start_time, end_time__gt=start_time)
        | Q(start_time__lt=end_time, end_time__gte=end_time)
        | Q(start_time__gte=start_time, end_time__lte=end_time)
    )


def _slot_label(schedule: ClassSchedule) -> str:
    return f"{schedule.start_time:%H:%M} - {schedule.end_time:%H:%M}"


def check_time_conflict(
    *,
    schedule_day,
    start_time,
    end_time,
    teacher_id=None,
    guest_teacher_id=None,
    room_number='',
    academic_year='',
    semester=None,
    exclude_id=None,
) -> str | None:
    """
    Look for an active schedule that would collide with the candidate slot.

    Teacher, guest teacher and room are checked in that order and the first
    hit wins. Returns a human readable description of the clash or ``None``
    when the slot is free. ``exclude_id`` keeps a schedule from clashing
    with itself during updates.
    """
    base = ClassSchedule.objects.active().filter(
        _overlapping_slots(start_time, end_time),
        schedule_day=schedule_day,
    ).for_academic_period(academic_year=academic_year, semester=semester)

    if exclude_id is not None:
        base = base.exclude(pk=exclude_id)
    base = base.order_by('start_time', 'id')

    if teacher_id:
        conflict = base.filter(teacher_id=teacher_id).first()
        if conflict:
            return f"Teacher has a conflicting class schedule at {_slot_label(conflict)}"

    if guest_teacher_id:
        conflict = base.filter(guest_teacher_id=guest_teacher_id).first()
        if conflict:
            return f"Guest teacher has a conflicting class schedule at {_slot_label(conflict)}"

    if room_number:
        conflict = base.filter(room_number=room_number).first()
        if conflict:
            return f"Room {room_number} is already booked at {_slot_label(conflict)}"

    return None


def conflict_for_schedule(schedule: ClassSchedule) -> str | None:
    return check_time_conflict(
        schedule_day=schedule.schedule_day,
        start_time=schedule.start_time,
        end_time=schedule.end_time,
        teacher_id=schedule.teacher_id,
        guest_teacher_id=schedule.guest_teacher_id,
        room_number=schedule.room_number,
        academic_year=schedule.academic_year,
        semester=schedule.semester,
        exclude_id=schedule.pk,
    )


@transaction.atomic
def save_class_schedule(*, schedule: ClassSchedule, actor=None) -> str | None:
    """
    Validate and persist a new or edited schedule.

    Returns the conflict message and leaves the database untouched when the
    slot clashes; returns ``None`` once the schedule is saved.
    """
    schedule.full_clean()

    conflict = conflict_for_schedule(schedule)
    if conflict:
        logger.info('Rejected class schedule for %s: %s', schedule.schedule_day, conflict)
        return conflict

    if actor is not None and getattr(actor, 'is_authenticated', False):
        if schedule.pk is None:
            schedule.created_by = actor
        schedule.updated_by = actor

    schedule.save()
    return None


@transaction.atomic
def delete_class_schedule(schedule: ClassSchedule):
    attendance_count = schedule.attendances.count()
    if attendance_count > 0:
        raise ValidationError(
            f"Cannot delete class schedule. {attendance_count} attendance record(s) exist for this schedule."
        )
    schedule.delete()


def build_weekly_schedule(*, department=None, academic_year=None, semester=None):
    schedules = ClassSchedule.objects.active().for_academic_period(
        academic_year=academic_year,
        semester=semester,
    ).select_related(
        'subject',
        'subject__department',
        'teacher',
        'teacher__user',
        'guest_teacher',
        'guest_teacher__user',
    ).order_by('start_time', 'id')

    if department is not None:
        schedules = schedules.filter(subject__department=department)

    weekly = {day_key: [] for day_key in WEEKDAY_ORDER}
    for schedule in schedules:
        weekly[schedule.schedule_day].append(schedule)
    return weekly


def _images_to_pdf_bytes(images):
    if not images:
        return b''
    rgb_images = [img.convert('RGB') for img in images]
    output = BytesIO()
    rgb_images[0].save(output, format='PDF', save_all=True, append_images=rgb_images[1:])
    return output.getvalue()


def _instructor_label(schedule: ClassSchedule) -> str:
    if schedule.teacher_id:
        return schedule.teacher.employee_id
    return f"{schedule.guest_teacher.employee_id} (guest)"


def _draw_weekly_pdf(title, weekly):
    width = 1800
    row_h = 110
    col_w_day = 180
    max_slots = max([len(items) for items in weekly.values()] + [1])
    col_w = max(180, (width - col_w_day - 40) // max_slots)
    height = 220 + row_h * len(weekly)

    image = Image.new('RGB', (width, height), 'white')
    draw = ImageDraw.Draw(image)

    draw.text((30, 20), title, fill='black')

    start_x = 20
    start_y = 110

    for ridx, day_key in enumerate(WEEKDAY_ORDER):
        y1 = start_y + row_h * ridx
        y2 = y1 + row_h
        draw.rectangle((start_x, y1, start_x + col_w_day, y2), outline='black')
        draw.text((start_x + 10, y1 + 40), DAY_LABELS[day_key], fill='black')

        day_items = weekly.get(day_key, [])
        if not day_items:
            x1 = start_x + col_w_day
            draw.rectangle((x1, y1, x1 + col_w, y2), outline='black')
            draw.text((x1 + 8, y1 + 40), '-', fill='black')
            continue

        for cidx, schedule in enumerate(day_items):
            x1 = start_x + col_w_day + cidx * col_w
            x2 = x1 + col_w
            draw.rectangle((x1, y1, x2, y2), outline='black')
            draw.text((x1 + 8, y1 + 12), f"{schedule.start_time:%H:%M}-{schedule.end_time:%H:%M}", fill='black')
            draw.text((x1 + 8, y1 + 44), schedule.subject.code, fill='black')
            room = f" | {schedule.room_number}" if schedule.room_number else ''
            draw.text((x1 + 8, y1 + 74), f"{_instructor_label(schedule)}{room}", fill=(0, 0, 160))

    return _images_to_pdf_bytes([image])


def generate_weekly_schedule_pdf(*, department=None, academic_year=None, semester=None):
    weekly = build_weekly_schedule(
        department=department,
        academic_year=academic_year,
        semester=semester,
    )
    parts = ['Weekly Class Schedule']
    if department is not None:
        parts.append(department.name)
    if academic_year:
        parts.append(academic_year)
    if semester:
        parts.append(f"Semester {semester}")
    return _draw_weekly_pdf(' | '.join(parts), weekly)
