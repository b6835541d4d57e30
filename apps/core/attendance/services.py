from __future__ import annotations

import calendar
import logging
from collections.abc import Mapping
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from functools import partial
from typing import NamedTuple

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from apps.core.students.models import Student

from .models import Attendance, AttendanceRewardFine


logger = logging.getLogger(__name__)

SWEEP_SCOPE_AFFECTED = 'affected'
SWEEP_SCOPE_ALL = 'all'

EXCELLENT_ATTENDANCE_THRESHOLD = Decimal('95')
GOOD_ATTENDANCE_THRESHOLD = Decimal('85')
POOR_ATTENDANCE_THRESHOLD = Decimal('75')

EXCELLENT_ATTENDANCE_REWARD = Decimal('500.00')
GOOD_ATTENDANCE_REWARD = Decimal('200.00')
POOR_ATTENDANCE_FINE = Decimal('100.00')


class RewardFineDecision(NamedTuple):
    type: str
    amount: Decimal
    reason: str


def _sweep_scope() -> str:
    scope = getattr(settings, 'REWARD_FINE_SWEEP_SCOPE', SWEEP_SCOPE_AFFECTED)
    if scope not in (SWEEP_SCOPE_AFFECTED, SWEEP_SCOPE_ALL):
        raise ValueError(f"Unknown REWARD_FINE_SWEEP_SCOPE: {scope!r}")
    return scope


def month_bounds(target_date):
    last_day = calendar.monthrange(target_date.year, target_date.month)[1]
    return date(target_date.year, target_date.month, 1), date(target_date.year, target_date.month, last_day)


def attendance_percentage(*, attended, total) -> Decimal:
    if total <= 0:
        return Decimal('0')
    return Decimal(attended) / Decimal(total) * Decimal('100')


def _two_places(value: Decimal) -> Decimal:
    return value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def classify_attendance(percentage) -> RewardFineDecision | None:
    """
    Map a monthly attendance percentage onto a reward, a fine or nothing.

    Tiers are checked top down and the first match wins, so 95% earns only
    the larger reward. Anything from 75% up to (not including) 85% is left
    alone.
    """
    percentage = Decimal(percentage)
    label = percentage.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)

    if percentage >= EXCELLENT_ATTENDANCE_THRESHOLD:
        return RewardFineDecision(
            AttendanceRewardFine.TYPE_REWARD,
            EXCELLENT_ATTENDANCE_REWARD,
            f"Excellent attendance: {label}%",
        )
    if percentage >= GOOD_ATTENDANCE_THRESHOLD:
        return RewardFineDecision(
            AttendanceRewardFine.TYPE_REWARD,
            GOOD_ATTENDANCE_REWARD,
            f"Good attendance: {label}%",
        )
    if percentage < POOR_ATTENDANCE_THRESHOLD:
        return RewardFineDecision(
            AttendanceRewardFine.TYPE_FINE,
            POOR_ATTENDANCE_FINE,
            f"Poor attendance: {label}%",
        )
    return None


def _validated_entries(entries):
    cleaned = []
    valid_statuses = {value for value, _ in Attendance.STATUS_CHOICES}
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise ValidationError(f"Entry {index + 1}: must be an object with student_id and status.")
        student_id = entry.get('student_id')
        status = entry.get('status')
        if student_id in (None, ''):
            raise ValidationError(f"Entry {index + 1}: student_id is required.")
        try:
            student_id = int(student_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Entry {index + 1}: student_id must be an integer.")
        if status not in valid_statuses:
            raise ValidationError(
                f"Entry {index + 1}: status must be one of {', '.join(sorted(valid_statuses))}."
            )
        cleaned.append((student_id, status))

    if not cleaned:
        raise ValidationError('At least one attendance entry is required.')

    requested_ids = {student_id for student_id, _ in cleaned}
    known_ids = set(Student.objects.filter(pk__in=requested_ids).values_list('id', flat=True))
    missing = sorted(requested_ids - known_ids)
    if missing:
        raise ValidationError(f"Unknown student id(s): {', '.join(str(pk) for pk in missing)}.")
    return cleaned


@transaction.atomic
def _save_attendance_rows(*, class_schedule, target_date, entries, marked_by=None):
    records = []
    marked_at = timezone.now()
    for student_id, status in _validated_entries(entries):
        record, _ = Attendance.objects.update_or_create(
            class_schedule=class_schedule,
            student_id=student_id,
            date=target_date,
            defaults={
                'status': status,
                'marked_by': marked_by,
                'marked_at': marked_at,
            },
        )
        records.append(record)
    return records


def mark_attendance(*, class_schedule, target_date, entries, marked_by=None):
    """
    Upsert one attendance row per entry for a class on a date.

    ``entries`` is an iterable of mappings with ``student_id`` and
    ``status``. The rows are written in one transaction; once it commits the
    monthly reward/fine sweep runs for the month of ``target_date``. A
    failing sweep is logged and never undoes the attendance write.
    """
    records = _save_attendance_rows(
        class_schedule=class_schedule,
        target_date=target_date,
        entries=entries,
        marked_by=marked_by,
    )

    student_ids = sorted({record.student_id for record in records})
    transaction.on_commit(
        partial(run_reward_fine_side_effect, target_date=target_date, student_ids=student_ids)
    )
    logger.info(
        'Marked %s attendance row(s) for class schedule %s on %s',
        len(records),
        class_schedule.pk,
        target_date,
    )
    return records


def recalculate_student_reward_fine(*, student, target_date):
    """Return ``(entry, outcome)`` where outcome is created/updated/neutral/skipped."""
    month_start, month_end = month_bounds(target_date)
    statuses = list(
        Attendance.objects.filter(
            student=student,
            date__range=(month_start, month_end),
        ).values_list('status', flat=True)
    )
    if not statuses:
        return None, 'skipped'

    attended = sum(1 for status in statuses if status in Attendance.ATTENDED_STATUSES)
    percentage = attendance_percentage(attended=attended, total=len(statuses))
    decision = classify_attendance(percentage)
    if decision is None:
        return None, 'neutral'

    # Entries of the opposite type from earlier sweeps are left as they are.
    entry = AttendanceRewardFine.objects.filter(
        student=student,
        month=month_start,
        type=decision.type,
    ).first()

    if entry is None:
        entry = AttendanceRewardFine.objects.create(
            student=student,
            month=month_start,
            type=decision.type,
            amount=decision.amount,
            reason=decision.reason,
            attendance_percentage=_two_places(percentage),
        )
        return entry, 'created'

    entry.amount = decision.amount
    entry.reason = decision.reason
    entry.attendance_percentage = _two_places(percentage)
    entry.save(update_fields=['amount', 'reason', 'attendance_percentage', 'updated_at'])
    return entry, 'updated'


def recalculate_monthly_rewards_and_fines(*, target_date, students=None):
    """
    Rebuild reward/fine entries for the calendar month containing ``target_date``.

    ``students`` defaults to every student. Each student is processed on its
    own, so a failure part way leaves earlier students' entries in place.
    """
    if students is None:
        students = Student.objects.order_by('id')

    result = {'created': [], 'updated': [], 'neutral': [], 'skipped': []}
    for student in students:
        entry, outcome = recalculate_student_reward_fine(student=student, target_date=target_date)
        result[outcome].append(entry if entry is not None else student)
    return result


def run_reward_fine_side_effect(*, target_date, student_ids=None):
    """
    Sweep the month of ``target_date`` once attendance has been committed.

    ``student_ids`` is the marked batch; it narrows the sweep only under the
    ``affected`` scope. Any failure, a bad scope setting included, is logged
    and swallowed.
    """
    try:
        students = None
        if student_ids is not None and _sweep_scope() == SWEEP_SCOPE_AFFECTED:
            students = Student.objects.filter(pk__in=student_ids).order_by('id')
        result = recalculate_monthly_rewards_and_fines(target_date=target_date, students=students)
    except Exception:
        logger.exception('Error calculating monthly rewards and fines for %s', target_date)
        return None

    logger.info(
        'Rewards/fines for %s: %s created, %s updated, %s neutral, %s skipped',
        f"{target_date:%Y-%m}",
        len(result['created']),
        len(result['updated']),
        len(result['neutral']),
        len(result['skipped']),
    )
    return result


def class_attendance_sheet(*, class_schedule, target_date):
    """Enrolled students of a class merged with whatever was marked on ``target_date``."""
    subject = class_schedule.subject
    students = Student.objects.active().filter(
        department_id=subject.department_id,
        semester=class_schedule.semester,
    ).select_related('user').order_by('roll_number')

    marked = {
        record.student_id: record
        for record in Attendance.objects.filter(class_schedule=class_schedule, date=target_date)
    }

    rows = []
    summary = {
        Attendance.STATUS_PRESENT: 0,
        Attendance.STATUS_ABSENT: 0,
        Attendance.STATUS_LATE: 0,
        'not_marked': 0,
    }
    for student in students:
        record = marked.get(student.pk)
        status = record.status if record else None
        summary[status or 'not_marked'] += 1
        rows.append({
            'student_id': student.pk,
            'roll_number': student.roll_number,
            'name': student.full_name,
            'status': status,
            'marked_at': record.marked_at.isoformat() if record else None,
        })

    summary['total'] = len(rows)
    return {'students': rows, 'summary': summary}


def filter_rewards_and_fines(*, student=None, month=None, type=None):
    queryset = AttendanceRewardFine.objects.select_related('student')
    if student is not None:
        queryset = queryset.filter(student=student)
    if month is not None:
        queryset = queryset.filter(month=month_bounds(month)[0])
    if type:
        queryset = queryset.filter(type=type)
    return queryset.order_by('-month', 'student__roll_number', 'type')
