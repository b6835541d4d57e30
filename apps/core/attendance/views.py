from django.core.exceptions import ValidationError
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from apps.core.timetable.models import ClassSchedule
from apps.core.users.audit import log_audit_event
from apps.core.users.decorators import login_required_json, role_required
from apps.core.utils.responses import (
    form_error_response,
    json_success,
    parse_json_body,
    to_dict,
    validation_error_response,
)

from .forms import (
    AttendanceSheetForm,
    MarkAttendanceForm,
    RecalculateRewardFineForm,
    RewardFineFilterForm,
)
from .services import (
    class_attendance_sheet,
    filter_rewards_and_fines,
    mark_attendance,
    month_bounds,
    recalculate_monthly_rewards_and_fines,
)


STAFF_ROLES = ['admin', 'teacher']


@require_POST
@role_required(STAFF_ROLES)
def attendance_mark(request):
    try:
        payload = parse_json_body(request)
    except ValidationError as exc:
        return validation_error_response(exc)

    form = MarkAttendanceForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    class_schedule = form.cleaned_data['class_schedule']
    target_date = form.cleaned_data['date']
    try:
        records = mark_attendance(
            class_schedule=class_schedule,
            target_date=target_date,
            entries=form.cleaned_data['attendance'],
            marked_by=request.user,
        )
    except ValidationError as exc:
        return validation_error_response(exc)

    log_audit_event(
        request=request,
        action='attendance.marked',
        target=class_schedule,
        details=f"Date={target_date}, Rows={len(records)}",
    )
    return json_success(
        {'attendance': [to_dict(record) for record in records]},
        message='Attendance marked successfully',
    )


@require_GET
@role_required(STAFF_ROLES)
def class_attendance(request, schedule_id):
    class_schedule = get_object_or_404(ClassSchedule.objects.select_related('subject'), pk=schedule_id)
    form = AttendanceSheetForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)

    target_date = form.cleaned_data['date']
    sheet = class_attendance_sheet(class_schedule=class_schedule, target_date=target_date)
    return json_success({
        'class_schedule_id': class_schedule.pk,
        'date': target_date.isoformat(),
        **sheet,
    })


@require_GET
@login_required_json
def reward_fine_list(request):
    form = RewardFineFilterForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)

    entries = filter_rewards_and_fines(**form.cleaned_data)
    return json_success({
        'rewards_and_fines': [to_dict(entry) for entry in entries],
        'total': len(entries),
    })


@require_POST
@role_required('admin')
def reward_fine_recalculate(request):
    try:
        payload = parse_json_body(request)
    except ValidationError as exc:
        return validation_error_response(exc)

    form = RecalculateRewardFineForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    target_date = form.cleaned_data['date']
    result = recalculate_monthly_rewards_and_fines(target_date=target_date)

    log_audit_event(
        request=request,
        action='attendance.rewards_fines_recalculated',
        details=f"Month={target_date:%Y-%m}",
    )
    return json_success(
        {
            'month': month_bounds(target_date)[0].isoformat(),
            'created': [to_dict(entry) for entry in result['created']],
            'updated': [to_dict(entry) for entry in result['updated']],
            'neutral': len(result['neutral']),
            'skipped': len(result['skipped']),
        },
        message='Rewards and fines recalculated successfully',
    )
