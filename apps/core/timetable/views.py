from django.core.exceptions import ValidationError
from django.forms.models import model_to_dict
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_http_methods

from apps.core.academics.models import Department, Subject
from apps.core.hr.models import GuestTeacher, Teacher
from apps.core.users.audit import log_audit_event
from apps.core.users.decorators import role_required
from apps.core.utils.responses import (
    form_error_response,
    json_error,
    json_success,
    parse_json_body,
    to_dict,
    validation_error_response,
)

from .forms import ClassScheduleForm, ScheduleFilterForm
from .models import ClassSchedule, Instructor
from .services import (
    WEEKDAY_ORDER,
    build_weekly_schedule,
    delete_class_schedule,
    generate_weekly_schedule_pdf,
    save_class_schedule,
)


STAFF_ROLES = ['admin', 'teacher']
ALL_ROLES = ['admin', 'teacher', 'student']


def schedule_payload(schedule):
    payload = to_dict(schedule)
    kind, instructor_id = schedule.instructor
    payload['instructor'] = {'kind': kind, 'id': instructor_id}
    return payload


def _schedules_payload(schedules):
    return [schedule_payload(schedule) for schedule in schedules]


def _base_queryset():
    return ClassSchedule.objects.select_related('subject', 'teacher', 'guest_teacher')


def _period_filtered(request, queryset, default_active=True):
    filter_form = ScheduleFilterForm(request.GET)
    if not filter_form.is_valid():
        return None, form_error_response(filter_form)

    if 'is_active' not in request.GET and default_active is not None:
        queryset = queryset.filter(is_active=default_active)
    return filter_form.filter_queryset(queryset), None


@require_http_methods(['GET', 'POST'])
def class_schedule_collection(request):
    if request.method == 'POST':
        return _class_schedule_create(request)
    return _class_schedule_list(request)


@role_required(STAFF_ROLES)
def _class_schedule_list(request):
    schedules, error = _period_filtered(request, _base_queryset(), default_active=None)
    if error:
        return error
    return json_success({'class_schedules': _schedules_payload(schedules), 'total': len(schedules)})


@role_required('admin')
def _class_schedule_create(request):
    try:
        payload = parse_json_body(request)
    except ValidationError as exc:
        return validation_error_response(exc)

    form = ClassScheduleForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    schedule = form.save(commit=False)
    try:
        conflict = save_class_schedule(schedule=schedule, actor=request.user)
    except ValidationError as exc:
        return validation_error_response(exc)
    if conflict:
        return json_error(conflict, status=400)

    log_audit_event(
        request=request,
        action='timetable.schedule_created',
        target=schedule,
        details=(
            f"Subject={schedule.subject_id}, Day={schedule.schedule_day}, "
            f"Slot={schedule.start_time:%H:%M}-{schedule.end_time:%H:%M}, Room={schedule.room_number}"
        ),
    )
    return json_success(
        {'class_schedule': schedule_payload(schedule)},
        message='Class schedule created successfully',
        status=201,
    )


@require_http_methods(['GET', 'PUT', 'PATCH', 'DELETE'])
def class_schedule_detail(request, pk):
    if request.method in ('PUT', 'PATCH'):
        return _class_schedule_update(request, pk)
    if request.method == 'DELETE':
        return _class_schedule_delete(request, pk)
    return _class_schedule_retrieve(request, pk)


@role_required(ALL_ROLES)
def _class_schedule_retrieve(request, pk):
    schedule = get_object_or_404(_base_queryset(), pk=pk)
    return json_success({'class_schedule': schedule_payload(schedule)})


def _switch_instructor(data, payload):
    # Sending only one side replaces the stored instructor of the other kind.
    sent = [field for field in (Instructor.TEACHER, Instructor.GUEST_TEACHER) if payload.get(field)]
    if len(sent) == 1:
        other = Instructor.GUEST_TEACHER if sent[0] == Instructor.TEACHER else Instructor.TEACHER
        if other not in payload:
            data[other] = None


@role_required('admin')
def _class_schedule_update(request, pk):
    schedule = get_object_or_404(ClassSchedule, pk=pk)
    try:
        payload = parse_json_body(request)
    except ValidationError as exc:
        return validation_error_response(exc)

    data = model_to_dict(schedule, fields=ClassScheduleForm._meta.fields)
    data.update(payload)
    _switch_instructor(data, payload)

    form = ClassScheduleForm(data, instance=schedule)
    if not form.is_valid():
        return form_error_response(form)

    schedule = form.save(commit=False)
    try:
        conflict = save_class_schedule(schedule=schedule, actor=request.user)
    except ValidationError as exc:
        return validation_error_response(exc)
    if conflict:
        return json_error(conflict, status=400)

    log_audit_event(
        request=request,
        action='timetable.schedule_updated',
        target=schedule,
        details=f"Fields={','.join(sorted(payload))}",
    )
    return json_success(
        {'class_schedule': schedule_payload(schedule)},
        message='Class schedule updated successfully',
    )


@role_required('admin')
def _class_schedule_delete(request, pk):
    schedule = get_object_or_404(ClassSchedule, pk=pk)
    schedule_id = schedule.pk
    try:
        delete_class_schedule(schedule)
    except ValidationError as exc:
        return validation_error_response(exc)

    log_audit_event(
        request=request,
        action='timetable.schedule_deleted',
        details=f"ClassSchedule={schedule_id}",
    )
    return json_success(message='Class schedule deleted successfully')


@require_GET
@role_required(STAFF_ROLES)
def class_schedules_by_teacher(request, teacher_id):
    teacher = get_object_or_404(Teacher, pk=teacher_id)
    schedules, error = _period_filtered(request, _base_queryset().filter(teacher=teacher))
    if error:
        return error
    return json_success({'class_schedules': _schedules_payload(schedules)})


@require_GET
@role_required(STAFF_ROLES)
def class_schedules_by_guest_teacher(request, guest_teacher_id):
    guest_teacher = get_object_or_404(GuestTeacher, pk=guest_teacher_id)
    schedules, error = _period_filtered(request, _base_queryset().filter(guest_teacher=guest_teacher))
    if error:
        return error
    return json_success({'class_schedules': _schedules_payload(schedules)})


@require_GET
@role_required(STAFF_ROLES)
def class_schedules_by_subject(request, subject_id):
    subject = get_object_or_404(Subject, pk=subject_id)
    schedules, error = _period_filtered(request, _base_queryset().filter(subject=subject))
    if error:
        return error
    return json_success({'class_schedules': _schedules_payload(schedules)})


@require_GET
@role_required(ALL_ROLES)
def class_schedules_by_room(request, room_number):
    schedules, error = _period_filtered(
        request,
        _base_queryset().filter(room_number=room_number).order_by('schedule_day', 'start_time'),
    )
    if error:
        return error
    return json_success({'room_number': room_number, 'class_schedules': _schedules_payload(schedules)})


@require_GET
@role_required(ALL_ROLES)
def class_schedules_by_academic_period(request, academic_year, semester):
    schedules = _base_queryset().active().for_academic_period(
        academic_year=academic_year,
        semester=semester,
    ).order_by('schedule_day', 'start_time')

    department_id = request.GET.get('department')
    if department_id and department_id.isdigit():
        schedules = schedules.filter(subject__department_id=int(department_id))

    return json_success({
        'academic_year': academic_year,
        'semester': semester,
        'class_schedules': _schedules_payload(schedules),
    })


def _weekly_filters(request):
    filter_form = ScheduleFilterForm(request.GET)
    if not filter_form.is_valid():
        return None, form_error_response(filter_form)

    cleaned = filter_form.cleaned_data
    department = None
    if cleaned.get('department'):
        department = get_object_or_404(Department, pk=cleaned['department'])
    return {
        'department': department,
        'academic_year': cleaned.get('academic_year') or None,
        'semester': cleaned.get('semester'),
    }, None


@require_GET
@role_required(ALL_ROLES)
def class_schedule_weekly(request):
    filters, error = _weekly_filters(request)
    if error:
        return error

    weekly = build_weekly_schedule(**filters)
    return json_success({
        'weekly_schedule': {
            day_key: _schedules_payload(weekly[day_key])
            for day_key in WEEKDAY_ORDER
        },
    })


@require_GET
@role_required(ALL_ROLES)
def class_schedule_weekly_pdf(request):
    filters, error = _weekly_filters(request)
    if error:
        return error

    pdf_bytes = generate_weekly_schedule_pdf(**filters)
    suffix = '_'.join(
        str(value) for value in (filters['academic_year'], filters['semester']) if value
    ) or 'all'
    response = HttpResponse(pdf_bytes, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="weekly_schedule_{suffix}.pdf"'
    return response
