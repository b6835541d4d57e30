from django.contrib import admin

from .models import ClassSchedule


@admin.register(ClassSchedule)
class ClassScheduleAdmin(admin.ModelAdmin):
    list_display = (
        'subject',
        'schedule_day',
        'start_time',
        'end_time',
        'teacher',
        'guest_teacher',
        'room_number',
        'academic_year',
        'semester',
        'is_active',
    )
    list_filter = ('schedule_day', 'class_type', 'academic_year', 'semester', 'is_active')
    search_fields = (
        'subject__name',
        'subject__code',
        'room_number',
        'teacher__employee_id',
        'guest_teacher__employee_id',
    )
