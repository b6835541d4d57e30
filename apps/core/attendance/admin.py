from django.contrib import admin

from .models import Attendance, AttendanceRewardFine


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = (
        'date',
        'student',
        'class_schedule',
        'status',
        'marked_by',
        'marked_at',
    )
    list_filter = ('status', 'date')
    search_fields = (
        'student__roll_number',
        'student__user__first_name',
        'student__user__last_name',
        'class_schedule__subject__code',
    )


@admin.register(AttendanceRewardFine)
class AttendanceRewardFineAdmin(admin.ModelAdmin):
    list_display = (
        'student',
        'month',
        'type',
        'amount',
        'attendance_percentage',
        'is_processed',
    )
    list_filter = ('type', 'month', 'is_processed')
    search_fields = ('student__roll_number', 'reason')
