from django.contrib import admin

from .models import GuestTeacher, Teacher


@admin.register(Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ('employee_id', 'user', 'department', 'designation', 'is_active')
    list_filter = ('department', 'is_active')
    search_fields = ('employee_id', 'user__username', 'user__first_name', 'user__last_name')


@admin.register(GuestTeacher)
class GuestTeacherAdmin(admin.ModelAdmin):
    list_display = ('employee_id', 'user', 'department', 'payment_type', 'rate', 'is_active')
    list_filter = ('department', 'payment_type', 'is_active')
    search_fields = ('employee_id', 'user__username', 'user__first_name', 'user__last_name')
