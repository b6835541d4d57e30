from django.contrib import admin

from .models import Department, Subject


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('code', 'name')


@admin.register(Subject)
class SubjectAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'department', 'semester', 'credits', 'is_active')
    list_filter = ('department', 'semester', 'is_active')
    search_fields = ('code', 'name', 'department__name')
