from django.urls import path

from .views import (
    class_schedule_collection,
    class_schedule_detail,
    class_schedule_weekly,
    class_schedule_weekly_pdf,
    class_schedules_by_academic_period,
    class_schedules_by_guest_teacher,
    class_schedules_by_room,
    class_schedules_by_subject,
    class_schedules_by_teacher,
)

urlpatterns = [
    path('', class_schedule_collection, name='class_schedule_collection'),
    path('<int:pk>/', class_schedule_detail, name='class_schedule_detail'),

    path('weekly/', class_schedule_weekly, name='class_schedule_weekly'),
    path('weekly/pdf/', class_schedule_weekly_pdf, name='class_schedule_weekly_pdf'),
    path(
        'academic-period/<str:academic_year>/<int:semester>/',
        class_schedules_by_academic_period,
        name='class_schedules_by_academic_period',
    ),

    path('teacher/<int:teacher_id>/', class_schedules_by_teacher, name='class_schedules_by_teacher'),
    path(
        'guest-teacher/<int:guest_teacher_id>/',
        class_schedules_by_guest_teacher,
        name='class_schedules_by_guest_teacher',
    ),
    path('subject/<int:subject_id>/', class_schedules_by_subject, name='class_schedules_by_subject'),
    path('room/<str:room_number>/', class_schedules_by_room, name='class_schedules_by_room'),
]
