from django.urls import path

from .views import (
    attendance_mark,
    class_attendance,
    reward_fine_list,
    reward_fine_recalculate,
)

urlpatterns = [
    path('mark/', attendance_mark, name='attendance_mark'),
    path('class/<int:schedule_id>/', class_attendance, name='class_attendance'),

    path('rewards-fines/', reward_fine_list, name='reward_fine_list'),
    path('rewards-fines/recalculate/', reward_fine_recalculate, name='reward_fine_recalculate'),
]
