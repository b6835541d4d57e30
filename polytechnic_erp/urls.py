from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    path('api/class-schedules/', include('apps.core.timetable.urls')),
    path('api/attendance/', include('apps.core.attendance.urls')),
]

handler404 = 'apps.core.utils.responses.json_not_found'
