import json

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.http import JsonResponse
from django.test import RequestFactory, TestCase

from apps.core.academics.models import Department

from .audit import log_audit_event
from .decorators import login_required_json, role_required
from .models import AuditLog


@role_required(['admin', 'teacher'])
def staff_view(request):
    return JsonResponse({'ok': True})


@login_required_json
def member_view(request):
    return JsonResponse({'ok': True})


class RoleAccessTests(TestCase):
    def setUp(self):
        self.user_model = get_user_model()
        self.factory = RequestFactory()

        self.teacher = self.user_model.objects.create_user(
            username='teacher1',
            password='pass12345',
            role='teacher',
        )
        self.student = self.user_model.objects.create_user(
            username='student1',
            password='pass12345',
            role='student',
        )

    def _request(self, user):
        request = self.factory.get('/api/protected/')
        request.user = user
        return request

    def test_anonymous_user_gets_401(self):
        response = staff_view(self._request(AnonymousUser()))

        self.assertEqual(response.status_code, 401)
        self.assertEqual(json.loads(response.content)['message'], 'Authentication required.')

    def test_wrong_role_gets_403(self):
        response = staff_view(self._request(self.student))

        self.assertEqual(response.status_code, 403)
        self.assertFalse(json.loads(response.content)['success'])

    def test_allowed_role_reaches_view(self):
        self.assertEqual(staff_view(self._request(self.teacher)).status_code, 200)

    def test_login_required_json_allows_any_role(self):
        self.assertEqual(member_view(self._request(self.student)).status_code, 200)
        self.assertEqual(member_view(self._request(AnonymousUser())).status_code, 401)

    def test_superuser_is_always_admin(self):
        superuser = self.user_model.objects.create_superuser('root', 'root@example.com', 'pass12345')
        self.assertEqual(superuser.role, 'admin')

        superuser.role = 'student'
        superuser.save()
        superuser.refresh_from_db()
        self.assertEqual(superuser.role, 'admin')


class AuditLogTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.admin = get_user_model().objects.create_user(
            username='audit_admin',
            password='pass12345',
            role='admin',
        )

    def test_event_records_actor_target_and_forwarded_ip(self):
        department = Department.objects.create(name='Mechanical Engineering', code='ME')
        request = self.factory.post(
            '/api/class-schedules/',
            HTTP_X_FORWARDED_FOR='10.0.0.7, 172.16.0.1',
        )
        request.user = self.admin

        log_audit_event(request, 'department.created', target=department, details='Code=ME')

        event = AuditLog.objects.get(action='department.created')
        self.assertEqual(event.user, self.admin)
        self.assertEqual(event.target_model, 'Department')
        self.assertEqual(event.target_id, str(department.pk))
        self.assertEqual(event.method, 'POST')
        self.assertEqual(event.ip_address, '10.0.0.7')

    def test_anonymous_event_has_no_user(self):
        request = self.factory.get('/api/attendance/rewards-fines/')
        request.user = AnonymousUser()

        log_audit_event(request, 'rewards.viewed')

        self.assertIsNone(AuditLog.objects.get(action='rewards.viewed').user)

    def test_login_is_audited(self):
        self.client.login(username='audit_admin', password='pass12345')

        self.assertTrue(AuditLog.objects.filter(action='user.login', user=self.admin).exists())
