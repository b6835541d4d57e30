from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase

from apps.core.academics.models import Department

from .models import GuestTeacher, Teacher


class StaffProfileTests(TestCase):
    def setUp(self):
        self.user_model = get_user_model()
        self.department = Department.objects.create(name='Electronics Engineering', code='EX')

    def test_teacher_profile_requires_teacher_role(self):
        user = self.user_model.objects.create_user(username='not_a_teacher', password='pass12345', role='student')
        teacher = Teacher(user=user, employee_id='T900', department=self.department)

        with self.assertRaises(ValidationError):
            teacher.full_clean()

    def test_guest_teacher_rate_cannot_be_negative(self):
        user = self.user_model.objects.create_user(username='guest_1', password='pass12345', role='guest')
        guest_teacher = GuestTeacher(user=user, employee_id='G900', department=self.department, rate=-1)

        with self.assertRaises(ValidationError):
            guest_teacher.full_clean()

    def test_full_name_falls_back_to_username(self):
        user = self.user_model.objects.create_user(username='lecturer_x', password='pass12345', role='teacher')
        teacher = Teacher.objects.create(user=user, employee_id='T901', department=self.department)

        self.assertEqual(teacher.full_name, 'lecturer_x')
