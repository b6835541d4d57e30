from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase

from apps.core.academics.models import Department

from .models import Student


class StudentProfileTests(TestCase):
    def setUp(self):
        self.department = Department.objects.create(name='Information Technology', code='IT')

    def test_student_profile_requires_student_role(self):
        user = get_user_model().objects.create_user(username='it_teacher', password='pass12345', role='teacher')
        student = Student(
            user=user,
            roll_number='IT24001',
            department=self.department,
            semester=1,
            admission_year=2024,
        )

        with self.assertRaises(ValidationError):
            student.full_clean()

    def test_str_uses_roll_number_and_name(self):
        user = get_user_model().objects.create_user(
            username='it_student',
            password='pass12345',
            role='student',
            first_name='Ravi',
            last_name='Kumar',
        )
        student = Student.objects.create(
            user=user,
            roll_number='IT24002',
            department=self.department,
            semester=2,
            admission_year=2024,
        )

        self.assertEqual(str(student), 'IT24002 - Ravi Kumar')
