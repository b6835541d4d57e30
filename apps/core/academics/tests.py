from io import StringIO

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase

from apps.core.attendance.models import Attendance
from apps.core.hr.models import GuestTeacher, Teacher
from apps.core.students.models import Student
from apps.core.timetable.models import ClassSchedule

from .models import Department, Subject


class SubjectModelTests(TestCase):
    def test_subject_requires_active_department(self):
        department = Department.objects.create(name='Automobile Engineering', code='AE', is_active=False)
        subject = Subject(department=department, name='Engine Technology', code='AE201', semester=3)

        with self.assertRaises(ValidationError):
            subject.full_clean()

    def test_semester_limited_to_eight(self):
        department = Department.objects.create(name='Automobile Engineering', code='AE')
        subject = Subject(department=department, name='Project', code='AE901', semester=9)

        with self.assertRaises(ValidationError):
            subject.full_clean()

    def test_active_manager_hides_inactive_departments(self):
        Department.objects.create(name='Active', code='ACT')
        Department.objects.create(name='Closed', code='CLS', is_active=False)

        self.assertEqual(list(Department.objects.active().values_list('code', flat=True)), ['ACT'])


class SeedCommandTests(TestCase):
    def test_seed_builds_conflict_free_timetable_and_attendance(self):
        out = StringIO()

        with self.captureOnCommitCallbacks(execute=True):
            call_command('seed', students=2, month='2024-03', stdout=out)

        self.assertEqual(Department.objects.count(), 4)
        self.assertEqual(Teacher.objects.count(), 4)
        self.assertEqual(GuestTeacher.objects.count(), 4)
        self.assertEqual(Student.objects.count(), 8)
        self.assertEqual(ClassSchedule.objects.count(), 20)
        self.assertTrue(Attendance.objects.filter(date__year=2024, date__month=3).exists())
        self.assertIn('Database seeding complete!', out.getvalue())

    def test_seed_is_rerunnable(self):
        call_command('seed', students=1, month='none', stdout=StringIO())
        call_command('seed', students=1, month='none', stdout=StringIO())

        self.assertEqual(Department.objects.count(), 4)
        self.assertEqual(ClassSchedule.objects.count(), 20)
        self.assertFalse(Attendance.objects.exists())
