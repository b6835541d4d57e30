import json
from datetime import date, time, timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings
from django.urls import reverse

from apps.core.academics.models import Department, Subject
from apps.core.hr.models import Teacher
from apps.core.students.models import Student
from apps.core.timetable.models import ClassSchedule

from .models import Attendance, AttendanceRewardFine
from .services import (
    class_attendance_sheet,
    classify_attendance,
    mark_attendance,
    month_bounds,
    recalculate_monthly_rewards_and_fines,
)


MARCH_2024 = date(2024, 3, 1)


class AttendanceBaseTestCase(TestCase):
    def setUp(self):
        user_model = get_user_model()

        self.department = Department.objects.create(name='Electrical Engineering', code='EE')
        self.subject = Subject.objects.create(
            department=self.department,
            name='Basic Electrical Engineering',
            code='EE101',
            semester=1,
        )

        self.admin_user = user_model.objects.create_user(
            username='att_admin',
            password='pass12345',
            role='admin',
        )
        self.teacher_user = user_model.objects.create_user(
            username='att_teacher',
            password='pass12345',
            role='teacher',
        )
        self.teacher = Teacher.objects.create(
            user=self.teacher_user,
            employee_id='T100',
            department=self.department,
        )
        self.schedule = ClassSchedule.objects.create(
            subject=self.subject,
            teacher=self.teacher,
            room_number='E1',
            schedule_day='monday',
            start_time=time(9, 0),
            end_time=time(10, 0),
            semester=1,
            academic_year='2023-24',
        )

        self.student_user = user_model.objects.create_user(
            username='att_student_a',
            password='pass12345',
            role='student',
            first_name='Asha',
            last_name='Rai',
        )
        self.student = Student.objects.create(
            user=self.student_user,
            roll_number='EE24001',
            department=self.department,
            semester=1,
            admission_year=2024,
        )
        self.other_student = Student.objects.create(
            user=user_model.objects.create_user(
                username='att_student_b',
                password='pass12345',
                role='student',
            ),
            roll_number='EE24002',
            department=self.department,
            semester=1,
            admission_year=2024,
        )

    def add_month_of_attendance(self, student, present, absent, late=0, month_start=MARCH_2024):
        statuses = (
            [Attendance.STATUS_PRESENT] * present
            + [Attendance.STATUS_LATE] * late
            + [Attendance.STATUS_ABSENT] * absent
        )
        for offset, status in enumerate(statuses):
            Attendance.objects.create(
                class_schedule=self.schedule,
                student=student,
                date=month_start + timedelta(days=offset),
                status=status,
            )

    def entries_for(self, student):
        return list(AttendanceRewardFine.objects.filter(student=student).order_by('type'))


class ClassifyAttendanceTests(TestCase):
    def test_tiers_and_boundaries(self):
        cases = [
            (Decimal('100'), AttendanceRewardFine.TYPE_REWARD, Decimal('500.00')),
            (Decimal('95'), AttendanceRewardFine.TYPE_REWARD, Decimal('500.00')),
            (Decimal('94.99'), AttendanceRewardFine.TYPE_REWARD, Decimal('200.00')),
            (Decimal('85'), AttendanceRewardFine.TYPE_REWARD, Decimal('200.00')),
            (Decimal('74.99'), AttendanceRewardFine.TYPE_FINE, Decimal('100.00')),
            (Decimal('0'), AttendanceRewardFine.TYPE_FINE, Decimal('100.00')),
        ]
        for percentage, expected_type, expected_amount in cases:
            with self.subTest(percentage=percentage):
                decision = classify_attendance(percentage)
                self.assertEqual(decision.type, expected_type)
                self.assertEqual(decision.amount, expected_amount)

    def test_neutral_band_has_no_decision(self):
        for percentage in (Decimal('75'), Decimal('80'), Decimal('84.99')):
            with self.subTest(percentage=percentage):
                self.assertIsNone(classify_attendance(percentage))

    def test_reason_uses_one_decimal_place(self):
        self.assertEqual(classify_attendance(Decimal('90')).reason, 'Good attendance: 90.0%')
        self.assertEqual(classify_attendance(Decimal('100')).reason, 'Excellent attendance: 100.0%')
        self.assertEqual(
            classify_attendance(Decimal('200') / Decimal('3')).reason,
            'Poor attendance: 66.7%',
        )

    def test_month_bounds_cover_calendar_month(self):
        self.assertEqual(month_bounds(date(2024, 2, 17)), (date(2024, 2, 1), date(2024, 2, 29)))
        self.assertEqual(month_bounds(date(2024, 12, 31)), (date(2024, 12, 1), date(2024, 12, 31)))


class RewardFineEngineTests(AttendanceBaseTestCase):
    def test_eighteen_of_twenty_earns_good_attendance_reward(self):
        self.add_month_of_attendance(self.student, present=18, absent=2)

        result = recalculate_monthly_rewards_and_fines(target_date=date(2024, 3, 15))

        entry = AttendanceRewardFine.objects.get(student=self.student)
        self.assertEqual(entry.type, AttendanceRewardFine.TYPE_REWARD)
        self.assertEqual(entry.amount, Decimal('200.00'))
        self.assertEqual(entry.month, date(2024, 3, 1))
        self.assertEqual(entry.attendance_percentage, Decimal('90.00'))
        self.assertEqual(entry.reason, 'Good attendance: 90.0%')
        self.assertEqual(result['created'], [entry])
        self.assertEqual(result['skipped'], [self.other_student])

    def test_late_counts_as_attended(self):
        self.add_month_of_attendance(self.student, present=0, late=19, absent=1)

        recalculate_monthly_rewards_and_fines(target_date=MARCH_2024, students=[self.student])

        entry = AttendanceRewardFine.objects.get(student=self.student)
        self.assertEqual(entry.amount, Decimal('500.00'))
        self.assertEqual(entry.attendance_percentage, Decimal('95.00'))

    def test_exact_boundaries_from_attendance_rows(self):
        cases = [
            (19, 1, AttendanceRewardFine.TYPE_REWARD, Decimal('500.00')),
            (17, 3, AttendanceRewardFine.TYPE_REWARD, Decimal('200.00')),
            (15, 5, None, None),
            (14, 6, AttendanceRewardFine.TYPE_FINE, Decimal('100.00')),
        ]
        for present, absent, expected_type, expected_amount in cases:
            with self.subTest(present=present):
                Attendance.objects.all().delete()
                AttendanceRewardFine.objects.all().delete()
                self.add_month_of_attendance(self.student, present=present, absent=absent)

                recalculate_monthly_rewards_and_fines(target_date=MARCH_2024, students=[self.student])

                entries = self.entries_for(self.student)
                if expected_type is None:
                    self.assertEqual(entries, [])
                else:
                    self.assertEqual(len(entries), 1)
                    self.assertEqual(entries[0].type, expected_type)
                    self.assertEqual(entries[0].amount, expected_amount)

    def test_student_without_attendance_is_skipped(self):
        result = recalculate_monthly_rewards_and_fines(target_date=MARCH_2024, students=[self.student])

        self.assertEqual(result['skipped'], [self.student])
        self.assertFalse(AttendanceRewardFine.objects.exists())

    def test_neutral_band_creates_nothing(self):
        self.add_month_of_attendance(self.student, present=16, absent=4)

        result = recalculate_monthly_rewards_and_fines(target_date=MARCH_2024, students=[self.student])

        self.assertEqual(result['neutral'], [self.student])
        self.assertFalse(AttendanceRewardFine.objects.exists())

    def test_other_months_are_ignored(self):
        self.add_month_of_attendance(self.student, present=20, absent=0, month_start=date(2024, 2, 1))
        self.add_month_of_attendance(self.student, present=5, absent=15)

        recalculate_monthly_rewards_and_fines(target_date=MARCH_2024, students=[self.student])

        entry = AttendanceRewardFine.objects.get(student=self.student)
        self.assertEqual(entry.type, AttendanceRewardFine.TYPE_FINE)
        self.assertEqual(entry.attendance_percentage, Decimal('25.00'))

    def test_sweep_is_idempotent(self):
        self.add_month_of_attendance(self.student, present=18, absent=2)

        first = recalculate_monthly_rewards_and_fines(target_date=MARCH_2024, students=[self.student])
        before = AttendanceRewardFine.objects.get(student=self.student)
        second = recalculate_monthly_rewards_and_fines(target_date=MARCH_2024, students=[self.student])
        after = AttendanceRewardFine.objects.get(student=self.student)

        self.assertEqual(len(first['created']), 1)
        self.assertEqual(second['created'], [])
        self.assertEqual(len(second['updated']), 1)
        self.assertEqual(AttendanceRewardFine.objects.filter(student=self.student).count(), 1)
        self.assertEqual(after.pk, before.pk)
        self.assertEqual(after.type, before.type)
        self.assertEqual(after.amount, Decimal('200.00'))
        self.assertEqual(after.amount, before.amount)
        self.assertEqual(after.reason, 'Good attendance: 90.0%')
        self.assertEqual(after.reason, before.reason)
        self.assertEqual(after.attendance_percentage, Decimal('90.00'))
        self.assertEqual(after.attendance_percentage, before.attendance_percentage)

    def test_existing_entry_updated_in_place(self):
        self.add_month_of_attendance(self.student, present=17, absent=3)
        recalculate_monthly_rewards_and_fines(target_date=MARCH_2024, students=[self.student])
        original = AttendanceRewardFine.objects.get(student=self.student)

        Attendance.objects.filter(student=self.student, status=Attendance.STATUS_ABSENT).update(
            status=Attendance.STATUS_PRESENT
        )
        recalculate_monthly_rewards_and_fines(target_date=MARCH_2024, students=[self.student])

        updated = AttendanceRewardFine.objects.get(student=self.student)
        self.assertEqual(updated.pk, original.pk)
        self.assertEqual(updated.amount, Decimal('500.00'))
        self.assertEqual(updated.reason, 'Excellent attendance: 100.0%')

    def test_stale_entry_of_other_type_is_kept(self):
        self.add_month_of_attendance(self.student, present=10, absent=10)
        recalculate_monthly_rewards_and_fines(target_date=MARCH_2024, students=[self.student])

        Attendance.objects.filter(student=self.student).update(status=Attendance.STATUS_PRESENT)
        recalculate_monthly_rewards_and_fines(target_date=MARCH_2024, students=[self.student])

        types = [entry.type for entry in self.entries_for(self.student)]
        self.assertEqual(types, [AttendanceRewardFine.TYPE_FINE, AttendanceRewardFine.TYPE_REWARD])


class MarkAttendanceTests(AttendanceBaseTestCase):
    def test_marking_writes_rows_and_triggers_sweep_after_commit(self):
        self.add_month_of_attendance(self.student, present=17, absent=0)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            records = mark_attendance(
                class_schedule=self.schedule,
                target_date=date(2024, 3, 25),
                entries=[{'student_id': self.student.id, 'status': Attendance.STATUS_PRESENT}],
                marked_by=self.teacher_user,
            )

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].marked_by, self.teacher_user)
        entry = AttendanceRewardFine.objects.get(student=self.student)
        self.assertEqual(entry.amount, Decimal('500.00'))
        self.assertEqual(entry.month, MARCH_2024)

    def test_remarking_overwrites_existing_row(self):
        with self.captureOnCommitCallbacks(execute=True):
            mark_attendance(
                class_schedule=self.schedule,
                target_date=date(2024, 3, 4),
                entries=[{'student_id': self.student.id, 'status': Attendance.STATUS_PRESENT}],
                marked_by=self.teacher_user,
            )
        with self.captureOnCommitCallbacks(execute=True):
            mark_attendance(
                class_schedule=self.schedule,
                target_date=date(2024, 3, 4),
                entries=[{'student_id': self.student.id, 'status': Attendance.STATUS_ABSENT}],
                marked_by=self.admin_user,
            )

        record = Attendance.objects.get(student=self.student, date=date(2024, 3, 4))
        self.assertEqual(record.status, Attendance.STATUS_ABSENT)
        self.assertEqual(record.marked_by, self.admin_user)

    def test_unknown_student_rejects_whole_batch(self):
        with self.assertRaises(ValidationError):
            mark_attendance(
                class_schedule=self.schedule,
                target_date=date(2024, 3, 4),
                entries=[
                    {'student_id': self.student.id, 'status': Attendance.STATUS_PRESENT},
                    {'student_id': 99999, 'status': Attendance.STATUS_PRESENT},
                ],
            )
        self.assertFalse(Attendance.objects.exists())

    def test_invalid_status_rejected(self):
        with self.assertRaises(ValidationError):
            mark_attendance(
                class_schedule=self.schedule,
                target_date=date(2024, 3, 4),
                entries=[{'student_id': self.student.id, 'status': 'excused'}],
            )
        self.assertFalse(Attendance.objects.exists())

    def test_sweep_failure_does_not_fail_marking(self):
        with mock.patch(
            'apps.core.attendance.services.recalculate_monthly_rewards_and_fines',
            side_effect=RuntimeError('sweep failed'),
        ):
            with self.assertLogs('apps.core.attendance.services', level='ERROR') as logs:
                with self.captureOnCommitCallbacks(execute=True):
                    records = mark_attendance(
                        class_schedule=self.schedule,
                        target_date=date(2024, 3, 4),
                        entries=[{'student_id': self.student.id, 'status': Attendance.STATUS_PRESENT}],
                    )

        self.assertEqual(len(records), 1)
        self.assertTrue(Attendance.objects.filter(pk=records[0].pk).exists())
        self.assertFalse(AttendanceRewardFine.objects.exists())
        self.assertIn('Error calculating monthly rewards and fines', logs.output[0])

    @override_settings(REWARD_FINE_SWEEP_SCOPE='bogus')
    def test_unknown_sweep_scope_is_logged_not_raised(self):
        with self.assertLogs('apps.core.attendance.services', level='ERROR') as logs:
            with self.captureOnCommitCallbacks(execute=True):
                records = mark_attendance(
                    class_schedule=self.schedule,
                    target_date=date(2024, 3, 4),
                    entries=[{'student_id': self.student.id, 'status': Attendance.STATUS_PRESENT}],
                )

        self.assertEqual(len(records), 1)
        self.assertTrue(Attendance.objects.filter(pk=records[0].pk).exists())
        self.assertFalse(AttendanceRewardFine.objects.exists())
        self.assertIn('Error calculating monthly rewards and fines', logs.output[0])

    @override_settings(REWARD_FINE_SWEEP_SCOPE='affected')
    def test_affected_scope_only_recomputes_marked_students(self):
        self.add_month_of_attendance(self.other_student, present=5, absent=15)

        with self.captureOnCommitCallbacks(execute=True):
            mark_attendance(
                class_schedule=self.schedule,
                target_date=date(2024, 3, 25),
                entries=[{'student_id': self.student.id, 'status': Attendance.STATUS_PRESENT}],
            )

        self.assertEqual(len(self.entries_for(self.student)), 1)
        self.assertEqual(self.entries_for(self.other_student), [])

    @override_settings(REWARD_FINE_SWEEP_SCOPE='all')
    def test_all_scope_recomputes_every_student(self):
        self.add_month_of_attendance(self.other_student, present=5, absent=15)

        with self.captureOnCommitCallbacks(execute=True):
            mark_attendance(
                class_schedule=self.schedule,
                target_date=date(2024, 3, 25),
                entries=[{'student_id': self.student.id, 'status': Attendance.STATUS_PRESENT}],
            )

        other_entries = self.entries_for(self.other_student)
        self.assertEqual(len(other_entries), 1)
        self.assertEqual(other_entries[0].type, AttendanceRewardFine.TYPE_FINE)


class ClassAttendanceSheetTests(AttendanceBaseTestCase):
    def test_sheet_merges_enrolled_students_with_marked_rows(self):
        Attendance.objects.create(
            class_schedule=self.schedule,
            student=self.student,
            date=date(2024, 3, 4),
            status=Attendance.STATUS_LATE,
        )

        sheet = class_attendance_sheet(class_schedule=self.schedule, target_date=date(2024, 3, 4))

        self.assertEqual([row['roll_number'] for row in sheet['students']], ['EE24001', 'EE24002'])
        self.assertEqual(sheet['students'][0]['status'], Attendance.STATUS_LATE)
        self.assertEqual(sheet['students'][0]['name'], 'Asha Rai')
        self.assertIsNone(sheet['students'][1]['status'])
        self.assertEqual(sheet['summary']['late'], 1)
        self.assertEqual(sheet['summary']['not_marked'], 1)
        self.assertEqual(sheet['summary']['total'], 2)


class AttendanceViewTests(AttendanceBaseTestCase):
    def post_json(self, url, data):
        return self.client.post(url, data=json.dumps(data), content_type='application/json')

    def test_teacher_marks_attendance(self):
        self.client.force_login(self.teacher_user)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.post_json(
                reverse('attendance_mark'),
                {
                    'class_schedule': self.schedule.id,
                    'date': '2024-03-04',
                    'attendance': [
                        {'student_id': self.student.id, 'status': 'present'},
                        {'student_id': self.other_student.id, 'status': 'absent'},
                    ],
                },
            )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['data']['attendance']), 2)
        self.assertEqual(Attendance.objects.count(), 2)
        self.assertEqual(
            AttendanceRewardFine.objects.get(student=self.other_student).type,
            AttendanceRewardFine.TYPE_FINE,
        )

    def test_student_cannot_mark_attendance(self):
        self.client.force_login(self.student_user)

        response = self.post_json(
            reverse('attendance_mark'),
            {
                'class_schedule': self.schedule.id,
                'date': '2024-03-04',
                'attendance': [{'student_id': self.student.id, 'status': 'present'}],
            },
        )

        self.assertEqual(response.status_code, 403)
        self.assertFalse(Attendance.objects.exists())

    def test_mark_without_attendance_list_returns_400(self):
        self.client.force_login(self.teacher_user)

        response = self.post_json(
            reverse('attendance_mark'),
            {'class_schedule': self.schedule.id, 'date': '2024-03-04'},
        )

        self.assertEqual(response.status_code, 400)

    def test_mark_with_bad_status_returns_400(self):
        self.client.force_login(self.teacher_user)

        response = self.post_json(
            reverse('attendance_mark'),
            {
                'class_schedule': self.schedule.id,
                'date': '2024-03-04',
                'attendance': [{'student_id': self.student.id, 'status': 'holiday'}],
            },
        )

        self.assertEqual(response.status_code, 400)
        self.assertFalse(Attendance.objects.exists())

    def test_class_sheet_requires_date(self):
        self.client.force_login(self.teacher_user)

        response = self.client.get(reverse('class_attendance', args=[self.schedule.id]))

        self.assertEqual(response.status_code, 400)

    def test_class_sheet_returns_summary(self):
        self.client.force_login(self.teacher_user)

        response = self.client.get(
            reverse('class_attendance', args=[self.schedule.id]),
            {'date': '2024-03-04'},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['summary']['not_marked'], 2)

    def test_reward_fine_listing_filters_by_month(self):
        self.add_month_of_attendance(self.student, present=18, absent=2)
        self.add_month_of_attendance(self.student, present=5, absent=15, month_start=date(2024, 4, 1))
        recalculate_monthly_rewards_and_fines(target_date=MARCH_2024)
        recalculate_monthly_rewards_and_fines(target_date=date(2024, 4, 1))
        self.client.force_login(self.student_user)

        response = self.client.get(reverse('reward_fine_list'), {'month': '2024-03'})

        self.assertEqual(response.status_code, 200)
        rows = response.json()['data']['rewards_and_fines']
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['amount'], '200.00')
        self.assertEqual(rows[0]['month'], '2024-03-01')

    def test_reward_fine_listing_requires_login(self):
        response = self.client.get(reverse('reward_fine_list'))

        self.assertEqual(response.status_code, 401)

    def test_admin_recalculates_month(self):
        self.add_month_of_attendance(self.student, present=18, absent=2)
        self.client.force_login(self.admin_user)

        response = self.post_json(reverse('reward_fine_recalculate'), {'date': '2024-03-20'})

        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual(data['month'], '2024-03-01')
        self.assertEqual(len(data['created']), 1)
        self.assertEqual(data['skipped'], 1)

    def test_teacher_cannot_recalculate(self):
        self.client.force_login(self.teacher_user)

        response = self.post_json(reverse('reward_fine_recalculate'), {'date': '2024-03-20'})

        self.assertEqual(response.status_code, 403)
