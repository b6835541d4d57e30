import json
from datetime import date, time

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse

from apps.core.academics.models import Department, Subject
from apps.core.attendance.models import Attendance
from apps.core.hr.models import GuestTeacher, Teacher
from apps.core.students.models import Student
from apps.core.users.models import AuditLog

from .models import ClassSchedule, Instructor
from .services import (
    build_weekly_schedule,
    check_time_conflict,
    delete_class_schedule,
    save_class_schedule,
)


class TimetableBaseTestCase(TestCase):
    def setUp(self):
        user_model = get_user_model()

        self.department = Department.objects.create(name='Computer Engineering', code='CSE')
        self.other_department = Department.objects.create(name='Civil Engineering', code='CE')
        self.subject = Subject.objects.create(
            department=self.department,
            name='Programming in C',
            code='CSE101',
            semester=1,
        )
        self.other_subject = Subject.objects.create(
            department=self.other_department,
            name='Surveying',
            code='CE101',
            semester=1,
        )

        self.admin_user = user_model.objects.create_user(
            username='tt_admin',
            password='pass12345',
            role='admin',
        )
        self.teacher_user_1 = user_model.objects.create_user(
            username='tt_teacher_1',
            password='pass12345',
            role='teacher',
        )
        self.teacher_user_2 = user_model.objects.create_user(
            username='tt_teacher_2',
            password='pass12345',
            role='teacher',
        )
        self.guest_user = user_model.objects.create_user(
            username='tt_guest',
            password='pass12345',
            role='guest',
        )
        self.student_user = user_model.objects.create_user(
            username='tt_student',
            password='pass12345',
            role='student',
        )

        self.teacher_1 = Teacher.objects.create(
            user=self.teacher_user_1,
            employee_id='T001',
            department=self.department,
        )
        self.teacher_2 = Teacher.objects.create(
            user=self.teacher_user_2,
            employee_id='T002',
            department=self.department,
        )
        self.guest_teacher = GuestTeacher.objects.create(
            user=self.guest_user,
            employee_id='G001',
            department=self.department,
            rate=500,
        )
        self.student = Student.objects.create(
            user=self.student_user,
            roll_number='CSE24001',
            department=self.department,
            semester=1,
            admission_year=2024,
        )

    def create_schedule(self, **overrides):
        values = {
            'subject': self.subject,
            'teacher': self.teacher_1,
            'room_number': 'R101',
            'schedule_day': 'monday',
            'start_time': time(9, 30),
            'end_time': time(10, 30),
            'semester': 1,
            'academic_year': '2024-25',
        }
        values.update(overrides)
        return ClassSchedule.objects.create(**values)

    def conflict_for(self, **overrides):
        values = {
            'schedule_day': 'monday',
            'start_time': time(9, 0),
            'end_time': time(10, 0),
            'teacher_id': None,
            'guest_teacher_id': None,
            'room_number': '',
            'academic_year': '2024-25',
            'semester': 1,
        }
        values.update(overrides)
        return check_time_conflict(**values)


class ScheduleConflictTests(TimetableBaseTestCase):
    def test_teacher_conflict_names_existing_slot(self):
        self.create_schedule()

        conflict = self.conflict_for(teacher_id=self.teacher_1.id)

        self.assertEqual(conflict, 'Teacher has a conflicting class schedule at 09:30 - 10:30')

    def test_guest_teacher_conflict_detected(self):
        self.create_schedule(teacher=None, guest_teacher=self.guest_teacher, room_number='')

        conflict = self.conflict_for(guest_teacher_id=self.guest_teacher.id)

        self.assertEqual(conflict, 'Guest teacher has a conflicting class schedule at 09:30 - 10:30')

    def test_room_conflict_detected_for_different_teacher(self):
        self.create_schedule()

        conflict = self.conflict_for(teacher_id=self.teacher_2.id, room_number='R101')

        self.assertEqual(conflict, 'Room R101 is already booked at 09:30 - 10:30')

    def test_teacher_is_checked_before_room(self):
        self.create_schedule()

        conflict = self.conflict_for(teacher_id=self.teacher_1.id, room_number='R101')

        self.assertTrue(conflict.startswith('Teacher has a conflicting class schedule'))

    def test_touching_slots_do_not_conflict(self):
        self.create_schedule()

        self.assertIsNone(
            self.conflict_for(
                teacher_id=self.teacher_1.id,
                room_number='R101',
                start_time=time(10, 30),
                end_time=time(11, 30),
            )
        )
        self.assertIsNone(
            self.conflict_for(
                teacher_id=self.teacher_1.id,
                room_number='R101',
                start_time=time(8, 30),
                end_time=time(9, 30),
            )
        )

    def test_containing_and_contained_slots_conflict(self):
        self.create_schedule()

        self.assertIsNotNone(
            self.conflict_for(teacher_id=self.teacher_1.id, start_time=time(9, 0), end_time=time(11, 0))
        )
        self.assertIsNotNone(
            self.conflict_for(teacher_id=self.teacher_1.id, start_time=time(9, 45), end_time=time(10, 15))
        )
        self.assertIsNotNone(
            self.conflict_for(teacher_id=self.teacher_1.id, start_time=time(9, 30), end_time=time(10, 30))
        )

    def test_other_day_does_not_conflict(self):
        self.create_schedule()

        self.assertIsNone(self.conflict_for(teacher_id=self.teacher_1.id, schedule_day='tuesday'))

    def test_inactive_schedule_never_conflicts(self):
        self.create_schedule(is_active=False)

        self.assertIsNone(self.conflict_for(teacher_id=self.teacher_1.id, room_number='R101'))

    def test_other_academic_period_does_not_conflict(self):
        self.create_schedule()

        self.assertIsNone(self.conflict_for(teacher_id=self.teacher_1.id, academic_year='2025-26'))
        self.assertIsNone(self.conflict_for(teacher_id=self.teacher_1.id, semester=2))

    def test_schedule_never_conflicts_with_itself(self):
        schedule = self.create_schedule()

        self.assertIsNone(
            self.conflict_for(
                teacher_id=self.teacher_1.id,
                room_number='R101',
                start_time=time(9, 45),
                end_time=time(10, 45),
                exclude_id=schedule.id,
            )
        )

    def test_excluded_schedule_does_not_hide_other_conflicts(self):
        schedule = self.create_schedule()
        self.create_schedule(start_time=time(10, 30), end_time=time(11, 30), room_number='R102')

        conflict = self.conflict_for(
            teacher_id=self.teacher_1.id,
            start_time=time(10, 0),
            end_time=time(11, 0),
            exclude_id=schedule.id,
        )

        self.assertEqual(conflict, 'Teacher has a conflicting class schedule at 10:30 - 11:30')


class ClassScheduleModelRuleTests(TimetableBaseTestCase):
    def test_teacher_and_guest_teacher_together_rejected(self):
        schedule = ClassSchedule(
            subject=self.subject,
            teacher=self.teacher_1,
            guest_teacher=self.guest_teacher,
            schedule_day='monday',
            start_time=time(9, 0),
            end_time=time(10, 0),
            semester=1,
            academic_year='2024-25',
        )
        with self.assertRaises(ValidationError):
            schedule.full_clean()

    def test_missing_instructor_rejected(self):
        schedule = ClassSchedule(
            subject=self.subject,
            schedule_day='monday',
            start_time=time(9, 0),
            end_time=time(10, 0),
            semester=1,
            academic_year='2024-25',
        )
        with self.assertRaises(ValidationError):
            schedule.full_clean()

    def test_end_time_must_follow_start_time(self):
        schedule = ClassSchedule(
            subject=self.subject,
            teacher=self.teacher_1,
            schedule_day='monday',
            start_time=time(10, 0),
            end_time=time(10, 0),
            semester=1,
            academic_year='2024-25',
        )
        with self.assertRaises(ValidationError):
            schedule.full_clean()

    def test_instructor_reflects_assigned_side(self):
        schedule = self.create_schedule()
        self.assertEqual(schedule.instructor, Instructor(Instructor.TEACHER, self.teacher_1.id))

        schedule.assign_instructor(Instructor(Instructor.GUEST_TEACHER, self.guest_teacher.id))
        self.assertIsNone(schedule.teacher_id)
        self.assertEqual(schedule.instructor.kind, Instructor.GUEST_TEACHER)

    def test_instructor_requires_exactly_one_id(self):
        with self.assertRaises(ValueError):
            Instructor.from_ids(self.teacher_1.id, self.guest_teacher.id)
        with self.assertRaises(ValueError):
            Instructor.from_ids(None, None)


class ClassScheduleServiceTests(TimetableBaseTestCase):
    def test_save_rejects_overlapping_teacher_slot(self):
        self.create_schedule()
        candidate = ClassSchedule(
            subject=self.subject,
            teacher=self.teacher_1,
            room_number='R202',
            schedule_day='monday',
            start_time=time(9, 0),
            end_time=time(10, 0),
            semester=1,
            academic_year='2024-25',
        )

        conflict = save_class_schedule(schedule=candidate, actor=self.admin_user)

        self.assertEqual(conflict, 'Teacher has a conflicting class schedule at 09:30 - 10:30')
        self.assertIsNone(candidate.pk)
        self.assertEqual(ClassSchedule.objects.count(), 1)

    def test_save_records_actor(self):
        candidate = ClassSchedule(
            subject=self.subject,
            teacher=self.teacher_1,
            schedule_day='tuesday',
            start_time=time(9, 0),
            end_time=time(10, 0),
            semester=1,
            academic_year='2024-25',
        )

        self.assertIsNone(save_class_schedule(schedule=candidate, actor=self.admin_user))
        candidate.refresh_from_db()
        self.assertEqual(candidate.created_by, self.admin_user)
        self.assertEqual(candidate.updated_by, self.admin_user)

    def test_inactive_schedule_is_still_checked_on_save(self):
        self.create_schedule(start_time=time(9, 0), end_time=time(10, 0))
        candidate = ClassSchedule(
            subject=self.subject,
            teacher=self.teacher_1,
            room_number='R101',
            schedule_day='monday',
            start_time=time(9, 30),
            end_time=time(10, 30),
            semester=1,
            academic_year='2024-25',
            is_active=False,
        )

        conflict = save_class_schedule(schedule=candidate)

        self.assertEqual(conflict, 'Teacher has a conflicting class schedule at 09:00 - 10:00')
        self.assertIsNone(candidate.pk)
        self.assertEqual(ClassSchedule.objects.count(), 1)

    def test_moving_schedule_within_own_slot_is_allowed(self):
        schedule = self.create_schedule()
        schedule.start_time = time(9, 45)
        schedule.end_time = time(10, 45)

        self.assertIsNone(save_class_schedule(schedule=schedule))

    def test_delete_refused_when_attendance_exists(self):
        schedule = self.create_schedule()
        Attendance.objects.create(
            class_schedule=schedule,
            student=self.student,
            date=date(2024, 3, 4),
            status=Attendance.STATUS_PRESENT,
        )

        with self.assertRaisesMessage(ValidationError, '1 attendance record(s) exist'):
            delete_class_schedule(schedule)
        self.assertTrue(ClassSchedule.objects.filter(pk=schedule.pk).exists())

    def test_delete_without_attendance(self):
        schedule = self.create_schedule()

        delete_class_schedule(schedule)

        self.assertFalse(ClassSchedule.objects.filter(pk=schedule.pk).exists())

    def test_weekly_schedule_groups_active_rows_by_day(self):
        self.create_schedule()
        self.create_schedule(schedule_day='wednesday', start_time=time(11, 0), end_time=time(12, 0))
        self.create_schedule(schedule_day='friday', is_active=False)
        self.create_schedule(
            subject=self.other_subject,
            teacher=self.teacher_2,
            room_number='C1',
            schedule_day='monday',
        )

        weekly = build_weekly_schedule(department=self.department)

        self.assertEqual(list(weekly), ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday'])
        self.assertEqual(len(weekly['monday']), 1)
        self.assertEqual(len(weekly['wednesday']), 1)
        self.assertEqual(weekly['friday'], [])


class ClassScheduleViewTests(TimetableBaseTestCase):
    def payload(self, **overrides):
        data = {
            'subject': self.subject.id,
            'teacher': self.teacher_1.id,
            'room_number': 'R101',
            'schedule_day': 'monday',
            'start_time': '09:00',
            'end_time': '10:00',
            'semester': 1,
            'academic_year': '2024-25',
        }
        data.update(overrides)
        return data

    def post_json(self, url, data):
        return self.client.post(url, data=json.dumps(data), content_type='application/json')

    def test_unauthenticated_request_rejected(self):
        response = self.client.get(reverse('class_schedule_collection'))

        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()['success'])

    def test_student_cannot_create_schedule(self):
        self.client.force_login(self.student_user)

        response = self.post_json(reverse('class_schedule_collection'), self.payload())

        self.assertEqual(response.status_code, 403)
        self.assertEqual(ClassSchedule.objects.count(), 0)

    def test_admin_creates_schedule(self):
        self.client.force_login(self.admin_user)

        response = self.post_json(reverse('class_schedule_collection'), self.payload())

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['class_schedule']['start_time'], '09:00')
        self.assertEqual(
            body['data']['class_schedule']['instructor'],
            {'kind': 'teacher', 'id': self.teacher_1.id},
        )
        schedule = ClassSchedule.objects.get()
        self.assertEqual(schedule.class_type, ClassSchedule.TYPE_THEORY)
        self.assertTrue(schedule.is_active)
        self.assertTrue(AuditLog.objects.filter(action='timetable.schedule_created').exists())

    def test_create_with_conflict_returns_400(self):
        self.create_schedule()
        self.client.force_login(self.admin_user)

        response = self.post_json(reverse('class_schedule_collection'), self.payload(room_number='R202'))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Teacher has a conflicting class schedule at 09:30 - 10:30')
        self.assertEqual(ClassSchedule.objects.count(), 1)

    def test_create_with_both_instructors_returns_400(self):
        self.client.force_login(self.admin_user)

        response = self.post_json(
            reverse('class_schedule_collection'),
            self.payload(guest_teacher=self.guest_teacher.id),
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(ClassSchedule.objects.count(), 0)

    def test_create_with_end_before_start_returns_400(self):
        self.client.force_login(self.admin_user)

        response = self.post_json(
            reverse('class_schedule_collection'),
            self.payload(start_time='11:00', end_time='10:00'),
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(ClassSchedule.objects.count(), 0)

    def test_partial_update_checks_stored_teacher(self):
        self.create_schedule()
        other = self.create_schedule(schedule_day='tuesday')
        self.client.force_login(self.admin_user)

        response = self.client.patch(
            reverse('class_schedule_detail', args=[other.id]),
            data=json.dumps({'schedule_day': 'monday', 'room_number': 'R303'}),
            content_type='application/json',
        )

        self.assertEqual(response.status_code, 400)
        other.refresh_from_db()
        self.assertEqual(other.schedule_day, 'tuesday')

    def test_partial_update_switches_to_guest_teacher(self):
        schedule = self.create_schedule()
        self.client.force_login(self.admin_user)

        response = self.client.patch(
            reverse('class_schedule_detail', args=[schedule.id]),
            data=json.dumps({'guest_teacher': self.guest_teacher.id}),
            content_type='application/json',
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json()['data']['class_schedule']['instructor'],
            {'kind': 'guest_teacher', 'id': self.guest_teacher.id},
        )
        schedule.refresh_from_db()
        self.assertIsNone(schedule.teacher_id)
        self.assertEqual(schedule.guest_teacher_id, self.guest_teacher.id)

    def test_update_in_own_slot_succeeds(self):
        schedule = self.create_schedule()
        self.client.force_login(self.admin_user)

        response = self.client.patch(
            reverse('class_schedule_detail', args=[schedule.id]),
            data=json.dumps({'start_time': '09:45', 'end_time': '10:45'}),
            content_type='application/json',
        )

        self.assertEqual(response.status_code, 200)
        schedule.refresh_from_db()
        self.assertEqual(schedule.start_time, time(9, 45))

    def test_missing_schedule_returns_404(self):
        self.client.force_login(self.admin_user)

        response = self.client.get(reverse('class_schedule_detail', args=[9999]))

        self.assertEqual(response.status_code, 404)

    def test_delete_with_attendance_returns_400(self):
        schedule = self.create_schedule()
        Attendance.objects.create(
            class_schedule=schedule,
            student=self.student,
            date=date(2024, 3, 4),
            status=Attendance.STATUS_ABSENT,
        )
        self.client.force_login(self.admin_user)

        response = self.client.delete(reverse('class_schedule_detail', args=[schedule.id]))

        self.assertEqual(response.status_code, 400)
        self.assertIn('attendance record(s) exist', response.json()['message'])

    def test_teacher_listing_filters_by_teacher(self):
        self.create_schedule()
        self.create_schedule(teacher=self.teacher_2, room_number='R102', schedule_day='tuesday')
        self.client.force_login(self.teacher_user_1)

        response = self.client.get(reverse('class_schedules_by_teacher', args=[self.teacher_1.id]))

        self.assertEqual(response.status_code, 200)
        schedules = response.json()['data']['class_schedules']
        self.assertEqual([row['teacher_id'] for row in schedules], [self.teacher_1.id])

    def test_room_listing_open_to_students(self):
        self.create_schedule()
        self.client.force_login(self.student_user)

        response = self.client.get(reverse('class_schedules_by_room', args=['R101']))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['data']['class_schedules']), 1)

    def test_weekly_pdf_download(self):
        self.create_schedule()
        self.client.force_login(self.student_user)

        response = self.client.get(reverse('class_schedule_weekly_pdf'), {'academic_year': '2024-25'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))
