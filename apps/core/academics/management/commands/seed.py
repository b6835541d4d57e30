import random
from datetime import date, time, timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from faker import Faker

from apps.core.academics.models import Department, Subject
from apps.core.attendance.models import Attendance
from apps.core.attendance.services import mark_attendance
from apps.core.hr.models import GuestTeacher, Teacher
from apps.core.students.models import Student
from apps.core.timetable.models import ClassSchedule
from apps.core.timetable.services import save_class_schedule
from apps.core.users.models import User


DEPARTMENTS = [
    ('CE', 'Civil Engineering'),
    ('ME', 'Mechanical Engineering'),
    ('EE', 'Electrical Engineering'),
    ('CSE', 'Computer Engineering'),
]

SUBJECT_NAMES = ['Applied Mathematics', 'Applied Physics', 'Engineering Drawing', 'Workshop Practice']

TEACHING_DAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday']

ACADEMIC_YEAR = '2024-25'


class Command(BaseCommand):
    help = 'Seeds the database with departments, staff, students, schedules and a month of attendance.'

    def add_arguments(self, parser):
        parser.add_argument('--students', type=int, default=10, help='Students per department.')
        parser.add_argument(
            '--month',
            default='2024-03',
            help='Month (YYYY-MM) to fill with attendance. Use "none" to skip attendance.',
        )

    def _user(self, username, role, fake, **extra):
        user, created = User.objects.get_or_create(
            username=username,
            defaults={
                'role': role,
                'first_name': fake.first_name(),
                'last_name': fake.last_name(),
                'email': f'{username}@example.com',
                **extra,
            },
        )
        if created:
            user.set_password('password')
            user.save()
        return user

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('Seeding database...')

        fake = Faker()
        Faker.seed(2024)
        random.seed(2024)

        if not User.objects.filter(username='admin').exists():
            User.objects.create_superuser('admin', 'admin@example.com', 'password')
            self.stdout.write(self.style.SUCCESS('Successfully created admin user.'))
        admin = User.objects.get(username='admin')

        for code, name in DEPARTMENTS:
            department, created = Department.objects.get_or_create(code=code, defaults={'name': name})
            if created:
                self.stdout.write(self.style.SUCCESS(f'Successfully created department: {department}'))

            subjects = []
            for index, subject_name in enumerate(SUBJECT_NAMES, start=1):
                subject, _ = Subject.objects.get_or_create(
                    code=f'{code}10{index}',
                    defaults={'department': department, 'name': subject_name, 'semester': 1},
                )
                subjects.append(subject)

            teacher_user = self._user(f'{code.lower()}_teacher', User.ROLE_TEACHER, fake)
            teacher, _ = Teacher.objects.get_or_create(
                user=teacher_user,
                defaults={
                    'employee_id': f'T-{code}-001',
                    'department': department,
                    'designation': 'Lecturer',
                    'joining_date': fake.date_this_decade(),
                },
            )

            guest_user = self._user(f'{code.lower()}_guest', User.ROLE_GUEST, fake)
            guest_teacher, _ = GuestTeacher.objects.get_or_create(
                user=guest_user,
                defaults={
                    'employee_id': f'G-{code}-001',
                    'department': department,
                    'payment_type': GuestTeacher.PAYMENT_PER_CLASS,
                    'rate': 750,
                },
            )

            for number in range(1, options['students'] + 1):
                student_user = self._user(f'{code.lower()}_student_{number:02d}', User.ROLE_STUDENT, fake)
                Student.objects.get_or_create(
                    user=student_user,
                    defaults={
                        'roll_number': f'{code}24{number:03d}',
                        'department': department,
                        'semester': 1,
                        'admission_year': 2024,
                        'guardian_name': fake.name(),
                        'address': fake.address(),
                    },
                )

            self._seed_schedules(department, subjects, teacher, guest_teacher, admin)

        if options['month'].lower() != 'none':
            year, month = (int(part) for part in options['month'].split('-'))
            self._seed_attendance(date(year, month, 1), admin)

        self.stdout.write(self.style.SUCCESS('Database seeding complete!'))

    def _seed_schedules(self, department, subjects, teacher, guest_teacher, actor):
        room = f'{department.code}-101'
        for day_index, day in enumerate(TEACHING_DAYS):
            subject = subjects[day_index % len(subjects)]
            instructor = guest_teacher if day == 'friday' else teacher
            if ClassSchedule.objects.filter(
                subject__department=department,
                schedule_day=day,
                academic_year=ACADEMIC_YEAR,
            ).exists():
                continue

            schedule = ClassSchedule(
                subject=subject,
                room_number=room,
                schedule_day=day,
                start_time=time(9, 0),
                end_time=time(10, 0),
                semester=1,
                academic_year=ACADEMIC_YEAR,
            )
            if isinstance(instructor, GuestTeacher):
                schedule.guest_teacher = instructor
            else:
                schedule.teacher = instructor

            conflict = save_class_schedule(schedule=schedule, actor=actor)
            if conflict:
                self.stdout.write(self.style.WARNING(f'Skipped {subject.code} on {day}: {conflict}'))
            else:
                self.stdout.write(self.style.SUCCESS(f'Successfully created class schedule: {schedule}'))

    def _seed_attendance(self, month_start, actor):
        statuses = [Attendance.STATUS_PRESENT] * 8 + [Attendance.STATUS_LATE, Attendance.STATUS_ABSENT]
        current = month_start
        while current.month == month_start.month:
            day_key = TEACHING_DAYS[current.weekday()] if current.weekday() < len(TEACHING_DAYS) else None
            if day_key:
                for schedule in ClassSchedule.objects.active().filter(schedule_day=day_key).select_related('subject'):
                    students = Student.objects.active().filter(
                        department_id=schedule.subject.department_id,
                        semester=schedule.semester,
                    )
                    entries = [
                        {'student_id': student.pk, 'status': random.choice(statuses)}
                        for student in students
                    ]
                    if entries:
                        mark_attendance(
                            class_schedule=schedule,
                            target_date=current,
                            entries=entries,
                            marked_by=actor,
                        )
            current += timedelta(days=1)

        self.stdout.write(self.style.SUCCESS(f'Successfully marked attendance for {month_start:%Y-%m}.'))
