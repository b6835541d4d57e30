from typing import NamedTuple

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from apps.core.academics.models import SEMESTER_VALIDATORS, Subject
from apps.core.hr.models import GuestTeacher, Teacher
from apps.core.utils.managers import ActiveManager


DAY_CHOICES = (
    ('monday', 'Monday'),
    ('tuesday', 'Tuesday'),
    ('wednesday', 'Wednesday'),
    ('thursday', 'Thursday'),
    ('friday', 'Friday'),
    ('saturday', 'Saturday'),
    ('sunday', 'Sunday'),
)


class Instructor(NamedTuple):
    """Who teaches a schedule: exactly one of a teacher or a guest teacher."""

    kind: str
    id: int

    TEACHER = 'teacher'
    GUEST_TEACHER = 'guest_teacher'

    @classmethod
    def from_ids(cls, teacher_id=None, guest_teacher_id=None):
        if teacher_id and guest_teacher_id:
            raise ValueError('Class schedule cannot have both a teacher and a guest teacher at the same time.')
        if teacher_id:
            return cls(cls.TEACHER, teacher_id)
        if guest_teacher_id:
            return cls(cls.GUEST_TEACHER, guest_teacher_id)
        raise ValueError('Either a teacher or guest teacher must be assigned to the class schedule.')


class ClassSchedule(models.Model):
    TYPE_THEORY = 'theory'
    TYPE_PRACTICAL = 'practical'
    TYPE_LAB = 'lab'
    TYPE_TUTORIAL = 'tutorial'
    TYPE_SEMINAR = 'seminar'
    CLASS_TYPE_CHOICES = (
        (TYPE_THEORY, 'Theory'),
        (TYPE_PRACTICAL, 'Practical'),
        (TYPE_LAB, 'Lab'),
        (TYPE_TUTORIAL, 'Tutorial'),
        (TYPE_SEMINAR, 'Seminar'),
    )

    subject = models.ForeignKey(
        Subject,
        on_delete=models.PROTECT,
        related_name='class_schedules',
    )
    teacher = models.ForeignKey(
        Teacher,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='class_schedules',
    )
    guest_teacher = models.ForeignKey(
        GuestTeacher,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='class_schedules',
    )
    room_number = models.CharField(max_length=20, blank=True)
    schedule_day = models.CharField(max_length=10, choices=DAY_CHOICES)
    start_time = models.TimeField()
    end_time = models.TimeField()
    class_type = models.CharField(max_length=20, choices=CLASS_TYPE_CHOICES, default=TYPE_THEORY)
    semester = models.PositiveSmallIntegerField(validators=SEMESTER_VALIDATORS)
    academic_year = models.CharField(max_length=10)  # e.g. 2024-25
    max_students = models.PositiveIntegerField(default=30)
    is_recurring = models.BooleanField(default=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_class_schedules',
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_class_schedules',
    )

    objects = ActiveManager()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-academic_year', 'semester', 'schedule_day', 'start_time']
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(teacher__isnull=False, guest_teacher__isnull=True)
                    | Q(teacher__isnull=True, guest_teacher__isnull=False)
                ),
                name='class_schedule_teacher_xor_guest_teacher',
                violation_error_message='Class schedule must have either a teacher or a guest teacher, but not both.',
            ),
            models.CheckConstraint(
                condition=Q(end_time__gt=F('start_time')),
                name='class_schedule_end_time_after_start_time',
                violation_error_message='End time must be after start time.',
            ),
        ]
        indexes = [
            models.Index(fields=['schedule_day', 'start_time']),
            models.Index(fields=['academic_year', 'semester']),
            models.Index(fields=['room_number']),
            models.Index(fields=['is_active']),
        ]

    @property
    def instructor(self):
        return Instructor.from_ids(self.teacher_id, self.guest_teacher_id)

    def assign_instructor(self, instructor):
        if instructor.kind == Instructor.TEACHER:
            self.teacher_id, self.guest_teacher_id = instructor.id, None
        elif instructor.kind == Instructor.GUEST_TEACHER:
            self.teacher_id, self.guest_teacher_id = None, instructor.id
        else:
            raise ValueError(f"Unknown instructor kind: {instructor.kind}")

    def clean(self):
        super().clean()

        try:
            Instructor.from_ids(self.teacher_id, self.guest_teacher_id)
        except ValueError as exc:
            raise ValidationError(str(exc))

        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValidationError({'end_time': 'End time must be after start time.'})

        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError({'end_date': 'End date must be after start date.'})

        if self.subject_id and not self.subject.is_active:
            raise ValidationError({'subject': 'Subject is not active.'})

        if self.teacher_id and not self.teacher.is_active:
            raise ValidationError({'teacher': 'Only active teachers can be scheduled.'})

        if self.guest_teacher_id and not self.guest_teacher.is_active:
            raise ValidationError({'guest_teacher': 'Only active guest teachers can be scheduled.'})

    def __str__(self):
        return (
            f"{self.subject.code} {self.get_schedule_day_display()} "
            f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"
        )
