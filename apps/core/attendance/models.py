from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from apps.core.students.models import Student
from apps.core.timetable.models import ClassSchedule


class Attendance(models.Model):
    STATUS_PRESENT = 'present'
    STATUS_ABSENT = 'absent'
    STATUS_LATE = 'late'
    STATUS_CHOICES = (
        (STATUS_PRESENT, 'Present'),
        (STATUS_ABSENT, 'Absent'),
        (STATUS_LATE, 'Late'),
    )
    ATTENDED_STATUSES = (STATUS_PRESENT, STATUS_LATE)

    class_schedule = models.ForeignKey(
        ClassSchedule,
        on_delete=models.PROTECT,
        related_name='attendances',
    )
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name='attendances',
    )
    date = models.DateField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ABSENT)
    marked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='marked_attendances',
    )
    marked_at = models.DateTimeField(default=timezone.now)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date', 'student__roll_number']
        constraints = [
            models.UniqueConstraint(
                fields=['class_schedule', 'student', 'date'],
                name='unique_attendance_per_class_student_date',
            ),
        ]
        indexes = [
            models.Index(fields=['student', 'date']),
            models.Index(fields=['class_schedule', 'date']),
        ]

    def __str__(self):
        return f"{self.student.roll_number} - {self.date} ({self.status})"


class AttendanceRewardFine(models.Model):
    TYPE_REWARD = 'reward'
    TYPE_FINE = 'fine'
    TYPE_CHOICES = (
        (TYPE_REWARD, 'Reward'),
        (TYPE_FINE, 'Fine'),
    )

    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name='rewards_and_fines',
    )
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0.00'))
    reason = models.CharField(max_length=255, blank=True)
    month = models.DateField()  # first day of the month
    attendance_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    is_processed = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'attendance_rewards_fines'
        ordering = ['-month', '-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'month', 'type'],
                name='unique_reward_fine_per_student_month_type',
            ),
        ]
        indexes = [
            models.Index(fields=['student', 'month']),
            models.Index(fields=['type']),
        ]

    def clean(self):
        super().clean()
        if self.month and self.month.day != 1:
            raise ValidationError({'month': 'Month must be the first day of a calendar month.'})
        if self.amount is not None and self.amount < 0:
            raise ValidationError({'amount': 'Amount cannot be negative.'})

    def __str__(self):
        return f"{self.student.roll_number} {self.type} {self.amount} ({self.month:%Y-%m})"
