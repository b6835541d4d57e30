from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from apps.core.academics.models import SEMESTER_VALIDATORS, Department
from apps.core.utils.managers import ActiveManager


class Student(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='student_profile',
    )
    roll_number = models.CharField(max_length=20, unique=True)
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name='students',
    )
    semester = models.PositiveSmallIntegerField(validators=SEMESTER_VALIDATORS)
    admission_year = models.PositiveIntegerField()
    guardian_name = models.CharField(max_length=100, blank=True)
    guardian_phone = models.CharField(max_length=15, blank=True)
    phone = models.CharField(max_length=15, blank=True)
    address = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    objects = ActiveManager()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['roll_number', 'id']
        indexes = [
            models.Index(fields=['department', 'semester']),
            models.Index(fields=['admission_year']),
        ]

    def clean(self):
        super().clean()
        if self.user_id and self.user.role != 'student':
            raise ValidationError({'user': 'Linked user must have the student role.'})

    @property
    def full_name(self):
        return self.user.get_full_name().strip() or self.user.username

    def __str__(self):
        return f"{self.roll_number} - {self.full_name}"
