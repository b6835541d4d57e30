from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.core.utils.managers import ActiveManager


SEMESTER_VALIDATORS = [MinValueValidator(1), MaxValueValidator(8)]


class Department(models.Model):
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=10, unique=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    objects = ActiveManager()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name', 'id']

    def __str__(self):
        return f"{self.code} - {self.name}"


class Subject(models.Model):
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name='subjects',
    )
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=20, unique=True)
    semester = models.PositiveSmallIntegerField(validators=SEMESTER_VALIDATORS)
    credits = models.PositiveSmallIntegerField(default=3)
    theory_hours = models.PositiveSmallIntegerField(default=3)
    practical_hours = models.PositiveSmallIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    objects = ActiveManager()

    class Meta:
        ordering = ['department__name', 'semester', 'code']
        indexes = [
            models.Index(fields=['department', 'semester']),
        ]

    def clean(self):
        super().clean()
        if self.department_id and not self.department.is_active:
            raise ValidationError({'department': 'Subject must belong to an active department.'})

    def __str__(self):
        return f"{self.code} - {self.name}"
