from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from apps.core.academics.models import Department
from apps.core.utils.managers import ActiveManager


class Teacher(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='teacher_profile',
    )
    employee_id = models.CharField(max_length=20, unique=True)
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name='teachers',
    )
    designation = models.CharField(max_length=100, blank=True)
    qualification = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=15, blank=True)
    joining_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    objects = ActiveManager()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['employee_id', 'id']

    def clean(self):
        super().clean()
        if self.user_id and self.user.role != 'teacher':
            raise ValidationError({'user': 'Linked user must have the teacher role.'})

    @property
    def full_name(self):
        return self.user.get_full_name().strip() or self.user.username

    def __str__(self):
        return f"{self.employee_id} - {self.full_name}"


class GuestTeacher(models.Model):
    PAYMENT_HOURLY = 'hourly'
    PAYMENT_PER_CLASS = 'per_class'
    PAYMENT_PER_SESSION = 'per_session'
    PAYMENT_MONTHLY = 'monthly'
    PAYMENT_TYPE_CHOICES = (
        (PAYMENT_HOURLY, 'Hourly'),
        (PAYMENT_PER_CLASS, 'Per Class'),
        (PAYMENT_PER_SESSION, 'Per Session'),
        (PAYMENT_MONTHLY, 'Monthly'),
    )

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='guest_teacher_profile',
    )
    employee_id = models.CharField(max_length=20, unique=True)
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name='guest_teachers',
    )
    payment_type = models.CharField(max_length=20, choices=PAYMENT_TYPE_CHOICES, default=PAYMENT_HOURLY)
    rate = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0.00'))
    qualification = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=15, blank=True)
    is_active = models.BooleanField(default=True)

    objects = ActiveManager()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['employee_id', 'id']

    def clean(self):
        super().clean()
        if self.user_id and self.user.role != 'guest':
            raise ValidationError({'user': 'Linked user must have the guest teacher role.'})
        if self.rate is not None and self.rate < 0:
            raise ValidationError({'rate': 'Rate cannot be negative.'})

    @property
    def full_name(self):
        return self.user.get_full_name().strip() or self.user.username

    def __str__(self):
        return f"{self.employee_id} - {self.full_name} (guest)"
