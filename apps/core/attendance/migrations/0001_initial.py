import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core_students', '0001_initial'),
        ('core_timetable', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Attendance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('status', models.CharField(choices=[('present', 'Present'), ('absent', 'Absent'), ('late', 'Late')], default='absent', max_length=10)),
                ('marked_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('class_schedule', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='attendances', to='core_timetable.classschedule')),
                ('marked_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='marked_attendances', to=settings.AUTH_USER_MODEL)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attendances', to='core_students.student')),
            ],
            options={
                'ordering': ['-date', 'student__roll_number'],
                'indexes': [
                    models.Index(fields=['student', 'date'], name='core_attend_student_38159a_idx'),
                    models.Index(fields=['class_schedule', 'date'], name='core_attend_class_s_3b15f3_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('class_schedule', 'student', 'date'), name='unique_attendance_per_class_student_date'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AttendanceRewardFine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('reward', 'Reward'), ('fine', 'Fine')], max_length=10)),
                ('amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=8)),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('month', models.DateField()),
                ('attendance_percentage', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('is_processed', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='rewards_and_fines', to='core_students.student')),
            ],
            options={
                'db_table': 'attendance_rewards_fines',
                'ordering': ['-month', '-created_at'],
                'indexes': [
                    models.Index(fields=['student', 'month'], name='attendance__student_667696_idx'),
                    models.Index(fields=['type'], name='attendance__type_d5d016_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('student', 'month', 'type'), name='unique_reward_fine_per_student_month_type'),
                ],
            },
        ),
    ]
