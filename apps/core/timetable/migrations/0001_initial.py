import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core_academics', '0001_initial'),
        ('core_hr', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ClassSchedule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('room_number', models.CharField(blank=True, max_length=20)),
                ('schedule_day', models.CharField(choices=[('monday', 'Monday'), ('tuesday', 'Tuesday'), ('wednesday', 'Wednesday'), ('thursday', 'Thursday'), ('friday', 'Friday'), ('saturday', 'Saturday'), ('sunday', 'Sunday')], max_length=10)),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('class_type', models.CharField(choices=[('theory', 'Theory'), ('practical', 'Practical'), ('lab', 'Lab'), ('tutorial', 'Tutorial'), ('seminar', 'Seminar')], default='theory', max_length=20)),
                ('semester', models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(8)])),
                ('academic_year', models.CharField(max_length=10)),
                ('max_students', models.PositiveIntegerField(default=30)),
                ('is_recurring', models.BooleanField(default=True)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_class_schedules', to=settings.AUTH_USER_MODEL)),
                ('guest_teacher', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='class_schedules', to='core_hr.guestteacher')),
                ('subject', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='class_schedules', to='core_academics.subject')),
                ('teacher', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='class_schedules', to='core_hr.teacher')),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='updated_class_schedules', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-academic_year', 'semester', 'schedule_day', 'start_time'],
                'indexes': [
                    models.Index(fields=['schedule_day', 'start_time'], name='core_timeta_schedul_7fd488_idx'),
                    models.Index(fields=['academic_year', 'semester'], name='core_timeta_academi_1ec91f_idx'),
                    models.Index(fields=['room_number'], name='core_timeta_room_nu_b77a32_idx'),
                    models.Index(fields=['is_active'], name='core_timeta_is_acti_afe46c_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(models.Q(('guest_teacher__isnull', True), ('teacher__isnull', False)), models.Q(('guest_teacher__isnull', False), ('teacher__isnull', True)), _connector='OR'), name='class_schedule_teacher_xor_guest_teacher', violation_error_message='Class schedule must have either a teacher or a guest teacher, but not both.'),
                    models.CheckConstraint(condition=models.Q(('end_time__gt', models.F('start_time'))), name='class_schedule_end_time_after_start_time', violation_error_message='End time must be after start time.'),
                ],
            },
        ),
    ]
