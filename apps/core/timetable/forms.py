from django import forms

from apps.core.academics.models import Subject
from apps.core.hr.models import GuestTeacher, Teacher

from .models import DAY_CHOICES, ClassSchedule


class ClassScheduleForm(forms.ModelForm):
    class Meta:
        model = ClassSchedule
        fields = [
            'subject',
            'teacher',
            'guest_teacher',
            'room_number',
            'schedule_day',
            'start_time',
            'end_time',
            'class_type',
            'semester',
            'academic_year',
            'max_students',
            'is_recurring',
            'start_date',
            'end_date',
            'notes',
            'is_active',
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['subject'].queryset = Subject.objects.active()
        self.fields['teacher'].queryset = Teacher.objects.active()
        self.fields['guest_teacher'].queryset = GuestTeacher.objects.active()

        # Omitted fields in a JSON body keep the model default.
        for field_name in ('class_type', 'max_students', 'is_recurring', 'is_active'):
            if self.is_bound and field_name not in self.data:
                self.data = self.data.copy()
                self.data[field_name] = getattr(self.instance, field_name)

    def clean_room_number(self):
        return (self.cleaned_data.get('room_number') or '').strip()


class ScheduleFilterForm(forms.Form):
    day = forms.ChoiceField(choices=DAY_CHOICES, required=False)
    class_type = forms.ChoiceField(choices=ClassSchedule.CLASS_TYPE_CHOICES, required=False)
    semester = forms.IntegerField(min_value=1, max_value=8, required=False)
    academic_year = forms.CharField(max_length=10, required=False)
    is_active = forms.NullBooleanField(required=False)
    department = forms.IntegerField(min_value=1, required=False)

    def filter_queryset(self, queryset):
        cleaned = self.cleaned_data
        if cleaned.get('day'):
            queryset = queryset.filter(schedule_day=cleaned['day'])
        if cleaned.get('class_type'):
            queryset = queryset.filter(class_type=cleaned['class_type'])
        if cleaned.get('is_active') is not None:
            queryset = queryset.filter(is_active=cleaned['is_active'])
        if cleaned.get('department'):
            queryset = queryset.filter(subject__department_id=cleaned['department'])
        return queryset.for_academic_period(
            academic_year=cleaned.get('academic_year'),
            semester=cleaned.get('semester'),
        )
