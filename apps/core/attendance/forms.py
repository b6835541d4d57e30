from django import forms

from apps.core.students.models import Student
from apps.core.timetable.models import ClassSchedule

from .models import AttendanceRewardFine


class MarkAttendanceForm(forms.Form):
    class_schedule = forms.ModelChoiceField(queryset=ClassSchedule.objects.none())
    date = forms.DateField()

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['class_schedule'].queryset = ClassSchedule.objects.active()

    def clean(self):
        cleaned_data = super().clean()
        attendance = self.data.get('attendance')
        if not isinstance(attendance, list) or not attendance:
            self.add_error(None, 'attendance must be a non-empty list of {student_id, status} objects.')
            return cleaned_data
        cleaned_data['attendance'] = attendance
        return cleaned_data


class AttendanceSheetForm(forms.Form):
    date = forms.DateField()


class MonthField(forms.DateField):
    """Accepts ``YYYY-MM`` as well as a full date and normalizes to the 1st."""

    input_formats = ['%Y-%m', '%Y-%m-%d']

    def to_python(self, value):
        value = super().to_python(value)
        if value is not None:
            value = value.replace(day=1)
        return value


class RewardFineFilterForm(forms.Form):
    student = forms.ModelChoiceField(queryset=Student.objects.all(), required=False)
    month = MonthField(required=False)
    type = forms.ChoiceField(choices=AttendanceRewardFine.TYPE_CHOICES, required=False)


class RecalculateRewardFineForm(forms.Form):
    date = forms.DateField()
