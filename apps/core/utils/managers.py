from django.db import models

class ActiveQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def for_academic_period(self, academic_year=None, semester=None):
        queryset = self
        if academic_year:
            queryset = queryset.filter(academic_year=academic_year)
        if semester:
            queryset = queryset.filter(semester=semester)
        return queryset


class ActiveManager(models.Manager):
    def get_queryset(self):
        return ActiveQuerySet(self.model, using=self._db)

    def active(self):
        return self.get_queryset().active()

    def for_academic_period(self, academic_year=None, semester=None):
        return self.get_queryset().for_academic_period(academic_year=academic_year, semester=semester)
