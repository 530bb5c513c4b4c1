from rest_framework import serializers

from beds.models import CleaningJob
from beds.serializers.text import CleanCharField


class JobCreateSerializer(serializers.Serializer):
    bedId = serializers.IntegerField()


class JobAssignSerializer(serializers.Serializer):
    staffId = serializers.IntegerField()


class JobListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CleaningJob.STATUS_CHOICES, required=False)
    floor = serializers.IntegerField(required=False)
    ward = serializers.CharField(required=False)


class StaffSerializer(serializers.Serializer):
    staffId = CleanCharField(max_length=32, required=True, allow_blank=False)
    name = CleanCharField(max_length=255, required=True, allow_blank=False)


class StaffUpdateSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255, required=True, allow_blank=False)
