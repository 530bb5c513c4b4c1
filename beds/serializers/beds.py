from rest_framework import serializers

from beds.models import EQUIPMENT_CHOICES, Bed
from beds.serializers.text import CleanCharField


class BedListQuerySerializer(serializers.Serializer):
    ward = serializers.CharField(required=False)
    status = serializers.ChoiceField(choices=Bed.STATUS_CHOICES, required=False)
    floor = serializers.IntegerField(required=False)
    equipmentType = serializers.ChoiceField(choices=EQUIPMENT_CHOICES, required=False)
    urgency = serializers.ChoiceField(choices=['low', 'medium', 'high'], required=False)


class BedUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Bed.STATUS_CHOICES, required=False)
    notes = CleanCharField(allow_null=True)


class RecommendSerializer(serializers.Serializer):
    ward = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    equipmentType = serializers.ChoiceField(choices=EQUIPMENT_CHOICES, required=False, allow_null=True)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=3)


class CapacitySyncSerializer(serializers.Serializer):
    wards = serializers.DictField(child=serializers.IntegerField(min_value=0), allow_empty=False)
