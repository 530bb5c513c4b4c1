from rest_framework import serializers

from beds.models import WardTransfer
from beds.serializers.text import CleanCharField


class TransferCreateSerializer(serializers.Serializer):
    bedId = serializers.IntegerField()
    patientId = serializers.IntegerField()
    currentWard = CleanCharField(max_length=64)
    targetWard = CleanCharField(max_length=64, required=True, allow_blank=False)
    reason = CleanCharField()


class TransferUpdateSerializer(serializers.Serializer):
    reason = CleanCharField(allow_null=True)
    notes = CleanCharField(allow_null=True)


class TransferListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=WardTransfer.STATUS_CHOICES, required=False)
    currentWard = serializers.CharField(required=False)
    targetWard = serializers.CharField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=200)
