from rest_framework import serializers

from beds.models import Alert
from beds.serializers.text import CleanCharField


class SettingsUpdateSerializer(serializers.Serializer):
    warningThreshold = serializers.IntegerField(required=False, min_value=0, max_value=100)
    criticalThreshold = serializers.IntegerField(required=False, min_value=0, max_value=100)
    reservationTtlHours = serializers.IntegerField(required=False, min_value=1, max_value=24)
    autoExpireReservations = serializers.BooleanField(required=False)
    defaultPeriod = serializers.ChoiceField(choices=['24h', '7d', '30d'], required=False)
    autoRefreshInterval = serializers.IntegerField(required=False, min_value=10)

    FIELD_MAP = {
        'warningThreshold': 'warning_threshold',
        'criticalThreshold': 'critical_threshold',
        'reservationTtlHours': 'reservation_ttl_hours',
        'autoExpireReservations': 'auto_expire_reservations',
        'defaultPeriod': 'default_period',
        'autoRefreshInterval': 'auto_refresh_interval',
    }

    def changes(self) -> dict:
        return {self.FIELD_MAP[k]: v for k, v in self.validated_data.items()}


class AlertCreateSerializer(serializers.Serializer):
    severity = serializers.ChoiceField(choices=Alert.SEVERITY_CHOICES)
    message = CleanCharField(required=True, allow_blank=False)
    ward = CleanCharField(max_length=64)
    bedId = serializers.IntegerField(required=False, allow_null=True)
    priority = serializers.IntegerField(required=False, min_value=1, max_value=5)


class AlertListQuerySerializer(serializers.Serializer):
    severity = serializers.ChoiceField(choices=Alert.SEVERITY_CHOICES, required=False)
    ward = serializers.CharField(required=False)
    acknowledged = serializers.BooleanField(required=False, allow_null=True, default=None)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=200)
