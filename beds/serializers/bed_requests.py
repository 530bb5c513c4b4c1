from rest_framework import serializers

from beds.models import EQUIPMENT_CHOICES, GENDER_CHOICES, BedRequest
from beds.serializers.text import CleanCharField, clean_text


class PatientDetailsSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    age = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=150)
    gender = serializers.ChoiceField(choices=GENDER_CHOICES, required=False, allow_blank=True)
    contactNumber = CleanCharField(max_length=32, source='contact_number')
    triageLevel = serializers.ChoiceField(choices=BedRequest.TRIAGE_CHOICES, required=False, allow_blank=True,
                                          source='triage_level')
    requiredEquipment = serializers.ChoiceField(choices=EQUIPMENT_CHOICES, required=False,
                                                source='required_equipment')
    reasonForAdmission = CleanCharField(source='reason_for_admission')
    estimatedStay = serializers.IntegerField(required=False, allow_null=True, min_value=1,
                                             source='estimated_stay')

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Patient name is required')
        return v


class BedRequestCreateSerializer(serializers.Serializer):
    patientDetails = PatientDetailsSerializer()
    preferredWard = CleanCharField(max_length=64)
    eta = serializers.DateTimeField(required=False, allow_null=True)
    notes = CleanCharField()


class ApproveSerializer(serializers.Serializer):
    bedId = serializers.IntegerField()
    ttlHours = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=24)
    notes = CleanCharField()


class ReasonSerializer(serializers.Serializer):
    reason = CleanCharField()


class BedRequestUpdateSerializer(serializers.Serializer):
    notes = CleanCharField(allow_null=True)
    eta = serializers.DateTimeField(required=False, allow_null=True)
    triageLevel = serializers.ChoiceField(choices=BedRequest.TRIAGE_CHOICES, required=False)


class BedRequestListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BedRequest.STATUS_CHOICES, required=False)
    ward = serializers.CharField(required=False)
    triageLevel = serializers.ChoiceField(choices=BedRequest.TRIAGE_CHOICES, required=False)
