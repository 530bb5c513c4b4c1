from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from beds.serializers.payloads import alert_payload
from beds.serializers.settings import AlertCreateSerializer, AlertListQuerySerializer
from beds.services import alerts as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def alerts(request):
    if request.method == 'GET':
        q = AlertListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        d = q.validated_data
        items = svc.list_alerts(severity=d.get('severity'), ward=d.get('ward'), acknowledged=d.get('acknowledged'),
                                limit=d.get('limit') or 50)
        return Response([alert_payload(a) for a in items])
    s = AlertCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    d = s.validated_data
    alert = svc.create_alert(severity=d['severity'], message=d['message'], ward=d.get('ward'),
                             bed_id=d.get('bedId'), priority=d.get('priority') or 1)
    return Response(alert_payload(alert), status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def acknowledge(request, alert_id: int):
    return Response(alert_payload(svc.acknowledge_alert(alert_id, actor=request.user)))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def alert_stats(request):
    return Response(svc.alert_summary())
