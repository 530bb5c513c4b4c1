from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from beds.serializers.bed_requests import ReasonSerializer
from beds.serializers.payloads import transfer_payload
from beds.serializers.transfers import TransferCreateSerializer, TransferListQuerySerializer, TransferUpdateSerializer
from beds.services import transfers as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def transfers(request):
    if request.method == 'GET':
        q = TransferListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        d = q.validated_data
        items = svc.list_transfers(status=d.get('status'), current_ward=d.get('currentWard'),
                                   target_ward=d.get('targetWard'), limit=d.get('limit') or svc.LIST_LIMIT)
        return Response([transfer_payload(t) for t in items])

    s = TransferCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    d = s.validated_data
    transfer = svc.request_transfer(bed_id=d['bedId'], patient_id=d['patientId'], current_ward=d.get('currentWard'),
                                    target_ward=d['targetWard'], reason=d.get('reason'), actor=request.user)
    return Response(transfer_payload(transfer), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def transfer_detail(request, transfer_id: int):
    if request.method == 'GET':
        return Response(transfer_payload(svc.get_transfer(transfer_id)))
    if request.method == 'DELETE':
        svc.delete_transfer(transfer_id, actor=request.user)
        return Response({'ok': True})
    s = TransferUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    transfer = svc.update_transfer(transfer_id, actor=request.user, reason=s.validated_data.get('reason'),
                                   notes=s.validated_data.get('notes'))
    return Response(transfer_payload(transfer))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def approve_transfer(request, transfer_id: int):
    transfer = svc.approve_transfer(transfer_id, actor=request.user, notes=request.data.get('notes'))
    return Response(transfer_payload(transfer))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def deny_transfer(request, transfer_id: int):
    s = ReasonSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    transfer = svc.deny_transfer(transfer_id, reason=s.validated_data.get('reason'), actor=request.user)
    return Response(transfer_payload(transfer))
