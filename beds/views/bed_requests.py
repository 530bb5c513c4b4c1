from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from beds.serializers.bed_requests import (
    ApproveSerializer,
    BedRequestCreateSerializer,
    BedRequestListQuerySerializer,
    BedRequestUpdateSerializer,
    ReasonSerializer,
)
from beds.serializers.payloads import request_payload
from beds.services import bed_requests as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def bed_requests(request):
    if request.method == 'GET':
        q = BedRequestListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        d = q.validated_data
        items = svc.list_requests(request.user, status=d.get('status'), ward=d.get('ward'),
                                  triage_level=d.get('triageLevel'))
        return Response([request_payload(r) for r in items])

    s = BedRequestCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    d = s.validated_data
    req = svc.create_request(request.user, dict(d['patientDetails']), preferred_ward=d.get('preferredWard'),
                             eta=d.get('eta'), notes=d.get('notes'))
    return Response(request_payload(req), status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def bed_request_stats(request):
    return Response(svc.request_stats(request.user))


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def bed_request_detail(request, request_id: str):
    if request.method == 'GET':
        return Response(request_payload(svc.get_request(request_id, actor=request.user)))
    if request.method == 'DELETE':
        svc.soft_delete_request(request_id, actor=request.user)
        return Response({'ok': True, 'requestId': request_id})
    s = BedRequestUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    d = s.validated_data
    req = svc.update_request(request_id, actor=request.user, notes=d.get('notes'), eta=d.get('eta'),
                             triage_level=d.get('triageLevel'))
    return Response(request_payload(req))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def approve(request, request_id: str):
    s = ApproveSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    d = s.validated_data
    req = svc.approve_request(request_id, d['bedId'], actor=request.user, ttl_hours=d.get('ttlHours'),
                              notes=d.get('notes'))
    return Response(request_payload(req))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def deny(request, request_id: str):
    s = ReasonSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = svc.deny_request(request_id, actor=request.user, reason=s.validated_data.get('reason'))
    return Response(request_payload(req))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def fulfill(request, request_id: str):
    req = svc.fulfill_request(request_id, actor=request.user)
    return Response(request_payload(req))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel(request, request_id: str):
    s = ReasonSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = svc.cancel_request(request_id, actor=request.user, reason=s.validated_data.get('reason'))
    return Response(request_payload(req))
