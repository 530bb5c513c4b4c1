"""
Bed board views.

Listing and statistics are open to every signed-in user; status changes
go through :func:`beds.services.beds.update_bed`, which applies the bed
state machine and the role policy.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from beds.permissions import IsAdminRole
from beds.serializers.beds import BedListQuerySerializer, BedUpdateSerializer, CapacitySyncSerializer, RecommendSerializer
from beds.serializers.payloads import bed_payload
from beds.services import beds as bed_service


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_beds(request):
    q = BedListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    d = q.validated_data
    beds = bed_service.list_beds(ward=d.get('ward'), status=d.get('status'), floor=d.get('floor'),
                                 equipment_type=d.get('equipmentType'))
    return Response([bed_payload(b) for b in beds])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def available_beds(request):
    q = BedListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    d = q.validated_data
    result = bed_service.available_beds(ward=d.get('ward'), equipment_type=d.get('equipmentType'),
                                        urgency=d.get('urgency'))
    if result['alternatives']:
        return Response({
            'available': [],
            'alternatives': [bed_payload(b) for b in result['alternatives']],
            'message': result['message'],
        })
    return Response([bed_payload(b) for b in result['available']])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def bed_stats(request):
    return Response(bed_service.bed_stats(ward=request.query_params.get('ward')))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def bed_detail(request, bed_id: int):
    return Response(bed_payload(bed_service.get_bed(bed_id)))


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def update_bed(request, bed_id: int):
    s = BedUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    bed = bed_service.update_bed(bed_id, actor=request.user, status=s.validated_data.get('status'),
                                 notes=s.validated_data.get('notes'))
    return Response(bed_payload(bed))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def recommend_beds(request):
    s = RecommendSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    d = s.validated_data
    ranked = bed_service.recommend_beds(ward=d.get('ward'), equipment_type=d.get('equipmentType'),
                                        limit=d.get('limit') or bed_service.RECOMMEND_LIMIT)
    return Response({
        'recommendations': [{'bed': bed_payload(r['bed']), 'matchLevel': r['matchLevel']} for r in ranked],
        'count': len(ranked),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def sync_capacity(request):
    s = CapacitySyncSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(bed_service.sync_ward_capacity(s.validated_data['wards'], actor=request.user))
