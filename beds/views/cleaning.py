"""
Cleaning jobs and cleaning staff.

Mutating endpoints are limited to roles holding ``cleaning.manage``.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from beds.permissions import CanManageCleaning
from beds.serializers.cleaning import (
    JobAssignSerializer,
    JobCreateSerializer,
    JobListQuerySerializer,
    StaffSerializer,
    StaffUpdateSerializer,
)
from beds.serializers.payloads import job_payload, staff_payload
from beds.services import cleaning as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageCleaning])
def jobs(request):
    if request.method == 'GET':
        q = JobListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        d = q.validated_data
        items = svc.list_jobs(status=d.get('status'), floor=d.get('floor'), ward=d.get('ward'))
        return Response([job_payload(j) for j in items])
    s = JobCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    job = svc.create_job(s.validated_data['bedId'], actor=request.user)
    return Response(job_payload(job), status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def job_stats(request):
    return Response(svc.job_stats(status=request.query_params.get('status')))


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, CanManageCleaning])
def job_detail(request, job_id: int):
    if request.method == 'DELETE':
        svc.delete_job(job_id, actor=request.user)
        return Response({'ok': True})
    return Response(job_payload(svc.get_job(job_id)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageCleaning])
def start_job(request, job_id: int):
    return Response(job_payload(svc.start_job(job_id, actor=request.user)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageCleaning])
def assign_job(request, job_id: int):
    s = JobAssignSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(job_payload(svc.assign_job(job_id, s.validated_data['staffId'], actor=request.user)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageCleaning])
def complete_job(request, job_id: int):
    return Response(job_payload(svc.complete_job(job_id, actor=request.user)))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageCleaning])
def staff(request):
    if request.method == 'GET':
        return Response([staff_payload(s) for s in svc.list_staff()])
    s = StaffSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    member = svc.create_staff(staff_id=s.validated_data['staffId'], name=s.validated_data['name'],
                              actor=request.user)
    return Response(staff_payload(member), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, CanManageCleaning])
def staff_detail(request, pk: int):
    if request.method == 'GET':
        return Response(staff_payload(svc.get_staff(pk)))
    if request.method == 'DELETE':
        svc.delete_staff(pk, actor=request.user)
        return Response({'ok': True})
    s = StaffUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(staff_payload(svc.update_staff(pk, name=s.validated_data['name'], actor=request.user)))
