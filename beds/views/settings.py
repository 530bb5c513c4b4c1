from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from beds.policy import require
from beds.serializers.settings import SettingsUpdateSerializer
from beds.services import config


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def system_settings(request):
    if request.method == 'GET':
        return Response(config.get_settings().as_dict())
    require(request.user, 'settings.update')
    s = SettingsUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    values = config.update_settings(actor=request.user, **s.changes())
    return Response(values.as_dict())


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reset_settings(request):
    require(request.user, 'settings.update')
    return Response(config.reset_settings(actor=request.user).as_dict())
