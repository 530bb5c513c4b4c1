"""
ASGI config for the bedmanager project.

Wires both HTTP (Django) and WebSocket (Channels).
Order matters: configure Django before importing any Django-dependent modules.
"""
import os

# 1) Configure settings before any Django import
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "bedmanager.settings")

# 2) Ensure Django is fully set up (so models/auth work during imports)
import django  # noqa: E402
django.setup()  # noqa: E402

# 3) Now import ASGI/Channels components and app consumers
from django.conf import settings  # noqa: E402
from django.core.asgi import get_asgi_application  # noqa: E402
from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.auth import AuthMiddlewareStack  # noqa: E402
from django.urls import path  # noqa: E402

from beds.realtime.consumers import UpdatesConsumer  # noqa: E402

django_asgi_app = get_asgi_application()

websocket_urlpatterns = [
    path("ws/updates/", UpdatesConsumer.as_asgi()),
]

application = ProtocolTypeRouter({
    "http": django_asgi_app,
    "websocket": AuthMiddlewareStack(URLRouter(websocket_urlpatterns)),
})

# Reservation expiry runs in-process only when asked to; the usual
# deployment runs `manage.py run_expiry_sweeper` as its own process.
if settings.BEDS_SWEEPER_AUTOSTART:
    from beds.services.expiry import ReservationExpirySweeper  # noqa: E402

    sweeper = ReservationExpirySweeper(interval=settings.BEDS_EXPIRY_SWEEP_INTERVAL)
    sweeper.start()
