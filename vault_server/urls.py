from django.conf import settings
from django.urls import include, path

from vault.context import AppContext
from vault.urls import build_urlpatterns

app_context = AppContext.from_settings()

urlpatterns = [
    path(settings.API_PREFIX, include(build_urlpatterns(app_context))),
]

handler404 = 'vault.views.route_not_found'
handler500 = 'vault.views.server_error'
