"""Root URLconf; this is where the process builds its one service instance."""
from django.urls import include, path

from .bootstrap import build_service
from .config import LedgerConfig
from .inventory.urls import build_urlpatterns

urlpatterns = [
    path("api/", include(build_urlpatterns(build_service(LedgerConfig.from_env())))),
]
