"""ORM model registry. Import all models so Alembic autogenerate discovers them."""

from lapor_api.models.laporan import Laporan
from lapor_api.models.refresh_token import RefreshToken
from lapor_api.models.user import User

__all__ = [
    "Laporan",
    "RefreshToken",
    "User",
]
