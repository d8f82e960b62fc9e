# Import models here so Alembic can discover metadata.
from app.models.tenant import Tenant  # noqa: F401
from app.models.tenant_settings import TenantSettings  # noqa: F401
from app.models.user import InternalUser  # noqa: F401
from app.models.customer import Customer  # noqa: F401
