"""Domain modules package."""

from marketplace.modules.audit import models as audit_models  # noqa: F401
from marketplace.modules.booking import models as booking_models  # noqa: F401
from marketplace.modules.catalog import models as catalog_models  # noqa: F401
from marketplace.modules.notifications import models as notifications_models  # noqa: F401
