# Models package — import all models here so create_all() can discover them.

from leaddesk.models.product import Product  # noqa: F401
from leaddesk.models.lead import Lead  # noqa: F401
from leaddesk.models.message import Message  # noqa: F401
