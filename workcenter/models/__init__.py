# workcenter/models/__init__.py
from .user import *          # User
from .catalog import *       # Product
from .customer import *      # Customer
from .order import *         # OrderSequence, Order, LineItem
from .order_history import *  # OrderHistory
from .attachment import *    # Attachment, AttachmentVersion
from .audit_log import *     # AuditLog
from .setting import *       # Setting
