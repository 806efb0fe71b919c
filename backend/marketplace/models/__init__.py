from marketplace.models.account import Account, AccountStatus  # noqa: F401
from marketplace.models.vendor import Vendor  # noqa: F401
from marketplace.models.product import Product, CartItem  # noqa: F401
from marketplace.models.order import (  # noqa: F401
    Order,
    OrderItem,
    OrderStatus,
    TrackingStatus,
    VendorOrderStatus,
    VendorSubOrder,
)
from marketplace.models.wallet import Wallet  # noqa: F401
from marketplace.models.payout import Payout, PayoutStatus  # noqa: F401
from marketplace.models.ledger import TransactionType, WalletTransaction  # noqa: F401
