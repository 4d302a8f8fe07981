"""
Change notifications for committed writes.

Services send these after their transaction commits; handlers.py subscribes
the reactive work (public mirror, payment confirmation). Senders never wait
on a receiver's success.
"""

from blinker import Namespace

_signals = Namespace()

# sender: Owner
owner_written = _signals.signal("owner-written")

# sender: Product
product_written = _signals.signal("product-written")

# sender: product id (str); the row is already gone
product_deleted = _signals.signal("product-deleted")

# sender: Order; kwargs: before (dict of changed fields' prior values)
order_updated = _signals.signal("order-updated")
