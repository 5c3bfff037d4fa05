"""
Order Service Layer - cart maintenance and atomic settlement.

Settlement (checkout and admin entry) follows a fail-fast pattern inside
one database transaction:
1. Lock the involved item rows (ordered by id)
2. Walk the lines in order; fold each item's stock from the ledger
3. If ANY line is short: raise, nothing is written
4. If ALL pass: create the transaction, append one OUT movement and one
   history row per line, then (checkout only) empty the cart
"""
import logging
from decimal import Decimal
from functools import partial
from typing import Dict, List, Sequence, Tuple

from django.contrib.auth import get_user_model
from django.db import transaction

from core.exceptions import (
    DomainValidationError,
    EmptyCartError,
    InsufficientStockError,
    InvalidStateError,
    ResourceNotFound,
)
from core.numbering import generate_invoice_number
from inventory.models import Direction, StockHistory
from inventory.services import (
    current_stock,
    get_item,
    lock_items,
    record_movement,
    write_history,
)
from payments.services import get_payment_method
from .models import Cart, CartItem, Transaction, TransactionItem

logger = logging.getLogger(__name__)


# =============================================================================
# Cart
# =============================================================================

def _validate_qty(qty, allow_zero: bool = False) -> int:
    minimum = 0 if allow_zero else 1
    if isinstance(qty, bool) or not isinstance(qty, int) or qty < minimum:
        if allow_zero:
            raise DomainValidationError("Quantity cannot be negative")
        raise DomainValidationError("Quantity must be at least 1")
    return qty


def get_cart(user) -> Cart:
    """Return the user's cart, creating an empty one on first access."""
    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


def _existing_cart(user) -> Cart:
    try:
        return Cart.objects.get(user=user)
    except Cart.DoesNotExist:
        raise ResourceNotFound("Cart not found")


def _cart_line(cart: Cart, item_id) -> CartItem:
    try:
        return cart.items.get(item_id=item_id)
    except (CartItem.DoesNotExist, ValueError, TypeError):
        raise ResourceNotFound("Item not found in cart")


def add_to_cart(user, item_id, qty: int) -> Cart:
    """Add ``qty`` of an active item, merging into an existing line."""
    qty = _validate_qty(qty)
    item = get_item(item_id, require_active=True)

    with transaction.atomic():
        cart = get_cart(user)
        line = cart.items.select_for_update().filter(item=item).first()
        if line:
            line.qty += qty
            line.save(update_fields=['qty'])
        else:
            CartItem.objects.create(cart=cart, item=item, qty=qty)
        cart.save(update_fields=['updated_at'])

    logger.debug(f"Cart of {user}: +{qty} {item.name}")
    return cart


def update_cart_item(user, item_id, qty: int) -> Cart:
    """Set a line's quantity; 0 removes the line."""
    qty = _validate_qty(qty, allow_zero=True)
    cart = _existing_cart(user)
    line = _cart_line(cart, item_id)

    if qty == 0:
        line.delete()
    else:
        line.qty = qty
        line.save(update_fields=['qty'])
    cart.save(update_fields=['updated_at'])
    return cart


def remove_from_cart(user, item_id) -> Cart:
    cart = _existing_cart(user)
    _cart_line(cart, item_id).delete()
    cart.save(update_fields=['updated_at'])
    return cart


def clear_cart(user) -> Cart:
    cart = _existing_cart(user)
    cart.items.all().delete()
    cart.save(update_fields=['updated_at'])
    return cart


# =============================================================================
# Settlement
# =============================================================================

def validate_order_items(items: List[Dict]) -> List[Tuple[int, int]]:
    """
    Validate admin supplied line items.

    Args:
        items: List of dicts with 'item_id' and 'qty'

    Returns:
        List of (item_id, qty) in request order

    Raises:
        DomainValidationError: If validation fails
    """
    if not items:
        raise DomainValidationError("Please provide at least one item")

    lines = []
    seen_items = set()
    for idx, line in enumerate(items):
        if 'item_id' not in line:
            raise DomainValidationError(f"Item {idx}: missing 'item_id'")
        if 'qty' not in line:
            raise DomainValidationError(f"Item {idx}: missing 'qty'")

        item_id = line['item_id']
        qty = line['qty']

        if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
            raise DomainValidationError(f"Item {idx}: quantity must be a positive integer")

        if item_id in seen_items:
            raise DomainValidationError(f"Item {idx}: duplicate item_id {item_id}")
        seen_items.add(item_id)
        lines.append((item_id, qty))

    return lines


def _settle(
    user,
    lines: Sequence[Tuple[int, int]],
    status: str,
    actor,
    reference_type: str,
    payment_method=None,
    shipping_address: str = '',
    notes: str = '',
) -> Transaction:
    """
    Validate stock for every line and write the transaction.

    Must run inside transaction.atomic(); any exception rolls back every
    movement, history row and the transaction itself.
    """
    items = lock_items(item_id for item_id, _ in lines)

    # FAIL-FAST: check every line BEFORE any write, in line order
    checked = []
    for item_id, qty in lines:
        item = items.get(item_id)
        if item is None or not item.is_active:
            raise ResourceNotFound("One or more items not found or have been removed")
        if item.price <= 0:
            raise DomainValidationError(f"Invalid price for {item.name}")

        available = current_stock(item.id)
        if available < qty:
            raise InsufficientStockError(item.name, available, qty)
        checked.append((item, qty, available))

    tx = Transaction.objects.create(
        user=user,
        invoice_number=generate_invoice_number(),
        status=status,
        payment_method=payment_method,
        shipping_address=shipping_address or '',
        notes=notes or '',
    )

    total_amount = Decimal('0.00')
    tx_items = []
    for item, qty, available in checked:
        subtotal = item.price * qty
        tx_items.append(TransactionItem(
            transaction=tx,
            item=item,
            quantity=qty,
            unit_price=item.price,
            subtotal=subtotal,
        ))
        total_amount += subtotal

        movement = record_movement(
            item.id, qty, Direction.OUT, note=f"Order {tx.invoice_number}"
        )
        write_history(
            movement,
            reason=StockHistory.Reason.SOLD,
            previous_stock=available,
            actor=actor,
            reference_type=reference_type,
            reference_id=tx.invoice_number,
        )
        logger.debug(
            f"{tx.invoice_number}: deducted {qty} of {item.name}, "
            f"remaining stock: {available - qty}"
        )

    TransactionItem.objects.bulk_create(tx_items)

    tx.total_amount = total_amount
    tx.save(update_fields=['total_amount', 'updated_at'])
    return tx


def _queue_confirmation(transaction_id: int) -> None:
    try:
        from .tasks import send_transaction_confirmation
        send_transaction_confirmation.delay(transaction_id)
        logger.info(f"Triggered confirmation task for transaction #{transaction_id}")
    except Exception as e:
        # Don't fail the settled order if task queuing fails
        logger.error(f"Failed to queue confirmation task: {e}")


def checkout(user, payment_method_id, shipping_address: str, notes: str = '') -> Transaction:
    """
    Convert the user's cart into a PENDING transaction.

    Raises:
        DomainValidationError: Missing payment method / address, invalid price
        EmptyCartError: No cart or no lines
        ResourceNotFound: Unknown payment method or item
        InsufficientStockError: First line whose stock fold is too small
    """
    if not payment_method_id or not shipping_address:
        raise DomainValidationError("Please provide payment method and shipping address")

    payment_method = get_payment_method(payment_method_id)

    cart = Cart.objects.filter(user=user).first()
    if cart is None or not cart.items.exists():
        raise EmptyCartError()

    with transaction.atomic():
        cart = Cart.objects.select_for_update().get(id=cart.id)
        lines = list(cart.items.order_by('id').values_list('item_id', 'qty'))
        if not lines:
            raise EmptyCartError()

        try:
            tx = _settle(
                user,
                lines,
                status=Transaction.Status.PENDING,
                actor=user,
                reference_type=StockHistory.ReferenceType.ORDER,
                payment_method=payment_method,
                shipping_address=shipping_address,
                notes=notes,
            )
        except InsufficientStockError as e:
            logger.warning(f"Checkout by {user} rejected: {e.detail}")
            raise

        cart.items.all().delete()
        cart.save(update_fields=['updated_at'])

        transaction.on_commit(partial(_queue_confirmation, tx.id))

    logger.info(
        f"Checkout {tx.invoice_number} by {user}: {len(lines)} lines, "
        f"total {tx.total_amount}"
    )
    return tx


def _restock_and_cancel(tx: Transaction, actor, reference_type: str) -> int:
    """
    Write one compensating IN movement and ``return`` history row per line,
    then mark the transaction CANCELLED. Caller holds the transaction lock.
    """
    lines = list(tx.items.order_by('id'))
    lock_items(line.item_id for line in lines)

    for line in lines:
        previous_stock = current_stock(line.item_id)
        movement = record_movement(
            line.item_id,
            line.quantity,
            Direction.IN,
            note=f"Order cancelled {tx.invoice_number}"
        )
        write_history(
            movement,
            reason=StockHistory.Reason.RETURN,
            previous_stock=previous_stock,
            actor=actor,
            reference_type=reference_type,
            reference_id=tx.invoice_number,
        )

    tx.status = Transaction.Status.CANCELLED
    tx.save(update_fields=['status', 'updated_at'])
    return len(lines)


def cancel_transaction(user, transaction_id) -> Transaction:
    """
    Cancel a PENDING transaction owned by ``user``.

    Stock is restored with compensating IN movements; the original OUT
    movements stay in the ledger.
    """
    with transaction.atomic():
        tx = (
            Transaction.objects.select_for_update()
            .filter(id=transaction_id, user=user)
            .first()
        )
        if tx is None:
            raise ResourceNotFound("Order not found")
        if not tx.is_cancellable:
            raise InvalidStateError(f"Cannot cancel order with status: {tx.status}")

        restocked = _restock_and_cancel(tx, user, StockHistory.ReferenceType.ORDER)

    logger.info(f"{tx.invoice_number} cancelled by {user}, {restocked} lines restocked")
    return tx


def admin_cancel_transaction(admin, transaction_id) -> Transaction:
    """
    Cancel any PENDING or UNPAID transaction on behalf of the depot.

    Raises:
        ResourceNotFound: Unknown transaction
        InvalidStateError: Transaction is PAID or already CANCELLED
    """
    with transaction.atomic():
        tx = Transaction.objects.select_for_update().filter(id=transaction_id).first()
        if tx is None:
            raise ResourceNotFound("Transaction not found")
        if not tx.is_admin_cancellable:
            raise InvalidStateError(f"Cannot cancel transaction with status: {tx.status}")

        restocked = _restock_and_cancel(tx, admin, StockHistory.ReferenceType.TRANSACTION)

    logger.info(
        f"Transaction {tx.invoice_number} cancelled by {admin}, {restocked} lines restocked"
    )
    return tx


def create_transaction(
    admin,
    user_id,
    items: List[Dict],
    payment_method_id=None,
    status: str = Transaction.Status.UNPAID,
    shipping_address: str = '',
    notes: str = '',
) -> Transaction:
    """
    Admin entry of a transaction on behalf of a customer.

    Same stock validation and ledger writes as checkout, without a cart.
    """
    lines = validate_order_items(items)

    status = str(status or '').upper()
    if status not in (Transaction.Status.PENDING, Transaction.Status.UNPAID):
        raise DomainValidationError("Status must be PENDING or UNPAID")

    User = get_user_model()
    try:
        customer = User.objects.get(id=user_id)
    except (User.DoesNotExist, ValueError, TypeError):
        raise ResourceNotFound("User not found")

    payment_method = None
    if payment_method_id:
        payment_method = get_payment_method(payment_method_id)

    with transaction.atomic():
        tx = _settle(
            customer,
            lines,
            status=status,
            actor=admin,
            reference_type=StockHistory.ReferenceType.TRANSACTION,
            payment_method=payment_method,
            shipping_address=shipping_address,
            notes=notes,
        )

    logger.info(
        f"Transaction {tx.invoice_number} entered by {admin} for {customer}: "
        f"total {tx.total_amount}"
    )
    return tx

