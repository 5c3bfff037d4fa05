"""
Stock Ledger Service Layer - folding and appending stock movements.

Current stock of an item is always computed from the ledger:
    fold(item) = sum(IN quantities) - sum(OUT quantities)

record_movement() appends without any negative stock check; callers that
must not oversell check the fold first (see adjust_stock_with_history and
the checkout workflow in orders.services).
"""
import logging
from typing import Dict, Iterable, List, Optional

from django.db import transaction
from django.db.models import Count, IntegerField, Q, Sum, Value
from django.db.models.functions import Coalesce

from core.authentication import actor_name, actor_type
from core.exceptions import DomainValidationError, InsufficientStockError, ResourceNotFound
from .models import Direction, Item, StockHistory, StockMovement

logger = logging.getLogger(__name__)

FOLD_ANNOTATIONS = {
    'stock_in': Coalesce(
        Sum('stock_movements__quantity', filter=Q(stock_movements__direction=Direction.IN)),
        Value(0),
        output_field=IntegerField()
    ),
    'stock_out': Coalesce(
        Sum('stock_movements__quantity', filter=Q(stock_movements__direction=Direction.OUT)),
        Value(0),
        output_field=IntegerField()
    ),
}


def _validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise DomainValidationError("Quantity must be a positive integer")
    return quantity


def _validate_direction(direction) -> str:
    direction = str(direction or '').upper()
    if direction not in Direction.values:
        raise DomainValidationError("Type must be IN or OUT")
    return direction


def get_item(item_id, require_active: bool = False, lock: bool = False) -> Item:
    """
    Fetch an item or raise ResourceNotFound.

    With ``lock`` the row is locked until the surrounding transaction ends.
    """
    queryset = Item.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    try:
        item = queryset.get(id=item_id)
    except (Item.DoesNotExist, ValueError, TypeError):
        raise ResourceNotFound("Item not found")
    if require_active and not item.is_active:
        raise ResourceNotFound(f"Item {item.name} is not available")
    return item


def lock_items(item_ids: Iterable[int]) -> Dict[int, Item]:
    """
    Lock item rows for the current transaction, ordered by id to avoid deadlocks.

    Serialises concurrent writers that fold and append against the same items.
    """
    items = Item.objects.select_for_update().filter(id__in=set(item_ids)).order_by('id')
    return {item.id: item for item in items}


def current_stock(item_id) -> int:
    """Fold all movements of an item. May be negative; never clamped."""
    totals = StockMovement.objects.filter(item_id=item_id).aggregate(
        stock_in=Coalesce(Sum('quantity', filter=Q(direction=Direction.IN)), Value(0), output_field=IntegerField()),
        stock_out=Coalesce(Sum('quantity', filter=Q(direction=Direction.OUT)), Value(0), output_field=IntegerField()),
    )
    return totals['stock_in'] - totals['stock_out']


def record_movement(item_id, quantity: int, direction: str, note: str = '') -> StockMovement:
    """
    Append one ledger entry.

    Rejects unknown items, non-positive quantities and unknown directions.
    Does NOT check that an OUT movement leaves the fold non-negative.
    """
    quantity = _validate_quantity(quantity)
    direction = _validate_direction(direction)
    item = get_item(item_id)

    movement = StockMovement.objects.create(
        item=item,
        quantity=quantity,
        direction=direction,
        note=note or ''
    )
    logger.debug(f"Recorded {direction} {quantity} for {item.name}")
    return movement


def write_history(
    movement: StockMovement,
    reason: str,
    previous_stock: int,
    actor=None,
    reference_type: str = StockHistory.ReferenceType.MANUAL,
    reference_id: str = '',
) -> StockHistory:
    """Create the audit row paired with ``movement``."""
    new_stock = previous_stock + movement.signed_quantity
    return StockHistory.objects.create(
        item=movement.item,
        movement=movement,
        direction=movement.direction,
        quantity=movement.quantity,
        reason=reason,
        note=movement.note,
        previous_stock=previous_stock,
        new_stock=new_stock,
        performed_by=actor,
        performed_by_type=actor_type(actor),
        performed_by_name=actor_name(actor),
        reference_id=str(reference_id or ''),
        reference_type=reference_type,
    )


def adjust_stock_with_history(
    item_id,
    quantity: int,
    direction: str,
    reason: str,
    actor=None,
    note: str = '',
) -> Dict:
    """
    Manual stock change with an audit trail.

    Computes previous/new stock from the current fold and rejects OUT
    movements exceeding it before anything is written.

    Returns:
        Dict with 'stock' (StockMovement), 'history', 'previous_stock', 'new_stock'
    """
    quantity = _validate_quantity(quantity)
    direction = _validate_direction(direction)
    if reason not in StockHistory.Reason.values:
        raise DomainValidationError(
            f"Reason must be one of: {', '.join(StockHistory.Reason.values)}"
        )

    with transaction.atomic():
        item = get_item(item_id, lock=True)
        previous_stock = current_stock(item.id)

        if direction == Direction.OUT and previous_stock < quantity:
            logger.warning(
                f"Rejected manual OUT of {quantity} for {item.name}: only {previous_stock} in stock"
            )
            raise InsufficientStockError(item.name, previous_stock, quantity)

        movement = StockMovement.objects.create(
            item=item,
            quantity=quantity,
            direction=direction,
            note=note or ''
        )
        history = write_history(
            movement,
            reason=reason,
            previous_stock=previous_stock,
            actor=actor,
            reference_type=StockHistory.ReferenceType.MANUAL,
        )

    logger.info(
        f"Stock {direction} {quantity} for {item.name} ({reason}): "
        f"{previous_stock} -> {history.new_stock}"
    )
    return {
        'stock': movement,
        'history': history,
        'previous_stock': previous_stock,
        'new_stock': history.new_stock,
    }


def stock_summary(include_inactive: bool = True) -> List[Dict]:
    """Current fold for every item, computed in a single grouped query."""
    queryset = Item.objects.all()
    if not include_inactive:
        queryset = queryset.filter(status=Item.Status.ACTIVE)
    rows = queryset.annotate(**FOLD_ANNOTATIONS).order_by('name')
    return [
        {
            'item_id': item.id,
            'name': item.name,
            'size': item.size,
            'status': item.status,
            'current_stock': item.stock_in - item.stock_out,
        }
        for item in rows
    ]


def item_history(item_id):
    """Audit rows of one item, newest first."""
    return StockHistory.objects.filter(item_id=item_id).order_by('-created_at', '-id')


def reason_breakdown(item_id, queryset: Optional[Iterable] = None) -> List[Dict]:
    """Total quantity and row count per reason for an item's history."""
    if queryset is None:
        queryset = item_history(item_id)
    rows = (
        queryset.order_by()
        .values('reason')
        .annotate(total_quantity=Sum('quantity'), count=Count('id'))
        .order_by('reason')
    )
    return [
        {
            'reason': row['reason'],
            'total_quantity': row['total_quantity'] or 0,
            'count': row['count'],
        }
        for row in rows
    ]
