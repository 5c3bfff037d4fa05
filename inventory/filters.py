from django_filters import rest_framework as filters

from .models import Direction, StockHistory, StockMovement


class StockMovementFilter(filters.FilterSet):
    """
    Filters for the raw movement list.

    Available filters: item_id, type (IN/OUT)
    """
    item_id = filters.NumberFilter(field_name='item_id')
    type = filters.ChoiceFilter(field_name='direction', choices=Direction.choices)

    class Meta:
        model = StockMovement
        fields = ['item_id', 'type']


class StockHistoryFilter(filters.FilterSet):
    """
    Filters for an item's stock history.

    Available filters: reason, type (IN/OUT), start_date, end_date
    """
    reason = filters.ChoiceFilter(choices=StockHistory.Reason.choices)
    type = filters.ChoiceFilter(field_name='direction', choices=Direction.choices)
    start_date = filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    end_date = filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = StockHistory
        fields = ['reason', 'type', 'start_date', 'end_date']
