from django_filters import rest_framework as filters

from .models import Transaction


class TransactionFilter(filters.FilterSet):
    """
    Transaction list filtering.

    Available filters: user_id, status, payment_method_id, start_date,
    end_date (inclusive), invoice_number (contains)
    """
    user_id = filters.NumberFilter(field_name='user_id')
    status = filters.ChoiceFilter(choices=Transaction.Status.choices)
    payment_method_id = filters.NumberFilter(field_name='payment_method_id')
    start_date = filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    end_date = filters.DateFilter(field_name='created_at', lookup_expr='date__lte')
    invoice_number = filters.CharFilter(lookup_expr='icontains')

    class Meta:
        model = Transaction
        fields = [
            'user_id', 'status', 'payment_method_id',
            'start_date', 'end_date', 'invoice_number'
        ]
