"""
URL routing for inventory API endpoints.
"""
from django.urls import path

from . import views

app_name = 'inventory'

urlpatterns = [
    # Items
    path('items/', views.ItemListCreateView.as_view(), name='item-list'),
    path('items/<int:pk>/', views.ItemDetailView.as_view(), name='item-detail'),

    # Stock ledger
    path('stock/', views.StockListCreateView.as_view(), name='stock-list'),
    path('stock/summary/', views.StockSummaryView.as_view(), name='stock-summary'),
    path('stock/add-with-history/', views.StockAdjustView.as_view(), name='stock-adjust'),
    path('stock/item/<int:item_id>/', views.ItemStockView.as_view(), name='item-stock'),
    path('stock/item/<int:item_id>/history/', views.ItemStockHistoryView.as_view(), name='item-stock-history'),
]
