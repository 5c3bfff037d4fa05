"""
URL routing for cart, checkout and transaction API endpoints.
"""
from django.urls import path

from . import views

app_name = 'orders'

urlpatterns = [
    # Cart
    path('cart/', views.CartView.as_view(), name='cart'),
    path('cart/add/', views.CartAddView.as_view(), name='cart-add'),
    path('cart/update/', views.CartUpdateView.as_view(), name='cart-update'),
    path('cart/remove/<int:item_id>/', views.CartRemoveView.as_view(), name='cart-remove'),
    path('cart/clear/', views.CartClearView.as_view(), name='cart-clear'),

    # Checkout
    path('checkout/', views.CheckoutView.as_view(), name='checkout'),
    path('checkout/orders/', views.UserOrderListView.as_view(), name='user-order-list'),
    path('checkout/orders/<int:pk>/', views.UserOrderDetailView.as_view(), name='user-order-detail'),
    path('checkout/orders/<int:pk>/cancel/', views.CancelOrderView.as_view(), name='user-order-cancel'),

    # Admin transactions
    path('admin/transactions/', views.TransactionListCreateView.as_view(), name='transaction-list'),
    path('admin/transactions/<int:pk>/', views.TransactionDetailView.as_view(), name='transaction-detail'),
    path(
        'admin/transactions/<int:pk>/cancel/',
        views.AdminCancelTransactionView.as_view(),
        name='transaction-cancel'
    ),
]
