"""
URL routing for payment API endpoints.
"""
from django.urls import path

from . import views

app_name = 'payments'

urlpatterns = [
    path('payment-methods/', views.PaymentMethodListView.as_view(), name='payment-method-list'),
    path('admin/transactions/bulk-pay/', views.BulkPayView.as_view(), name='bulk-pay'),
    path('admin/payments/', views.AdminPaymentListView.as_view(), name='admin-payment-list'),
    path('admin/payments/<int:pk>/', views.AdminPaymentDetailView.as_view(), name='admin-payment-detail'),
    path('payments/', views.UserPaymentListView.as_view(), name='payment-list'),
    path('payments/<int:pk>/', views.UserPaymentDetailView.as_view(), name='payment-detail'),
]
