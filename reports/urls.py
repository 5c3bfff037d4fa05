"""
URL routing for report API endpoints.
"""
from django.urls import path

from . import views

app_name = 'reports'

urlpatterns = [
    path('reports/best-sellers/', views.BestSellersView.as_view(), name='best-sellers'),
    path('reports/sales/', views.SalesReportView.as_view(), name='sales'),
    path('reports/revenue-by-payment/', views.RevenueByPaymentMethodView.as_view(), name='revenue-by-payment'),
    path('reports/stats/', views.TransactionStatsView.as_view(), name='stats'),
]
