from django.urls import path

from . import views

urlpatterns = [
    path("auth", views.auth_view, name="powergest_auth"),
    path("logout", views.logout_view, name="powergest_logout"),
    path("compras", views.purchases_view, name="powergest_purchases"),
    path("ventas", views.sales_view, name="powergest_sales"),
    path("stock", views.stock_view, name="powergest_stock"),
    path("productos", views.products_view, name="powergest_products"),
    path("dashboard/stats", views.dashboard_stats_view, name="powergest_dashboard_stats"),
    path("dashboard/charts", views.dashboard_charts_view, name="powergest_dashboard_charts"),
]
