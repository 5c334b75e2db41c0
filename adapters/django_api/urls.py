"""
Storefront Django adapter URL routing.
"""

from django.urls import path

from adapters.django_api import views


urlpatterns = [
    path("orders", views.orders_create_view),
    path("orders/shipping-rates", views.shipping_rates_view),
    path("orders/payment-methods", views.payment_methods_view),
    path("orders/paystack/webhook", views.paystack_webhook_view),
    path("orders/verify-payment/<str:reference>", views.verify_payment_view),
    path("orders/<str:order_ref>", views.order_detail_view),
    path("orders/<str:order_ref>/tracking", views.order_tracking_view),
    path("orders/<str:order_ref>/cancel", views.order_cancel_view),
    path(
        "orders/<str:order_ref>/initialize-payment",
        views.initialize_payment_view,
    ),
    path("admin/orders/<str:order_ref>/status", views.admin_order_status_view),
    path("admin/orders/<str:order_ref>/notes", views.admin_order_notes_view),
    path("admin/orders/<str:order_ref>/refund", views.admin_order_refund_view),
    path("admin/orders/<str:order_ref>/restock", views.admin_order_restock_view),
    path(
        "admin/orders/<str:order_ref>/confirm-payment",
        views.admin_order_confirm_payment_view,
    ),
    path("admin/orders/<str:order_ref>/email", views.admin_order_email_view),
    path(
        "admin/inventory/<str:product_id>/adjust",
        views.admin_inventory_adjust_view,
    ),
    path(
        "admin/inventory/<str:product_id>/history",
        views.admin_inventory_history_view,
    ),
]
