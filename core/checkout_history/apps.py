"""
StayLedger Core - Checkout History App Configuration
======================================================
Write-only sink for stays that reached a terminal state
(checked out or cancelled). The stay engine archives into it;
it never reads business state back out of it.
"""

from django.apps import AppConfig


class CheckoutHistoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.checkout_history"
    label = "checkout_history"
    verbose_name = "StayLedger Checkout History"
