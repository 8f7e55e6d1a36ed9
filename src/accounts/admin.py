"""Admin interface for accounts app."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from unfold.admin import ModelAdmin

from accounts.models import TicketUser, WalletConnection


@admin.register(TicketUser)
class TicketUserAdmin(UserAdmin, ModelAdmin):  # type: ignore[type-arg,misc]
    list_display = ["username", "email", "uma_address", "is_staff", "date_joined"]
    search_fields = ["username", "email", "uma_address"]
    fieldsets = (*UserAdmin.fieldsets, ("Payments", {"fields": ("uma_address",)}))  # type: ignore[misc]


@admin.register(WalletConnection)
class WalletConnectionAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["user", "expires_at", "updated_at"]
    search_fields = ["user__username", "user__email"]
    exclude = ["connection_uri"]
    readonly_fields = ["user", "expires_at", "created_at", "updated_at"]
