from django.contrib import admin
from unfold.admin import ModelAdmin, TabularInline

from events.models import Event, LightningInvoice, Payment, Ticket


class LightningInvoiceInline(TabularInline):  # type: ignore[misc]
    model = LightningInvoice
    extra = 0
    can_delete = False
    fields = ["processor_invoice_id", "amount_sats", "status", "expires_at", "created_at"]
    readonly_fields = fields


@admin.register(Event)
class EventAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["title", "start", "end", "capacity", "price_sats", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["title"]


@admin.register(Ticket)
class TicketAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["ticket_code", "event", "user", "payment_status", "uma_address", "paid_at", "created_at"]
    list_filter = ["payment_status", "event"]
    search_fields = ["ticket_code", "uma_address", "user__username", "user__email"]
    readonly_fields = ["ticket_code", "processor_invoice_id", "paid_at", "created_at", "updated_at"]
    inlines = [LightningInvoiceInline]


@admin.register(Payment)
class PaymentAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["id", "ticket", "amount_sats", "status", "expires_at", "paid_at"]
    list_filter = ["status"]
    search_fields = ["ticket__ticket_code", "encoded_payment_request"]
    readonly_fields = ["ticket", "encoded_payment_request", "amount_sats", "paid_at", "created_at", "updated_at"]


@admin.register(LightningInvoice)
class LightningInvoiceAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["processor_invoice_id", "ticket", "amount_sats", "status", "expires_at"]
    list_filter = ["status"]
    search_fields = ["processor_invoice_id", "payment_hash", "ticket__ticket_code"]
    readonly_fields = [f.name for f in LightningInvoice._meta.fields]
