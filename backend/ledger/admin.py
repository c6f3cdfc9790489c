# ledger/admin.py
"""
Django admin configuration for ledger models.

Journal entries and account balances are viewable only. All mutations go
through the command layer (ledger/commands.py) so balances always match
the journal. Float accounts are editable: their balances are maintained
outside the ledger.
"""

from django.contrib import admin

from .models import FloatAccount, GLAccount, JournalEntry, JournalLine


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """Admin for models that only the command layer may write."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ReadOnlyInline(admin.TabularInline):
    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class JournalLineInline(ReadOnlyInline):
    model = JournalLine
    extra = 0
    readonly_fields = ["line_no", "account", "description", "debit", "credit"]
    fields = ["line_no", "account", "description", "debit", "credit"]


@admin.register(GLAccount)
class GLAccountAdmin(ReadOnlyModelAdmin):
    list_display = ["code", "name", "account_type", "normal_balance", "balance", "is_active"]
    list_filter = ["account_type", "is_active"]
    search_fields = ["code", "name"]
    ordering = ["code"]


@admin.register(JournalEntry)
class JournalEntryAdmin(ReadOnlyModelAdmin):
    list_display = [
        "id", "entry_number", "date", "transaction_type", "transaction_id",
        "kind", "status", "posted_by", "posted_at",
    ]
    list_filter = ["status", "kind", "transaction_type", "date"]
    search_fields = ["entry_number", "transaction_id", "memo"]
    date_hierarchy = "date"
    inlines = [JournalLineInline]


@admin.register(FloatAccount)
class FloatAccountAdmin(admin.ModelAdmin):
    list_display = ["provider", "account_type", "branch_code", "current_balance", "gl_account", "is_active"]
    list_filter = ["account_type", "is_active"]
    search_fields = ["provider", "branch_code"]
    autocomplete_fields = ["gl_account"]
