# ledger/serializers.py
"""
Serializers for the GL API.

Used for input validation and output formatting only. Business logic
lives in the command layer.
"""

from rest_framework import serializers

from .models import FloatAccount, GLAccount, JournalEntry, JournalLine
from .posting_rules import EXPLICIT_LINE_TYPES, TransactionType, rule_roles

MONEY = {"max_digits": 18, "decimal_places": 2}


# =============================================================================
# Account Serializers
# =============================================================================

class GLAccountSerializer(serializers.ModelSerializer):
    parent_code = serializers.CharField(source="parent.code", read_only=True, default=None)

    class Meta:
        model = GLAccount
        fields = [
            "id", "code", "name", "account_type", "normal_balance",
            "parent", "parent_code", "balance", "is_active", "description",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class EnsureAccountsSerializer(serializers.Serializer):
    codes = serializers.ListField(
        child=serializers.RegexField(r"^\d{4,20}$"),
        allow_empty=False,
    )


class BalanceSerializer(serializers.Serializer):
    account_id = serializers.IntegerField()
    code = serializers.CharField()
    name = serializers.CharField()
    account_type = serializers.CharField()
    normal_balance = serializers.CharField()
    balance = serializers.DecimalField(**MONEY)


# =============================================================================
# Journal Entry Serializers
# =============================================================================

class JournalLineSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = JournalLine
        fields = [
            "line_no", "account", "account_code", "account_name",
            "description", "debit", "credit",
        ]
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    lines = JournalLineSerializer(many=True, read_only=True)
    total_debit = serializers.DecimalField(read_only=True, **MONEY)
    total_credit = serializers.DecimalField(read_only=True, **MONEY)
    reversal_entry_id = serializers.SerializerMethodField()

    class Meta:
        model = JournalEntry
        fields = [
            "id", "entry_number", "transaction_id", "transaction_type",
            "kind", "date", "status", "version", "memo", "currency",
            "lines", "total_debit", "total_credit",
            "created_by", "created_at",
            "posted_by", "posted_at",
            "reversed_by", "reversed_at", "reversal_reason",
            "reverses_entry", "reversal_entry_id",
        ]
        read_only_fields = fields

    def get_reversal_entry_id(self, obj):
        try:
            return obj.reversal_entry.pk
        except JournalEntry.DoesNotExist:
            return None


class JournalLineInputSerializer(serializers.Serializer):
    account_code = serializers.CharField(max_length=20)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    debit = serializers.DecimalField(required=False, default=0, **MONEY)
    credit = serializers.DecimalField(required=False, default=0, **MONEY)


class BuildEntrySerializer(serializers.Serializer):
    """
    Input for building a draft entry.

    Rule-based types take ``amount`` (and optionally ``fee`` and
    ``account_mappings``); manual entries take ``lines``.
    """
    transaction_type = serializers.ChoiceField(
        choices=[c for c in TransactionType.choices if c[0] != TransactionType.FLOAT_SYNC]
    )
    transaction_id = serializers.CharField(max_length=100)
    amount = serializers.DecimalField(required=False, allow_null=True, default=None, **MONEY)
    fee = serializers.DecimalField(required=False, default=0, **MONEY)
    account_mappings = serializers.DictField(
        child=serializers.CharField(max_length=20),
        required=False,
        default=dict,
    )
    lines = JournalLineInputSerializer(many=True, required=False)
    date = serializers.DateField(required=False, allow_null=True, default=None)
    memo = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    post = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        transaction_type = attrs["transaction_type"]
        if transaction_type in EXPLICIT_LINE_TYPES:
            if not attrs.get("lines"):
                raise serializers.ValidationError({"lines": "Manual entries require lines."})
            return attrs

        if attrs.get("lines"):
            raise serializers.ValidationError(
                {"lines": "Lines are only accepted for manual entries."}
            )
        if attrs.get("amount") is None:
            raise serializers.ValidationError({"amount": "This field is required."})

        unknown = set(attrs["account_mappings"]) - set(rule_roles(transaction_type))
        if unknown:
            raise serializers.ValidationError({
                "account_mappings": f"Unknown roles for {transaction_type}: {', '.join(sorted(unknown))}."
            })
        return attrs


class ReverseEntrySerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)


# =============================================================================
# Report Serializers
# =============================================================================

class JournalEntryQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=JournalEntry.Status.choices, required=False)
    transaction_type = serializers.ChoiceField(choices=TransactionType.choices, required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


class TrialBalanceQuerySerializer(serializers.Serializer):
    as_of_date = serializers.DateField(required=False, allow_null=True, default=None)


class TrialBalanceRowSerializer(serializers.Serializer):
    account_id = serializers.IntegerField()
    code = serializers.CharField()
    name = serializers.CharField()
    account_type = serializers.CharField()
    balance = serializers.DecimalField(**MONEY)
    debit = serializers.DecimalField(**MONEY)
    credit = serializers.DecimalField(**MONEY)


class TrialBalanceSerializer(serializers.Serializer):
    as_of_date = serializers.DateField(allow_null=True)
    accounts = TrialBalanceRowSerializer(many=True)
    total_debits = serializers.DecimalField(**MONEY)
    total_credits = serializers.DecimalField(**MONEY)
    is_balanced = serializers.BooleanField()


class BalanceMismatchSerializer(serializers.Serializer):
    account_id = serializers.IntegerField()
    code = serializers.CharField()
    stored_balance = serializers.DecimalField(**MONEY)
    computed_balance = serializers.DecimalField(**MONEY)
    difference = serializers.DecimalField(**MONEY)


# =============================================================================
# Float Serializers
# =============================================================================

class FloatAccountSerializer(serializers.ModelSerializer):
    gl_account_code = serializers.CharField(source="gl_account.code", read_only=True, default=None)

    class Meta:
        model = FloatAccount
        fields = [
            "id", "provider", "account_type", "branch_code",
            "current_balance", "is_active", "gl_account", "gl_account_code",
            "created_at", "updated_at",
        ]
        read_only_fields = fields
