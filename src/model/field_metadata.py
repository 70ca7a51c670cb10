"""Field metadata for yearly strategy and comparison records.

Short names are used as column headers in tables and by the shell 'get'
command; descriptions are shown by the shell 'fields' command.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass
class FieldInfo:
    """Metadata for a single field."""
    short_name: str  # Column header (unique, concise)
    description: str


# Fields of NormalizedYear, shared by every strategy in a comparison
COMPARISON_FIELDS: Dict[str, FieldInfo] = {
    "asset_value": FieldInfo("Asset Value", "Value of remaining holdings at year end"),
    "gross_withdrawal": FieldInfo("Gross Withdrawal", "Cash raised from sales before tax"),
    "net_withdrawal": FieldInfo("Net Withdrawal", "Cash received after tax"),
    "tax_paid": FieldInfo("Tax Paid", "Income tax on the withdrawal"),
    "fees": FieldInfo("Fees", "Annual fees plus dealing costs"),
    "status": FieldInfo("Status", "active, depleted, exhausted or partial"),
}

# Fields of YearRecord, the raw drawdown state-machine output
YEAR_RECORD_FIELDS: Dict[str, FieldInfo] = {
    "year": FieldInfo("Year", "Calendar year"),
    "status": FieldInfo("Status", "active, depleted or exhausted"),
    "unit_price": FieldInfo("Unit Price", "Price per ounce or fund unit in GBP"),
    "opening_holdings": FieldInfo("Opening Holdings", "Ounces or units held at the start of the year"),
    "opening_value": FieldInfo("Opening Value", "Value of holdings at the start of the year"),
    "fee": FieldInfo("Annual Fee", "Storage or management fee, paid before withdrawal"),
    "holdings_sold_for_fee": FieldInfo("Sold For Fee", "Ounces or units sold to pay the fee"),
    "value_after_fee": FieldInfo("Value After Fee", "Value of holdings once the fee is paid"),
    "withdrawal_requested": FieldInfo("Target Withdrawal", "Withdrawal the strategy tried to make"),
    "holdings_sold": FieldInfo("Sold For Withdrawal", "Ounces or units sold to fund the withdrawal"),
    "gross_withdrawal": FieldInfo("Gross Withdrawal", "Sale proceeds after dealing costs, before tax"),
    "transaction_cost": FieldInfo("Dealing Cost", "Transaction costs on all sales in the year"),
    "tax_paid": FieldInfo("Tax Paid", "Income tax on the withdrawal"),
    "net_withdrawal": FieldInfo("Net Withdrawal", "Cash received after tax"),
    "closing_holdings": FieldInfo("Closing Holdings", "Ounces or units held at year end"),
    "closing_value": FieldInfo("Closing Value", "Value of holdings at year end"),
}

FIELD_METADATA: Dict[str, FieldInfo] = {**YEAR_RECORD_FIELDS, **COMPARISON_FIELDS}


def get_short_name(field_name: str) -> str:
    """Get the short name for a field, or the field name if not found."""
    info = FIELD_METADATA.get(field_name)
    return info.short_name if info else field_name


def get_description(field_name: str) -> str:
    """Get the description for a field, or empty string if not found."""
    info = FIELD_METADATA.get(field_name)
    return info.description if info else ""


def get_field_info(field_name: str) -> FieldInfo | None:
    return FIELD_METADATA.get(field_name)


def wrap_header(text: str, max_width: int) -> list[str]:
    """Split a column header into lines no wider than max_width.

    Words are kept whole; a single word longer than max_width gets a line
    of its own.
    """
    if len(text) <= max_width:
        return [text]

    lines = []
    current = ""
    for word in text.split():
        if current and len(current) + 1 + len(word) > max_width:
            lines.append(current)
            current = word
        else:
            current = f"{current} {word}" if current else word
    if current:
        lines.append(current)
    return lines
