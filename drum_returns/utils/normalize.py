"""Field-name normalization for drum records coming from stock exports.

Source data names the same column in several ways (upper-case ERP headers,
lower-case API keys, Polish labels with diacritics). Everything is mapped onto
the canonical Drum field names here, before any service sees the record.
"""

from __future__ import annotations

import re
import unicodedata

# canonical field → accepted keys (already passed through normalize_key)
DRUM_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "code": ("code", "drum_code", "kod_bebna"),
    "company_tax_id": ("company_tax_id", "tax_id", "nip"),
    "company_name": ("company_name", "pelna_nazwa_kontrahenta"),
    "name": ("name", "nazwa"),
    "feature": ("feature", "cecha"),
    "supplier_return_due_date": ("supplier_return_due_date", "data_zwrotu_do_dostawcy"),
    "stock_receipt_date": ("stock_receipt_date", "data_przyjecia_na_stan"),
    "issue_date": ("issue_date", "data_wydania"),
    "supplier_name": ("supplier_name", "kon_dostawca"),
    "document_type": ("document_type", "typ_dok"),
    "document_number": ("document_number", "nr_dokumentupz"),
    "counterparty_name": ("counterparty_name", "kontrahent"),
    "status": ("status",),
}

_NON_WORD = re.compile(r"[^a-z0-9]+")


def normalize_key(key: str) -> str:
    """'Data przyjęcia na stan' → 'data_przyjecia_na_stan'."""
    text = str(key).strip().lower().replace("ł", "l")
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return _NON_WORD.sub("_", text).strip("_")


def _alias_lookup() -> dict[str, str]:
    lookup: dict[str, str] = {}
    for canonical, aliases in DRUM_FIELD_ALIASES.items():
        for alias in aliases:
            lookup[alias] = canonical
    return lookup


ALIAS_LOOKUP = _alias_lookup()


def canonical_field(key: str) -> str | None:
    return ALIAS_LOOKUP.get(normalize_key(key))


def normalize_drum_record(raw: dict) -> dict:
    """Map a raw record onto canonical Drum keys.

    Unknown keys are dropped. When two variants of the same field are
    present, the first non-blank value wins. Blank strings become None.
    """
    record: dict = {}
    for key, value in raw.items():
        canonical = canonical_field(key)
        if canonical is None:
            continue
        if isinstance(value, str):
            value = value.strip() or None
        if record.get(canonical) is None:
            record[canonical] = value
    return record
