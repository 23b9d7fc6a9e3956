"""Prompt templates for structured field extraction."""

SYSTEM_PROMPT = """\
You extract structured fields from OCR text of receipts/invoices/statements.
Return ONLY valid JSON. No markdown, no extra text.
Use null when unknown. Do not invent.
Prefer values that match arithmetic in the document."""

USER_TEMPLATE = """\
File: {file_name}

OCR TEXT:
{text}

Return this exact JSON shape:

{{
  "doc_type": "invoice|receipt|statement|memo|other",
  "vendor_or_sender": string|null,
  "receipt_or_invoice_no": string|null,
  "date": string|null,
  "currency": string|null,
  "recipient_name": string|null,
  "recipient_address": string|null,
  "subtotal": number|null,
  "tax_rate": number|null,
  "tax_amount": number|null,
  "total": number|null,
  "line_items": [
    {{
      "product_or_service": string|null,
      "description": string|null,
      "qty": number|null,
      "unit_price": number|null,
      "amount": number|null
    }}
  ],
  "notes": string|null
}}

Rules:
- date must be ISO if possible (YYYY-MM-DD)
- numbers must be plain numbers only (no commas, no currency symbol)
- If the document has "Receipt for #XXXX" or "Invoice #", put it into receipt_or_invoice_no
- If a table has Qty/Cost/Total: map to qty/unit_price/amount
- Enforce arithmetic where possible:
  - qty * unit_price = amount (rounding ok)
  - subtotal + tax_amount = total (rounding ok)
- If tax is shown like "Tax (13%) 456.30": tax_rate=13 and tax_amount=456.30
- If a memo: put summary into notes, leave line_items empty"""


def build_messages(text: str, file_name: str | None = None) -> list[dict[str, str]]:
    """Build the chat messages for one extraction request."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": USER_TEMPLATE.format(file_name=file_name or "unknown", text=text),
        },
    ]
