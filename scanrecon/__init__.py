"""Scanned document text recognition and arithmetic reconciliation.

Drives Tesseract over preprocessed page bitmaps (PDF, TIFF, images),
then repairs the numeric fields of LLM-extracted invoice and receipt
records so that line items, subtotal, tax, and total agree.
"""

__version__ = "1.0.0"
