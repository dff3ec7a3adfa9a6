"""docvision: document cleaning and field extraction.

Renders images and PDFs into pages, enhances them with Pillow, reads
them with Tesseract OCR, and asks a chat-completion model for the
document's business fields (invoice number, vendor, totals, ...).
"""
