# Overview: Invoice number formatting shared by the server and the device store.

INVOICE_PREFIX = "INV"
INVOICE_DIGITS = 5


def next_invoice_number(existing_count: int) -> str:
    """
    Next sequential invoice number, derived from how many transactions exist.

    NOTE: Not collision-safe. Two writers that count the same set of
    transactions get the same number, and deleted transactions leave the
    sequence short rather than leaving a gap.
    """
    return f"{INVOICE_PREFIX}{str(existing_count + 1).zfill(INVOICE_DIGITS)}"
