# billing/utils/barcode.py

import io

from barcode import Code128
from barcode.writer import ImageWriter

WRITER_OPTIONS = {
    "module_height": 8.0,
    "font_size": 8,
    "text_distance": 3.0,
    "quiet_zone": 2.0,
}


def bill_barcode_png(bill_number: str) -> io.BytesIO:
    """Code128 PNG of `bill_number`, rewound and ready for Document.add_picture."""
    if not bill_number:
        raise ValueError("bill_number must be a non-empty string")

    buffer = io.BytesIO()
    Code128(bill_number, writer=ImageWriter()).write(buffer, options=WRITER_OPTIONS)
    buffer.seek(0)
    return buffer
