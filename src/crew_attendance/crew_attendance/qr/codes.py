from __future__ import annotations

import io

import qrcode

from ..core.exceptions import ValidationError
from ..warehouses.model import Warehouse


def render_png(data: str, *, box_size: int = 10, border: int = 2) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def warehouse_code_png(warehouse: Warehouse) -> io.BytesIO:
    """PNG of the code printed at the warehouse entrance."""
    value = warehouse.qr_code_value or warehouse.backup_code
    if not value:
        raise ValidationError(f"Il magazzino {warehouse.name} non ha un codice QR")
    return render_png(value)
