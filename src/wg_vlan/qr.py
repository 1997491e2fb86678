# src/wg_vlan/qr.py
import sys
from pathlib import Path
from typing import TextIO, Optional, cast

import qrcode

ERROR_CORRECT_L: int = cast(int, qrcode.constants.ERROR_CORRECT_L)


def make_qr(text: str) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,  # automatic size
        error_correction=ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(text)
    qr.make(fit=True)
    return qr


def print_qr(text: str, out: Optional[TextIO] = None) -> None:
    """
    Affiche le QR code dans le terminal (caractères demi-bloc).
    """
    make_qr(text).print_ascii(out=out or sys.stdout, invert=True)


def save_qr(text: str, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    img = make_qr(text).make_image(fill_color="black", back_color="white")
    img.save(str(path))
    return path
