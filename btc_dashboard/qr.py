"""Terminal QR rendering for receive addresses."""

from __future__ import annotations

import qrcode
from qrcode.constants import ERROR_CORRECT_M


def _modules(data: str) -> list[list[bool]]:
    qr = qrcode.QRCode(
        version=None,  # Auto-size
        error_correction=ERROR_CORRECT_M,
        box_size=1,
        border=0,
    )
    qr.add_data(data)
    qr.make(fit=True)
    return [[bool(cell) for cell in row] for row in qr.modules]


def render_qr(data: str) -> list[str]:
    """Return the QR code for ``data`` as rows of half-block glyphs.

    Two module rows are packed into each text row so the code keeps a
    roughly square aspect in a terminal cell grid.
    """

    modules = _modules(data or " ")
    width = len(modules[0])
    lines = []
    for y in range(0, len(modules), 2):
        line = ""
        for x in range(width):
            top = modules[y][x]
            bottom = modules[y + 1][x] if y + 1 < len(modules) else False
            if top and bottom:
                line += "█"
            elif top:
                line += "▀"
            elif bottom:
                line += "▄"
            else:
                line += " "
        lines.append(line)
    return lines
