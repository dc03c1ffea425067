from typing import List, Optional, Tuple

import qrcode

# top half / bottom half / both, indexed by (upper << 1) | lower
_HALF_BLOCKS = (" ", "▄", "▀", "█")


def _matrix(data: str, border: int) -> List[List[bool]]:
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    return qr.get_matrix()


def _render_half_blocks(matrix: List[List[bool]]) -> str:
    rows = list(matrix)
    if len(rows) % 2:
        rows.append([False] * len(rows[0]))
    lines = []
    for upper, lower in zip(rows[0::2], rows[1::2]):
        lines.append("".join(_HALF_BLOCKS[(u << 1) | l] for u, l in zip(upper, lower)))
    return "\n".join(lines)


def generate_qr_ascii(data: str, console_width: int) -> Tuple[str, int, Optional[str]]:
    """
    Render data as a terminal QR code that fits console_width.

    Both modes pack two module rows into one text line with half blocks, so
    a matrix of N modules is N + 2 * border columns wide. "double" keeps the
    2-module quiet zone and some margin; "compact" trims the border to 1.
    Returns (text, width, mode); mode is None and text an error message when
    nothing fits.
    """
    double = _matrix(data, border=2)
    double_width = len(double[0])
    if double_width <= console_width - 10:
        return _render_half_blocks(double), double_width, "double"

    compact = _matrix(data, border=1)
    compact_width = len(compact[0])
    if compact_width <= console_width - 2:
        return _render_half_blocks(compact), compact_width, "compact"

    return f"Terminal too narrow for QR code (need {compact_width + 2} columns)", compact_width, None
