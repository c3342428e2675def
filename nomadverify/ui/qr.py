"""QR rendering for universal links."""

import qrcode
import qrcode.image.svg


def render_qr_svg(link: str, box_size: int = 10, border: int = 4) -> str:
    """Render ``link`` as an inline SVG QR code.

    Version is left to the library; SelfApp links are long.
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
        image_factory=qrcode.image.svg.SvgPathImage,
    )
    qr.add_data(link)
    qr.make(fit=True)
    img = qr.make_image()
    return img.to_string(encoding="unicode")
