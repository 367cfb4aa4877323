"""
qr.py — render a key URI as a QR code image.

Key.qr_code() only builds the request (URI + error-correction level); the
pixels are produced here with the `qrcode` package and Pillow:

    png = key.qr_code(FixLevel.FIX_LEVEL_15).png(256, 256)
    with open("qr-code.png", "wb") as f:
        f.write(png)

The symbol has no quiet zone and is scaled by a whole factor, centred on a
white width x height canvas. A canvas smaller than the symbol itself (roughly
49x49 for a typical otpauth URI) cannot be drawn and raises EncodingError.
"""

import io
from dataclasses import dataclass

import qrcode
from qrcode.exceptions import DataOverflowError
from qrcode.image.pil import PilImage
from PIL import Image

from .errors import EncodingError, wrap
from .fix_level import FIX_LEVEL_DEFAULT, FixLevel


@dataclass
class QRCode:
    """URI and error-correction level for one QR image."""

    uri: str
    level: FixLevel = FIX_LEVEL_DEFAULT

    def image(self, width: int, height: int) -> Image.Image:
        """
        The QR code as a 1-bit Pillow image of exactly width x height.

        Raises:
            EncodingError: empty URI, data too long, or size too small
        """
        uri = str(self.uri)
        if not uri:
            raise EncodingError("failed to encode URI to QR code: empty URI")

        try:
            qr = qrcode.QRCode(error_correction=int(self.level), box_size=1, border=0)
            qr.add_data(uri)
            qr.make(fit=True)
            img = qr.make_image(image_factory=PilImage, fill_color="black", back_color="white")
            symbol = img.get_image().convert("1")
        except (ValueError, DataOverflowError) as e:
            raise wrap(EncodingError, "failed to encode URI to QR code", e) from e

        return _scale(symbol, width, height)

    def png(self, width: int, height: int) -> bytes:
        """The QR code image as PNG bytes."""
        try:
            img = self.image(width, height)
        except EncodingError as e:
            raise wrap(EncodingError, "failed to generate QR code PNG image", e) from e

        buffer = io.BytesIO()
        try:
            img.save(buffer, format="PNG")
        except (OSError, ValueError) as e:
            raise wrap(EncodingError, "failed to encode QR code image to PNG", e) from e
        return buffer.getvalue()


def _scale(symbol: Image.Image, width: int, height: int) -> Image.Image:
    size_w, size_h = symbol.size
    factor = min(width // size_w, height // size_h)
    if factor < 1:
        raise EncodingError(
            "failed to scale QR code: can not scale barcode to an image smaller "
            f"than {size_w}x{size_h}"
        )

    scaled = symbol.resize((size_w * factor, size_h * factor), Image.Resampling.NEAREST)
    canvas = Image.new("1", (width, height), 255)
    canvas.paste(scaled, ((width - scaled.width) // 2, (height - scaled.height) // 2))
    return canvas
