"""
PDF Encoder
Wrap a rendered certificate raster as a single-page PDF
"""

import img2pdf

PDF_MEDIA_TYPE = "application/pdf"


class PDFEncoder:
    """Raster to PDF conversion"""

    @staticmethod
    def encode(raster_bytes: bytes, width: int, height: int) -> bytes:
        """
        Produce a one-page PDF whose page is exactly width x height points,
        with the raster filling the whole page.
        """
        layout = img2pdf.get_layout_fun(
            pagesize=(float(width), float(height)),
            fit=img2pdf.FitMode.exact
        )
        return img2pdf.convert(raster_bytes, layout_fun=layout)


# Singleton
pdf_encoder = PDFEncoder()
