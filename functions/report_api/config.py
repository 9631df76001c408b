import os
from functools import lru_cache


def _is_truthy(v: str | None) -> bool:
    return (v or "").strip().lower() in ("1", "true", "yes", "on")


class Settings:
    def __init__(
        self,
        timezone: str,
        currency_symbol: str,
        brand_name: str,
        pdf_font_path: str | None,
        pdf_compress: bool,
        expose_errors: bool,
    ) -> None:
        self.timezone = timezone
        self.currency_symbol = currency_symbol
        self.brand_name = brand_name
        self.pdf_font_path = pdf_font_path
        self.pdf_compress = pdf_compress
        self.expose_errors = expose_errors


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        timezone=os.getenv("REPORT_TIMEZONE") or "UTC",
        currency_symbol=os.getenv("REPORT_CURRENCY_SYMBOL", "₹"),
        brand_name=os.getenv("REPORT_BRAND_NAME") or "Money Manager",
        pdf_font_path=(os.getenv("REPORT_PDF_FONT_PATH") or "").strip() or None,
        pdf_compress=_is_truthy(os.getenv("REPORT_PDF_COMPRESS", "1")),
        expose_errors=_is_truthy(os.getenv("REPORT_EXPOSE_ERRORS")),
    )
