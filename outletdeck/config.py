import os
from collections.abc import Mapping
from dataclasses import dataclass

from outletdeck.errors import ConfigError

# ------------------------------------------------------------
# STORE VOCABULARY
# ------------------------------------------------------------

ALL_STORES = "All Stores"
ALL_WEEKS = "all-weeks"

STORES = [ALL_STORES, "Kondapur", "Kompally"]

OUTLET_CODES = {
    "Kondapur": "KDR",
    "Kompally": "KPL",
}
UNKNOWN_OUTLET_CODE = "UNK"

DEFAULT_TAX_RATE = 0.10
DEFAULT_TIMEZONE = "Asia/Kolkata"
DEFAULT_PAGE_SIZE = 1000
DEFAULT_DUCKDB_FILE = "data.duckdb"


def outlet_code(outlet: str) -> str:
    return OUTLET_CODES.get((outlet or "").strip(), UNKNOWN_OUTLET_CODE)


# ------------------------------------------------------------
# RUNTIME CONFIG
# ------------------------------------------------------------

@dataclass(frozen=True)
class DeckConfig:
    supabase_url: str | None = None
    supabase_key: str | None = None
    timezone: str = DEFAULT_TIMEZONE
    tax_rate: float = DEFAULT_TAX_RATE
    page_size: int = DEFAULT_PAGE_SIZE
    duckdb_file: str = DEFAULT_DUCKDB_FILE
    log_dir: str | None = None

    @property
    def offline(self) -> bool:
        """True when no Supabase credentials are configured."""
        return not (self.supabase_url and self.supabase_key)


def _lookup(secrets: Mapping, key: str):
    # st.secrets raises FileNotFoundError when no secrets.toml exists
    try:
        if key in secrets:
            return secrets[key]
    except FileNotFoundError:
        pass
    return os.environ.get(key)


def _number(raw, key: str, cast):
    try:
        return cast(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from exc


def load_config(secrets: Mapping | None = None) -> DeckConfig:
    """
    Build the runtime configuration.

    Values come from `secrets` (the app passes st.secrets) and fall back to
    environment variables of the same name.
    """
    secrets = secrets if secrets is not None else {}

    tax_rate = _lookup(secrets, "DECK_TAX_RATE")
    page_size = _lookup(secrets, "DECK_PAGE_SIZE")

    cfg = DeckConfig(
        supabase_url=_lookup(secrets, "SUPABASE_URL") or None,
        supabase_key=_lookup(secrets, "SUPABASE_KEY") or None,
        timezone=_lookup(secrets, "DECK_TIMEZONE") or DEFAULT_TIMEZONE,
        tax_rate=DEFAULT_TAX_RATE if tax_rate in (None, "") else _number(tax_rate, "DECK_TAX_RATE", float),
        page_size=DEFAULT_PAGE_SIZE if page_size in (None, "") else _number(page_size, "DECK_PAGE_SIZE", int),
        duckdb_file=_lookup(secrets, "DECK_DUCKDB_FILE") or DEFAULT_DUCKDB_FILE,
        log_dir=_lookup(secrets, "DECK_LOG_DIR") or None,
    )

    if not 0 <= cfg.tax_rate < 1:
        raise ConfigError(f"DECK_TAX_RATE must be in [0, 1), got {cfg.tax_rate}")
    if cfg.page_size <= 0:
        raise ConfigError(f"DECK_PAGE_SIZE must be positive, got {cfg.page_size}")
    return cfg
