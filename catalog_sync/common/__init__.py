# Common utilities
from .config_loader import (
    ConfigurationError,
    PricingProfile,
    SyncSettings,
    load_config,
    load_settings,
)
from .csv_utils import configure_csv, parse_csv_text, parse_tsv_lines
from .log_config import setup_logging
from .pacing import FixedIntervalPacer
from .text_utils import collapse_whitespace, escape_sql_literal, slugify, upgrade_image_url
