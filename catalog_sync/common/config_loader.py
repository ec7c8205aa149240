"""
Configuration Loader

Loads the YAML sync settings and overlays deployment values and
credentials from the environment (a .env file is honored).
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import load_dotenv

ROUNDING_MODES = ('ceil', 'round')


class ConfigurationError(Exception):
    """Required settings or credentials are missing or invalid."""


def _get_config_dir() -> Path:
    """Get the config directory path."""
    # Try relative to this file first
    module_dir = Path(__file__).parent.parent.parent
    config_dir = module_dir / 'config'

    if config_dir.exists():
        return config_dir

    # Try current working directory
    cwd_config = Path.cwd() / 'config'
    if cwd_config.exists():
        return cwd_config

    raise FileNotFoundError(
        f"Config directory not found. Tried: {config_dir}, {cwd_config}"
    )


def load_config(filename: str) -> Dict[str, Any]:
    """
    Load a YAML configuration file from the config directory.

    Args:
        filename: Name of the config file (e.g., 'sync.yaml')

    Returns:
        Parsed YAML content as dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    return _read_yaml(_get_config_dir() / filename)


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def _decimal(value, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")


@dataclass
class PricingProfile:
    """How local prices are rounded for one backend."""
    granularity: int = 1
    rounding: str = 'round'     # 'ceil' or 'round'

    def __post_init__(self):
        if self.rounding not in ROUNDING_MODES:
            raise ConfigurationError(f"Unknown rounding mode: {self.rounding!r}")
        if self.granularity < 1:
            raise ConfigurationError("Pricing granularity must be >= 1")


@dataclass
class FeedSettings:
    base_url: str = 'https://tcgcsv.com/tcgplayer'
    category_id: int = 3
    timeout: int = 60


@dataclass
class CurrencySettings:
    url: str = ''
    field: str = 'valor'
    default_rate: Decimal = Decimal('4200')
    timeout: int = 15


@dataclass
class SSHSettings:
    """Remote host, database and WP-CLI settings for the remote-execution backend."""
    host: str = ''
    port: int = 22
    user: str = ''
    password: str = ''
    db_name: str = ''
    db_user: str = ''
    db_password: str = ''
    db_prefix: str = 'wp_'
    wp_path: str = ''
    category_id: int = 199
    update_batch_size: int = 500
    create_batch_size: int = 50
    batch_delay: float = 0.0
    create_pause_every: int = 10
    create_pause_seconds: float = 0.1
    command_timeout: int = 300
    pricing: PricingProfile = field(default_factory=lambda: PricingProfile(100, 'ceil'))

    def missing(self) -> List[str]:
        """Names of the environment variables still required."""
        required = {
            'SSH_HOST': self.host,
            'SSH_USER': self.user,
            'SSH_PASS': self.password,
            'DB_NAME': self.db_name,
            'DB_USER': self.db_user,
            'DB_PASS': self.db_password,
            'WP_PATH': self.wp_path,
        }
        return [name for name, value in required.items() if not value]


@dataclass
class WooCommerceSettings:
    """Store URL and REST API keys for the batched-HTTP backend."""
    url: str = ''
    consumer_key: str = ''
    consumer_secret: str = ''
    page_size: int = 100
    category_id: int = 199
    update_batch_size: int = 100
    create_batch_size: int = 100
    batch_delay: float = 1.0
    request_interval: float = 0.5
    timeout: int = 60
    pricing: PricingProfile = field(default_factory=PricingProfile)

    def missing(self) -> List[str]:
        required = {
            'WC_URL': self.url,
            'WC_CONSUMER_KEY': self.consumer_key,
            'WC_CONSUMER_SECRET': self.consumer_secret,
        }
        return [name for name, value in required.items() if not value]


@dataclass
class SyncSettings:
    """All settings for one process."""
    feed: FeedSettings = field(default_factory=FeedSettings)
    currency: CurrencySettings = field(default_factory=CurrencySettings)
    ssh: SSHSettings = field(default_factory=SSHSettings)
    woocommerce: WooCommerceSettings = field(default_factory=WooCommerceSettings)
    min_price: Decimal = Decimal('200')
    default_method: str = 'ssh'
    log_capacity: int = 1000
    progress_log_every: int = 10

    def pricing_for(self, method: str) -> PricingProfile:
        """Pricing profile of the given backend ('ssh' or 'rest')."""
        if method == 'ssh':
            return self.ssh.pricing
        if method == 'rest':
            return self.woocommerce.pricing
        raise ConfigurationError(f"Unknown sync method: {method!r}")


def _pricing(section: Mapping[str, Any], default: PricingProfile) -> PricingProfile:
    data = section.get('pricing') or {}
    return PricingProfile(
        granularity=int(data.get('granularity', default.granularity)),
        rounding=str(data.get('rounding', default.rounding)),
    )


def _pick(section: Mapping[str, Any], cls, names: List[str]) -> Dict[str, Any]:
    """Take known keys from a YAML section, coerced to the dataclass defaults' types."""
    defaults = cls()
    values = {}
    for name in names:
        if name in section and section[name] is not None:
            values[name] = type(getattr(defaults, name))(section[name])
    return values


def load_settings(
    config_path: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> SyncSettings:
    """
    Build settings from YAML plus environment overrides.

    Args:
        config_path: YAML file (default: config/sync.yaml)
        environ: Environment mapping (default: os.environ after loading .env)

    Returns:
        Populated SyncSettings

    Raises:
        FileNotFoundError: If the YAML file doesn't exist
        ConfigurationError: If a value has the wrong shape
    """
    if config_path is None:
        data = load_config('sync.yaml')
    else:
        data = _read_yaml(Path(config_path))

    if environ is None:
        load_dotenv()
        environ = os.environ

    feed_cfg = data.get('feed') or {}
    currency_cfg = data.get('currency') or {}
    ssh_cfg = data.get('ssh') or {}
    wc_cfg = data.get('woocommerce') or {}
    run_cfg = data.get('run') or {}
    pricing_cfg = data.get('pricing') or {}

    feed = FeedSettings(**_pick(feed_cfg, FeedSettings, ['base_url', 'category_id', 'timeout']))

    currency = CurrencySettings(**_pick(currency_cfg, CurrencySettings, ['url', 'field', 'timeout']))
    if 'default_rate' in currency_cfg:
        currency.default_rate = _decimal(currency_cfg['default_rate'], 'currency.default_rate')

    ssh = SSHSettings(**_pick(ssh_cfg, SSHSettings, [
        'port', 'db_prefix', 'category_id', 'update_batch_size', 'create_batch_size',
        'batch_delay', 'create_pause_every', 'create_pause_seconds', 'command_timeout',
    ]))
    ssh.pricing = _pricing(ssh_cfg, ssh.pricing)

    woocommerce = WooCommerceSettings(**_pick(wc_cfg, WooCommerceSettings, [
        'url', 'page_size', 'category_id', 'update_batch_size', 'create_batch_size',
        'batch_delay', 'request_interval', 'timeout',
    ]))
    woocommerce.pricing = _pricing(wc_cfg, woocommerce.pricing)

    settings = SyncSettings(
        feed=feed,
        currency=currency,
        ssh=ssh,
        woocommerce=woocommerce,
        min_price=_decimal(pricing_cfg.get('min_price', '200'), 'pricing.min_price'),
        default_method=str(data.get('default_method', 'ssh')),
        log_capacity=int(run_cfg.get('log_capacity', 1000)),
        progress_log_every=int(run_cfg.get('progress_log_every', 10)),
    )

    _apply_environment(settings, environ)
    return settings


def _apply_environment(settings: SyncSettings, environ: Mapping[str, str]) -> None:
    """Overlay credentials and deployment values from the environment."""
    ssh = settings.ssh
    ssh.host = environ.get('SSH_HOST', ssh.host)
    ssh.user = environ.get('SSH_USER', ssh.user)
    ssh.password = environ.get('SSH_PASS', ssh.password)
    ssh.db_name = environ.get('DB_NAME', ssh.db_name)
    ssh.db_user = environ.get('DB_USER', ssh.db_user)
    ssh.db_password = environ.get('DB_PASS', ssh.db_password)
    ssh.db_prefix = environ.get('DB_PREFIX', ssh.db_prefix)
    ssh.wp_path = environ.get('WP_PATH', ssh.wp_path)

    wc = settings.woocommerce
    wc.url = environ.get('WC_URL', wc.url)
    wc.consumer_key = environ.get('WC_CONSUMER_KEY', wc.consumer_key)
    wc.consumer_secret = environ.get('WC_CONSUMER_SECRET', wc.consumer_secret)

    try:
        if environ.get('SSH_PORT'):
            ssh.port = int(environ['SSH_PORT'])
        if environ.get('CATEGORY_SINGLES_ID'):
            ssh.category_id = int(environ['CATEGORY_SINGLES_ID'])
            wc.category_id = ssh.category_id
    except ValueError as e:
        raise ConfigurationError(f"Invalid numeric environment value: {e}")
