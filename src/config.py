"""vCenter connection configuration.

Configuration is loaded from site-config YAML files:
- site.yaml: Site-wide defaults (port, insecure, task_poll_interval, timeout)
- secrets.yaml: Passwords, referenced by key from vcenters/*.yaml
- vcenters/*.yaml: One file per vCenter (host, user, password key)

The merge order is: built-in defaults → site → vcenter, with the
password resolved from secrets by key reference.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


class ConfigError(Exception):
    """Configuration error."""


@dataclass
class VCenterConfig:
    """Connection settings for one vCenter.

    Loaded from vcenters/{name}.yaml when the file exists; fields passed
    explicitly win over file values.
    """
    name: str
    config_file: Path
    host: str = ''
    port: int = 443
    user: str = ''
    insecure: bool = False
    task_poll_interval: float = 1.0
    timeout: Optional[float] = None

    # Password (resolved from secrets.yaml at load time)
    _password: str = field(default='', init=False, repr=False)

    def __post_init__(self):
        if isinstance(self.config_file, str):
            self.config_file = Path(self.config_file)

        if self.config_file.exists():
            self._load_from_yaml()

        if not self.host:
            self.host = self.name

    def _load_from_yaml(self):
        """Load configuration from YAML file with secrets resolution."""
        site_config_dir = self.config_file.parent.parent

        site_defaults = {}
        site_file = site_config_dir / 'site.yaml'
        if site_file.exists():
            site_defaults = _parse_yaml(site_file).get('defaults', {}) or {}

        vcenter_config = _parse_yaml(self.config_file)
        secrets = _load_secrets(site_config_dir)

        def pick(key, default):
            return vcenter_config.get(key, site_defaults.get(key, default))

        if not self.host:
            self.host = vcenter_config.get('host', '')
        if not self.user:
            self.user = pick('user', '')

        self.port = int(pick('port', self.port))
        self.insecure = bool(pick('insecure', self.insecure))
        self.task_poll_interval = float(pick('task_poll_interval', self.task_poll_interval))
        if (timeout := pick('timeout', self.timeout)) is not None:
            self.timeout = float(timeout)

        password_key = vcenter_config.get('password', self.name)
        if secrets and 'passwords' in secrets:
            self._password = (secrets['passwords'] or {}).get(password_key, '')

    def get_password(self) -> str:
        """Get resolved password (from secrets.yaml)."""
        if not self._password:
            raise ConfigError(
                f"No password for vCenter '{self.name}'. "
                f"Add it under passwords: in secrets.yaml"
            )
        return self._password


def _parse_yaml(path: Path) -> dict:
    """Parse a YAML file and return contents."""
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def _load_secrets(site_config_dir: Path) -> Optional[dict]:
    """Load decrypted secrets from secrets.yaml."""
    secrets_file = site_config_dir / 'secrets.yaml'
    if not secrets_file.exists():
        return None
    return _parse_yaml(secrets_file)


def get_base_dir() -> Path:
    """Get the vmfolder-driver directory."""
    return Path(__file__).parent.parent  # src/ -> vmfolder-driver/


def get_state_dir() -> Path:
    """Directory for per-resource state files.

    $VMFOLDER_STATE_DIR when set, otherwise .states/ under the current
    working directory.
    """
    if env_path := os.environ.get('VMFOLDER_STATE_DIR'):
        return Path(env_path)
    return Path.cwd() / '.states'


def get_site_config_dir() -> Path:
    """Discover site-config directory.

    Resolution order:
    1. $VMFOLDER_SITE_CONFIG environment variable
    2. ../site-config/ sibling directory (dev workspace)
    3. /usr/local/etc/vmfolder/ (FHS-compliant install)
    """
    if env_path := os.environ.get('VMFOLDER_SITE_CONFIG'):
        path = Path(env_path)
        if path.exists():
            return path
        raise ConfigError(f"VMFOLDER_SITE_CONFIG={env_path} does not exist")

    sibling = get_base_dir().parent / 'site-config'
    if sibling.exists():
        return sibling

    fhs_path = Path('/usr/local/etc/vmfolder')
    if fhs_path.exists():
        return fhs_path

    raise ConfigError(
        "site-config not found. "
        "Set VMFOLDER_SITE_CONFIG or clone site-config as sibling directory."
    )


def list_vcenters() -> list[str]:
    """List configured vCenters from site-config/vcenters/*.yaml."""
    try:
        site_config = get_site_config_dir()
    except ConfigError:
        return []

    vcenters_dir = site_config / 'vcenters'
    if not vcenters_dir.exists():
        return []
    return sorted(f.stem for f in vcenters_dir.glob('*.yaml') if f.is_file())


def load_vcenter_config(name: str) -> VCenterConfig:
    """Load configuration for a named vCenter."""
    site_config = get_site_config_dir()
    config_file = site_config / 'vcenters' / f'{name}.yaml'
    if not config_file.exists():
        available = list_vcenters()
        raise ConfigError(
            f"vCenter '{name}' not found: {config_file}\n"
            f"Available vCenters: {', '.join(available) if available else 'none configured'}"
        )
    return VCenterConfig(name=name, config_file=config_file)
