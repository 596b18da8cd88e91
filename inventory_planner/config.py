import os
import configparser
from pathlib import Path

from inventory_planner.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path('config') / 'settings.ini'

DEFAULTS = {
    'DATABASE': {
        'url': 'sqlite:///inventory_planner.db',
        'echo': 'False'
    },
    'LOGGING': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'directory': 'logs',
        'max_size_mb': '10',
        'backup_count': '5',
        'console_output': 'True'
    },
    'PLANNER': {
        'default_lead_time': '90',
        'default_min_days': '60',
        'default_target_months': '6',
        'rate_basis': 'last-period',
        'trend_timeframe': '3m'
    }
}


class Config:
    """Configuration manager for the Inventory Planner."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the configuration if not already initialized."""
        if self._initialized:
            return

        self._config_path = Path(os.environ.get('INVENTORY_PLANNER_CONFIG', DEFAULT_CONFIG_PATH))
        self._config = configparser.ConfigParser(interpolation=None)
        self._config.read_dict(DEFAULTS)

        # Values on disk override the built-in defaults
        if self._config_path.exists():
            self.load(self._config_path)

        self._initialized = True

    def load(self, path):
        """Read an INI file on top of the current values.

        Args:
            path: Path to the INI file
        """
        try:
            self._config.read(path)
        except configparser.Error as e:
            raise ConfigError(f"Could not read configuration file {path}: {str(e)}")
        self._config_path = Path(path)

    def save(self, path=None):
        """Save configuration to file.

        Args:
            path: Optional target path, defaults to the loaded path
        """
        target = Path(path) if path else self._config_path
        if not target.parent.exists():
            target.parent.mkdir(parents=True)
        with open(target, 'w') as configfile:
            self._config.write(configfile)

    def get(self, section, key, default=None):
        """Get configuration value."""
        try:
            return self._config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_int(self, section, key, default=None):
        """Get configuration value as integer."""
        try:
            return self._config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_float(self, section, key, default=None):
        """Get configuration value as float."""
        try:
            return self._config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        try:
            return self._config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def set(self, section, key, value):
        """Set configuration value in memory. Call save() to persist it."""
        if not self._config.has_section(section):
            self._config.add_section(section)

        self._config.set(section, key, str(value))

    def get_db_url(self):
        """Get the SQLAlchemy database URL."""
        return self.get('DATABASE', 'url', DEFAULTS['DATABASE']['url'])

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', DEFAULTS['LOGGING']['format']),
            'directory': self.get('LOGGING', 'directory', 'logs'),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True)
        }

    @property
    def planner_defaults(self):
        """Get the replenishment policy applied to SKUs without settings."""
        return {
            'lead_time': self.get_int('PLANNER', 'default_lead_time', 90),
            'min_days': self.get_int('PLANNER', 'default_min_days', 60),
            'target_months': self.get_float('PLANNER', 'default_target_months', 6.0)
        }

    @property
    def report_config(self):
        """Get default report selectors."""
        return {
            'rate_basis': self.get('PLANNER', 'rate_basis', 'last-period'),
            'trend_timeframe': self.get('PLANNER', 'trend_timeframe', '3m')
        }

# Global config instance
config = Config()
