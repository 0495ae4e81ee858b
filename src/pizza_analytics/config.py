"""
Configuration handling for the pizza sales analytics pipeline.
"""
import os
import logging
import configparser
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

SOURCES = ('csv', 'database')


class Config:
    """Configuration manager for the pizza sales analytics pipeline."""

    def __init__(self, config_file='config.ini'):
        """
        Initialize configuration from defaults, the environment and a config file.
        """
        self.config = configparser.ConfigParser()

        # Set default values
        self._set_defaults()

        # Try to read from config file
        config_path = Path(config_file)
        found = config_path.exists()
        if found:
            self.config.read(config_path)

        self._setup_logging()
        if not found:
            logger.warning(f"Config file {config_file} not found. Using defaults.")

    def _set_defaults(self):
        """Set default configuration values."""
        # configparser treats % as interpolation syntax
        password = os.getenv('POSTGRES_PASSWORD', '').replace('%', '%%')

        self.config['DATABASE'] = {
            'type': os.getenv('PIZZA_DB_TYPE', 'sqlite'),
            'name': os.getenv('PIZZA_DB_NAME', os.getenv('POSTGRES_DB', 'pizza_sales.db')),
            'host': os.getenv('POSTGRES_HOST', 'localhost'),
            'port': os.getenv('POSTGRES_PORT', '5432'),
            'user': os.getenv('POSTGRES_USER', ''),
            'password': password
        }

        self.config['LOGGING'] = {
            'level': 'INFO',
            'file': 'logs/pipeline.log'
        }

        self.config['PATHS'] = {
            'input_dir': 'data/input',
            'output_dir': 'data/output'
        }

        self.config['PIPELINE'] = {
            'source': 'csv',
            'strict_references': 'true',
            'top_n': '5',
            'top_n_revenue': '3',
            'top_n_per_category': '3',
            'export_csv': 'false',
            'write_database': 'false'
        }

    def _setup_logging(self):
        """Configure logging based on settings."""
        log_config = self.config['LOGGING']
        log_level = getattr(logging, log_config.get('level', 'INFO').upper(), logging.INFO)
        log_file = log_config.get('file', 'logs/pipeline.log')

        handlers = [logging.StreamHandler()]
        if log_file:
            # Create directory for log file if it doesn't exist
            log_dir = os.path.dirname(log_file)
            if log_dir and not os.path.exists(log_dir):
                os.makedirs(log_dir)
            handlers.append(logging.FileHandler(log_file))

        logging.basicConfig(
            level=log_level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=handlers
        )

    def get_database_config(self):
        """Connection settings from the [DATABASE] section as a plain dict."""
        return dict(self.config['DATABASE'])

    def _path(self, key, filename=None, create=False):
        directory = self.config['PATHS'][key]
        if create:
            os.makedirs(directory, exist_ok=True)
        return os.path.join(directory, filename) if filename else directory

    def get_input_path(self, filename=None):
        """Input directory, or a file inside it."""
        return self._path('input_dir', filename)

    def get_output_path(self, filename=None):
        """Output directory, or a file inside it. The directory is created on demand."""
        return self._path('output_dir', filename, create=True)

    def get_source(self):
        """
        Where the four input tables are read from: 'csv' or 'database'.
        """
        source = self.config['PIPELINE'].get('source', 'csv').strip().lower()
        if source not in SOURCES:
            raise ValueError(f"Unsupported source '{source}', expected one of {SOURCES}")
        return source

    def is_strict(self):
        """
        Check if unresolved foreign keys should fail the run.
        """
        return self.config['PIPELINE'].getboolean('strict_references', True)

    def get_top_n(self, key='top_n'):
        """
        Row limit for a ranking report.
        """
        value = self.config['PIPELINE'].getint(key)
        if value is None or value < 0:
            raise ValueError(f"PIPELINE.{key} must be a non-negative integer")
        return value

    def is_export_csv_enabled(self):
        return self.config['PIPELINE'].getboolean('export_csv', False)

    def is_write_database_enabled(self):
        return self.config['PIPELINE'].getboolean('write_database', False)
