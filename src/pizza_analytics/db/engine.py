"""
Database connection handling for the pizza sales analytics pipeline.
"""
import logging
from sqlalchemy import create_engine
from sqlalchemy.engine import URL

logger = logging.getLogger(__name__)


def build_connection_url(db_config):
    """
    Build a SQLAlchemy URL from a ``Config.get_database_config`` dict.

    Credentials are passed through ``URL.create`` so reserved characters in
    a password are escaped.
    """
    if db_config['type'] == 'sqlite':
        return URL.create('sqlite', database=db_config['name'])
    elif db_config['type'] == 'postgresql':
        return URL.create(
            'postgresql+psycopg2',
            username=db_config.get('user') or None,
            password=db_config.get('password') or None,
            host=db_config.get('host') or None,
            port=int(db_config['port']) if db_config.get('port') else None,
            database=db_config['name']
        )
    raise ValueError(f"Unsupported database type: {db_config['type']}")


def create_db_engine(config):
    """
    Create a SQLAlchemy engine for the configured database.
    """
    try:
        db_config = config.get_database_config()
        engine = create_engine(build_connection_url(db_config))
        logger.info(f"Database connection created for {db_config['type']}")
        return engine
    except Exception as e:
        logger.error(f"Failed to create database connection: {str(e)}")
        raise


def init_db(engine, base):
    """
    Initialize database tables.
    """
    base.metadata.create_all(engine)
    logger.info("Database tables initialized")
