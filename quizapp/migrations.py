from alembic.config import Config
from alembic import command
import os

ALEMBIC_INI = os.path.join(os.path.dirname(__file__), '..', 'alembic.ini')


def _config(database_url=None):
    cfg = Config(ALEMBIC_INI)
    cfg.set_main_option('script_location', os.path.join(os.path.dirname(__file__), '..', 'alembic'))
    # explicit url wins, then env DATABASE_URL, then alembic.ini
    url = database_url or os.getenv('DATABASE_URL')
    if url:
        cfg.set_main_option('sqlalchemy.url', url)
    return cfg


def upgrade_head(database_url=None):
    # programmatically run `alembic upgrade head`
    command.upgrade(_config(database_url), 'head')


def downgrade_base(database_url=None):
    command.downgrade(_config(database_url), 'base')
