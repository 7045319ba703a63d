from sqlalchemy import text
from sqlalchemy.engine import make_url

from core.log import logger
from settings import DATABASE_URL
from models import db


def health_check() -> bool:
    url = make_url(DATABASE_URL)
    logger.info("run app with")
    logger.info(f"database = {url.render_as_string(hide_password=True)}")
    logger.info("try echo database")
    with db() as session:
        session.execute(text("SELECT 1"))
    logger.info("successfully connect to database")
    return True
