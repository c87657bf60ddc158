from sqlalchemy.orm import DeclarativeBase
from luckygen.db.metadata import metadata_obj


class Base(DeclarativeBase):
    metadata = metadata_obj
