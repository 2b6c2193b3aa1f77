# models/base.py
import uuid

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Index / key names shared by the models and the Alembic migrations
NAMING_CONVENTION = {
     "ix": "ix_%(column_0_label)s",
     "fk": "fk_%(table_name)s_%(column_0_name)s",
     "pk": "pk_%(table_name)s",
}


def generate_id() -> str:
     """Primary key factory: string ids shared by the API and the client ledger."""
     return str(uuid.uuid4())


class Base(DeclarativeBase):
     """
     Declarative base for all models.

     Every model names its table explicitly (loans, fees, fee_configs, ...).
     """
     metadata = MetaData(naming_convention=NAMING_CONVENTION)
