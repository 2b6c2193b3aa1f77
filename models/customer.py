# models/customer.py
from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship
from .base import Base, generate_id


class Customer(Base):
     """
     Customer model - the borrower group whose loans are priced together.
     Snapshots are recorded per customer.
     """
     __tablename__ = "customers"

     id = Column(String(36), primary_key=True, default=generate_id)
     code = Column(String(50), unique=True, nullable=False, index=True)
     name = Column(String(255), nullable=False)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     loans = relationship("Loan", back_populates="customer")
     snapshots = relationship(
          "LoanSnapshot",
          back_populates="customer",
          cascade="all, delete-orphan"
     )

     def __repr__(self):
          return f"<Customer(id={self.id}, code='{self.code}', name='{self.name}')>"
