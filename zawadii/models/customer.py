"""
Customer model.

Only customers who signed up through the mobile app have a row here.
Walk-in customers are known to a business by phone number alone.
"""
from datetime import datetime
from ..extensions import db


class Customer(db.Model):
    """Registered app customer."""
    __tablename__ = 'customers'

    id = db.Column(db.Integer, primary_key=True)
    phone_number = db.Column(db.String(20), unique=True, nullable=False)  # +255XXXXXXXXX
    full_name = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index('ix_customers_phone_number', 'phone_number'),
    )

    def __repr__(self):
        return f'<Customer {self.phone_number}>'

    def to_dict(self):
        return {
            'id': self.id,
            'phone_number': self.phone_number,
            'full_name': self.full_name,
        }

    @classmethod
    def find_by_phone(cls, phone_number: str):
        """Look up a registered customer by phone number."""
        return cls.query.filter_by(phone_number=phone_number).first()
