"""
Business model for multi-tenant loyalty programs.
"""
from datetime import datetime
from ..extensions import db


class Business(db.Model):
    """
    A small business running a loyalty program.
    Global table - every other row is scoped to one business.
    """
    __tablename__ = 'businesses'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    # Settings (JSON for flexibility)
    settings = db.Column(db.JSON, default=dict)

    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    rewards = db.relationship('Reward', backref='business', lazy='dynamic')

    def __repr__(self):
        return f'<Business {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'is_active': self.is_active,
        }
