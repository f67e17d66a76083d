from datetime import datetime
from storerating import db


class Store(db.Model):
    """A rated store, optionally owned by a store owner account."""
    __tablename__ = 'stores'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(60), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    address = db.Column(db.String(400), nullable=True)
    # An owner has at most one store; admin-created stores may have none
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'),
                         nullable=True, unique=True)

    # Cached summary of the ratings table, rewritten on every rating mutation
    rating = db.Column(db.Float, nullable=False, default=0.0, server_default='0')
    total_ratings = db.Column(db.Integer, nullable=False, default=0, server_default='0')

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    ratings = db.relationship('Rating', backref='store', lazy='dynamic',
                              cascade='all, delete-orphan', passive_deletes=True)

    def __repr__(self):
        return f'<Store {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'address': self.address,
            'owner_id': self.owner_id,
            'rating': float(self.rating or 0),
            'total_ratings': self.total_ratings or 0,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
