from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from storerating import db

ROLE_ADMIN = 'admin'
ROLE_USER = 'user'
ROLE_OWNER = 'owner'
ROLES = (ROLE_ADMIN, ROLE_USER, ROLE_OWNER)


class User(db.Model):
    """Account of any kind: administrator, rater or store owner."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(60), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(400), nullable=True)
    role = db.Column(db.String(10), nullable=False, default=ROLE_USER)  # admin, user, owner
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("role IN ('admin', 'user', 'owner')", name='valid_role'),
    )

    # Relationships
    ratings = db.relationship('Rating', backref='user', lazy='dynamic',
                              cascade='all, delete-orphan', passive_deletes=True)
    store = db.relationship('Store', backref='owner', uselist=False)

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    @property
    def is_owner(self):
        return self.role == ROLE_OWNER

    @property
    def can_rate(self):
        """Only normal users hold the rater capability."""
        return self.role == ROLE_USER

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'address': self.address,
            'role': self.role,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
