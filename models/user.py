from models.db import db, prefixed
from utils.timezone import utcnow

# association table for many-to-many User <-> Role
user_roles = db.Table(
    prefixed("user_roles"),
    db.Column("user_id", db.Integer, db.ForeignKey(prefixed("users.id")), primary_key=True),
    db.Column("role_id", db.Integer, db.ForeignKey(prefixed("roles.id")), primary_key=True),
)

class User(db.Model):
    __tablename__ = prefixed("users")

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(80), nullable=True)
    last_name = db.Column(db.String(80), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    last_login_at = db.Column(db.DateTime, nullable=True)

    roles = db.relationship("Role", secondary=user_roles, back_populates="users")

class Role(db.Model):
    __tablename__ = prefixed("roles")

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)  # ADMIN, MANAGER, ATHLETE

    users = db.relationship("User", secondary=user_roles, back_populates="roles")
