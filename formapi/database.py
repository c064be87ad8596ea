import datetime

import databases
import sqlalchemy
from formapi.config import config

metadata = sqlalchemy.MetaData()


def utcnow() -> datetime.datetime:
    # stored naive, always UTC
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


user_table = sqlalchemy.Table(
    "user",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("username", sqlalchemy.String(64), unique=True, nullable=False, index=True),
    sqlalchemy.Column("email", sqlalchemy.String(256), unique=True, nullable=False),
    sqlalchemy.Column("full_name", sqlalchemy.String(128), nullable=False),
    sqlalchemy.Column("password_hash", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("refresh_token_hash", sqlalchemy.String, nullable=True),
    sqlalchemy.Column("token_version", sqlalchemy.Integer, nullable=False, default=0),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, default=utcnow),
    sqlalchemy.Column("updated_at", sqlalchemy.DateTime, default=utcnow, onupdate=utcnow),
)

# registrations waiting for their OTP
temporaryuser_table = sqlalchemy.Table(
    "temporary_user",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("email", sqlalchemy.String(256), unique=True, nullable=False),
    sqlalchemy.Column("username", sqlalchemy.String(64), unique=True, nullable=False),
    sqlalchemy.Column("full_name", sqlalchemy.String(128), nullable=False),
    sqlalchemy.Column("password_hash", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("otp", sqlalchemy.String(8), nullable=False),
    sqlalchemy.Column("expires_at", sqlalchemy.DateTime, nullable=False),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, default=utcnow),
)

passwordreset_table = sqlalchemy.Table(
    "password_reset",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("email", sqlalchemy.String(256), unique=True, nullable=False),
    sqlalchemy.Column("otp", sqlalchemy.String(8), nullable=False),
    sqlalchemy.Column("expires_at", sqlalchemy.DateTime, nullable=False),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, default=utcnow),
)

form_table = sqlalchemy.Table(
    "form",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("heading", sqlalchemy.String(256), nullable=False),
    sqlalchemy.Column("description", sqlalchemy.Text, nullable=False),
    sqlalchemy.Column("user_id", sqlalchemy.ForeignKey("user.id"), nullable=False, index=True),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, default=utcnow),
    sqlalchemy.Column("updated_at", sqlalchemy.DateTime, default=utcnow, onupdate=utcnow),
)

# a form's question list is the rows pointing at it, ordered by position
question_table = sqlalchemy.Table(
    "question",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("form_id", sqlalchemy.ForeignKey("form.id"), nullable=False, index=True),
    sqlalchemy.Column("position", sqlalchemy.Integer, nullable=False, default=0),
    sqlalchemy.Column("question_text", sqlalchemy.Text, default=""),
    sqlalchemy.Column("question_description", sqlalchemy.Text, default=""),
    sqlalchemy.Column("question_type", sqlalchemy.String(16), nullable=False),  # email, paragraph, mcq, ...
    sqlalchemy.Column("options", sqlalchemy.JSON, default=[]),
    sqlalchemy.Column("required", sqlalchemy.Boolean, default=False),
    sqlalchemy.Column("answer_type", sqlalchemy.String(16), nullable=False),  # single, multiple
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, default=utcnow),
    sqlalchemy.Column("updated_at", sqlalchemy.DateTime, default=utcnow, onupdate=utcnow),
)

formresponse_table = sqlalchemy.Table(
    "form_response",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("form_id", sqlalchemy.ForeignKey("form.id"), nullable=False, index=True),
    sqlalchemy.Column("answers", sqlalchemy.JSON, nullable=False),
    # [{question, questionText, type, answer: [...]}, ...]
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, default=utcnow),
    sqlalchemy.Column("updated_at", sqlalchemy.DateTime, default=utcnow, onupdate=utcnow),
)


connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}
engine = sqlalchemy.create_engine(config.DATABASE_URL, connect_args=connect_args)

metadata.create_all(engine)
database = databases.Database(
    config.DATABASE_URL, force_rollback=config.DB_FORCE_ROLL_BACK
)
