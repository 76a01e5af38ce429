"""SQLAlchemy models for chobo database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Float,
    UniqueConstraint,
    CheckConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Chart-of-accounts model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    account_type = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    lines = relationship("JournalLine", back_populates="account")


class Partner(Base):
    """Trading partner model."""

    __tablename__ = "partners"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    partner_type = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    journal_entries = relationship("JournalEntry", back_populates="partner")


class CSVTemplate(Base):
    """Statement template definition model."""

    __tablename__ = "csv_templates"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    bank_name = Column(String, nullable=False)
    encoding = Column(String, default="UTF-8", nullable=False)
    delimiter = Column(String, default=",", nullable=False)
    skip_rows = Column(Integer, default=0, nullable=False)
    date_format = Column(String, default="YYYY-MM-DD", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    column_mappings = relationship(
        "CSVTemplateMapping", back_populates="template", cascade="all, delete-orphan"
    )


class CSVTemplateMapping(Base):
    """Template column mapping model."""

    __tablename__ = "csv_template_mappings"

    id = Column(Integer, primary_key=True)
    template_id = Column(Integer, ForeignKey("csv_templates.id"), nullable=False)
    csv_column_name = Column(String, nullable=False)
    field_name = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("template_id", "field_name", name="uq_template_field"),)

    # Relationships
    template = relationship("CSVTemplate", back_populates="column_mappings")


class ImportRule(Base):
    """User-authored classification rule model."""

    __tablename__ = "import_rules"

    id = Column(Integer, primary_key=True)
    pattern = Column(String, nullable=False)
    debit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    credit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    confidence = Column(Float, nullable=True)
    priority = Column(Integer, default=100, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    usage_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        CheckConstraint("confidence IS NULL OR (confidence >= 0 AND confidence <= 1)", name="ck_rule_confidence"),
    )


class AccountingPeriod(Base):
    """Accounting period model."""

    __tablename__ = "accounting_periods"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_closed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (CheckConstraint("start_date < end_date", name="ck_period_dates"),)


class JournalEntry(Base):
    """Journal entry header model."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    entry_number = Column(String, unique=True, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=False, default="")
    status = Column(String, nullable=False, default="draft")
    partner_id = Column(Integer, ForeignKey("partners.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    partner = relationship("Partner", back_populates="journal_entries")
    lines = relationship(
        "JournalLine",
        back_populates="journal_entry",
        cascade="all, delete-orphan",
        order_by="JournalLine.line_number",
    )


class JournalLine(Base):
    """Journal entry line model."""

    __tablename__ = "journal_lines"

    id = Column(Integer, primary_key=True)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)
    line_number = Column(Integer, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    debit_amount = Column(Numeric(14, 2), nullable=False, default=0)
    credit_amount = Column(Numeric(14, 2), nullable=False, default=0)
    description = Column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("journal_entry_id", "line_number", name="uq_entry_line_number"),
        CheckConstraint("debit_amount >= 0 AND credit_amount >= 0", name="ck_line_non_negative"),
    )

    # Relationships
    journal_entry = relationship("JournalEntry", back_populates="lines")
    account = relationship("Account", back_populates="lines")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
