"""adt_pharmacy_schema

Revision ID: 0001_adt_pharmacy
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_adt_pharmacy"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "wards",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("ward_type", sa.String(length=50), nullable=True),
        sa.Column("floor", sa.String(length=20), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("ward_id", sa.Integer(), nullable=False),
        sa.Column("room_number", sa.String(length=20), nullable=False),
        sa.Column("room_type", sa.String(length=50), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["ward_id"], ["wards.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("ward_id", "room_number", name="uq_rooms_ward_room_number"),
    )
    op.create_index(op.f("ix_rooms_ward_id"), "rooms", ["ward_id"])

    op.create_table(
        "beds",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("room_id", sa.Integer(), nullable=False),
        sa.Column("ward_id", sa.Integer(), nullable=False),
        sa.Column("bed_number", sa.String(length=20), nullable=False),
        sa.Column(
            "status",
            sa.Enum("Available", "Occupied", "Maintenance", "Cleaning", name="bed_status_enum"),
            server_default=sa.text("'Available'"),
            nullable=False,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["ward_id"], ["wards.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("bed_number"),
    )
    op.create_index(op.f("ix_beds_room_id"), "beds", ["room_id"])
    op.create_index(op.f("ix_beds_ward_id"), "beds", ["ward_id"])
    op.create_index(op.f("ix_beds_status"), "beds", ["status"])

    op.create_table(
        "patients",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("mrn", sa.String(length=50), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(length=10), nullable=True),
        sa.Column("is_deceased", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("mrn"),
    )

    op.create_table(
        "admissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("patient_id", sa.Integer(), nullable=False),
        sa.Column("ward_id", sa.Integer(), nullable=False),
        sa.Column("bed_id", sa.Integer(), nullable=False),
        sa.Column("admitting_doctor_id", sa.Integer(), nullable=True),
        sa.Column("admission_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("discharge_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("diagnosis", sa.Text(), nullable=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column(
            "status",
            sa.Enum("Admitted", "Discharged", name="admission_status_enum"),
            server_default=sa.text("'Admitted'"),
            nullable=False,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["ward_id"], ["wards.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["bed_id"], ["beds.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_admissions_patient_id"), "admissions", ["patient_id"])
    op.create_index(op.f("ix_admissions_ward_id"), "admissions", ["ward_id"])
    op.create_index(op.f("ix_admissions_bed_id"), "admissions", ["bed_id"])
    op.create_index(op.f("ix_admissions_admission_date"), "admissions", ["admission_date"])
    op.create_index(op.f("ix_admissions_status"), "admissions", ["status"])

    op.create_table(
        "transfers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("admission_id", sa.Integer(), nullable=False),
        sa.Column("from_ward_id", sa.Integer(), nullable=False),
        sa.Column("from_bed_id", sa.Integer(), nullable=False),
        sa.Column("to_ward_id", sa.Integer(), nullable=False),
        sa.Column("to_bed_id", sa.Integer(), nullable=False),
        sa.Column("transfer_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("authorized_by", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["admission_id"], ["admissions.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["from_ward_id"], ["wards.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["from_bed_id"], ["beds.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["to_ward_id"], ["wards.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["to_bed_id"], ["beds.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_transfers_admission_id"), "transfers", ["admission_id"])
    op.create_index(op.f("ix_transfers_transfer_date"), "transfers", ["transfer_date"])

    op.create_table(
        "discharge_summaries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("admission_id", sa.Integer(), nullable=False),
        sa.Column("discharge_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "discharge_type",
            sa.Enum("Regular", "AMA", "Transfer", "Death", name="discharge_type_enum"),
            nullable=False,
        ),
        sa.Column("chief_complaint", sa.Text(), nullable=True),
        sa.Column("diagnosis", sa.Text(), nullable=False),
        sa.Column("treatment_summary", sa.Text(), nullable=True),
        sa.Column("medications_on_discharge", sa.Text(), nullable=True),
        sa.Column("follow_up_instructions", sa.Text(), nullable=True),
        sa.Column("signed_by", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["admission_id"], ["admissions.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("admission_id"),
    )

    op.create_table(
        "medications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("generic_name", sa.String(length=255), nullable=True),
        sa.Column("form", sa.String(length=100), nullable=True),
        sa.Column("strength", sa.String(length=100), nullable=True),
        sa.Column("unit", sa.String(length=50), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_medications_name"), "medications", ["name"])
    op.create_index(op.f("ix_medications_category"), "medications", ["category"])

    op.create_table(
        "prescriptions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("patient_id", sa.Integer(), nullable=False),
        sa.Column("medication_id", sa.Integer(), nullable=False),
        sa.Column("prescriber_id", sa.Integer(), nullable=True),
        sa.Column("dosage", sa.String(length=100), nullable=False),
        sa.Column("frequency", sa.String(length=100), nullable=False),
        sa.Column("duration_days", sa.Integer(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("active", "completed", "cancelled", name="prescription_status_enum"),
            server_default=sa.text("'active'"),
            nullable=False,
        ),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["medication_id"], ["medications.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_prescriptions_patient_id"), "prescriptions", ["patient_id"])
    op.create_index(op.f("ix_prescriptions_medication_id"), "prescriptions", ["medication_id"])
    op.create_index(op.f("ix_prescriptions_status"), "prescriptions", ["status"])

    op.create_table(
        "pharmacy_stock",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("medication_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("batch_number", sa.String(length=100), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=False),
        sa.Column("location", sa.String(length=100), nullable=True),
        sa.Column("cost_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("selling_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("reorder_level", sa.Integer(), server_default=sa.text("10"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("quantity >= 0", name="ck_pharmacy_stock_quantity_non_negative"),
        sa.ForeignKeyConstraint(["medication_id"], ["medications.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_pharmacy_stock_medication_id"), "pharmacy_stock", ["medication_id"])
    op.create_index(op.f("ix_pharmacy_stock_batch_number"), "pharmacy_stock", ["batch_number"])
    op.create_index(op.f("ix_pharmacy_stock_expiry_date"), "pharmacy_stock", ["expiry_date"])

    op.create_table(
        "dispensing",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("prescription_id", sa.Integer(), nullable=False),
        sa.Column("patient_id", sa.Integer(), nullable=False),
        sa.Column("medication_id", sa.Integer(), nullable=False),
        sa.Column("stock_id", sa.Integer(), nullable=False),
        sa.Column("quantity_dispensed", sa.Integer(), nullable=False),
        sa.Column("batch_number", sa.String(length=100), nullable=False),
        sa.Column("dispensed_by", sa.Integer(), nullable=True),
        sa.Column("dispensed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("dispensed", "returned", name="dispensing_status_enum"),
            server_default=sa.text("'dispensed'"),
            nullable=False,
        ),
        sa.CheckConstraint("quantity_dispensed > 0", name="ck_dispensing_quantity_positive"),
        sa.ForeignKeyConstraint(["prescription_id"], ["prescriptions.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["medication_id"], ["medications.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["stock_id"], ["pharmacy_stock.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_dispensing_prescription_id"), "dispensing", ["prescription_id"])
    op.create_index(op.f("ix_dispensing_patient_id"), "dispensing", ["patient_id"])
    op.create_index(op.f("ix_dispensing_medication_id"), "dispensing", ["medication_id"])
    op.create_index(op.f("ix_dispensing_dispensed_at"), "dispensing", ["dispensed_at"])

    op.create_table(
        "stock_movements",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "movement_type",
            sa.Enum(
                "purchase",
                "dispensing",
                "adjustment",
                "return",
                "expired",
                name="stock_movement_type_enum",
            ),
            nullable=False,
        ),
        sa.Column("medication_id", sa.Integer(), nullable=False),
        sa.Column("stock_id", sa.Integer(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("batch_number", sa.String(length=100), nullable=False),
        sa.Column("reference", sa.String(length=200), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("performed_by", sa.Integer(), nullable=True),
        sa.Column("performed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["medication_id"], ["medications.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["stock_id"], ["pharmacy_stock.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_stock_movements_movement_type"), "stock_movements", ["movement_type"])
    op.create_index(op.f("ix_stock_movements_medication_id"), "stock_movements", ["medication_id"])
    op.create_index(op.f("ix_stock_movements_stock_id"), "stock_movements", ["stock_id"])
    op.create_index(op.f("ix_stock_movements_reference"), "stock_movements", ["reference"])
    op.create_index(op.f("ix_stock_movements_performed_at"), "stock_movements", ["performed_at"])


def downgrade() -> None:
    op.drop_table("stock_movements")
    op.drop_table("dispensing")
    op.drop_table("pharmacy_stock")
    op.drop_table("prescriptions")
    op.drop_table("medications")
    op.drop_table("discharge_summaries")
    op.drop_table("transfers")
    op.drop_table("admissions")
    op.drop_table("patients")
    op.drop_table("beds")
    op.drop_table("rooms")
    op.drop_table("wards")

    bind = op.get_bind()
    for enum_name in (
        "stock_movement_type_enum",
        "dispensing_status_enum",
        "prescription_status_enum",
        "discharge_type_enum",
        "admission_status_enum",
        "bed_status_enum",
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
