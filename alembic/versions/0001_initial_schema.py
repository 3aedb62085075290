"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

CAST_FK = "ctd_cast_log.ctd_cast_log_id"


def _lat_lon(prefix):
    return [
        sa.Column(f"{prefix}_latitude", sa.Float(), nullable=True),
        sa.Column(f"{prefix}_longitude", sa.Float(), nullable=True),
        sa.CheckConstraint(f"{prefix}_latitude BETWEEN -90 AND 90", name=f"ck_{prefix}_latitude"),
        sa.CheckConstraint(f"{prefix}_longitude BETWEEN -180 AND 180", name=f"ck_{prefix}_longitude"),
    ]


def _cast_link(column_name="cast_log_id"):
    return sa.Column(
        column_name, sa.Integer(), sa.ForeignKey(CAST_FK, ondelete="CASCADE"), nullable=False, unique=True
    )


def upgrade() -> None:
    # identity
    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "roles",
        sa.Column("role_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("role_name", sa.String(20), nullable=False, unique=True),
        sa.Column("role_description", sa.String(255), nullable=True),
        sa.CheckConstraint(
            "role_name IN ('admin', 'bottlecop', 'console', 'observer', 'analyst', 'sampler')",
            name="ck_roles_role_name",
        ),
    )

    op.create_table(
        "user_roles",
        sa.Column("user_role_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.role_id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])

    # reference data
    op.create_table(
        "ships",
        sa.Column("ship_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("ship_name", sa.String(100), nullable=False, unique=True),
        sa.Column("ship_number", sa.Integer(), nullable=True, unique=True),
        sa.Column("ship_abbreviation", sa.String(20), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "cruises",
        sa.Column("cruise_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("cruise_number", sa.Integer(), nullable=False),
        sa.Column("cruise_name", sa.String(100), nullable=False),
        sa.Column("cruise_abbreviation", sa.String(20), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "stations",
        sa.Column("station_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("cruise_id", sa.Integer(), sa.ForeignKey("cruises.cruise_id"), nullable=False),
        sa.Column("station_number", sa.String(50), nullable=False),
        sa.Column("station_name", sa.String(100), nullable=False),
        sa.Column("station_abbreviation", sa.String(20), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.UniqueConstraint("cruise_id", "station_number", name="uq_stations_cruise_number"),
        sa.CheckConstraint("latitude BETWEEN -90 AND 90", name="ck_stations_latitude"),
        sa.CheckConstraint("longitude BETWEEN -180 AND 180", name="ck_stations_longitude"),
    )
    op.create_index("ix_stations_cruise_id", "stations", ["cruise_id"])

    op.create_table(
        "station_target_depths",
        sa.Column("target_depth_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "station_id", sa.Integer(), sa.ForeignKey("stations.station_id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("target_pressure", sa.Float(), nullable=False),
        sa.Column("sequence_order", sa.Integer(), nullable=False),
        sa.Column("niskin_position", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.UniqueConstraint("station_id", "sequence_order", name="uq_target_depths_station_sequence"),
        sa.CheckConstraint("target_pressure >= 0", name="ck_target_depths_pressure"),
        sa.CheckConstraint("sequence_order > 0", name="ck_target_depths_sequence"),
    )
    op.create_index("ix_station_target_depths_station_id", "station_target_depths", ["station_id"])

    op.create_table(
        "sensor_inventory",
        sa.Column("sensor_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("sensor_type", sa.String(100), nullable=False),
        sa.Column("vin_number", sa.String(100), nullable=True, unique=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("in_use", sa.Boolean(), nullable=False),
        sa.Column("backup_available", sa.Boolean(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "status IN ('operational', 'maintenance', 'broken', 'retired')", name="ck_sensor_inventory_status"
        ),
    )

    op.create_table(
        "niskin_bottles",
        sa.Column("niskin_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("niskin_number", sa.Integer(), nullable=False, unique=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint("status IN ('ready', 'deployed', 'maintenance', 'broken')", name="ck_niskin_bottles_status"),
    )

    op.create_table(
        "sample_types",
        sa.Column("sample_type_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("type_name", sa.String(100), nullable=False, unique=True),
        sa.Column("abbreviation", sa.String(20), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
    )

    # casts
    op.create_table(
        "ctd_cast_log",
        sa.Column("ctd_cast_log_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("ship_id", sa.Integer(), sa.ForeignKey("ships.ship_id"), nullable=False),
        sa.Column("station_id", sa.Integer(), sa.ForeignKey("stations.station_id"), nullable=False),
        sa.Column("cruise_id", sa.Integer(), sa.ForeignKey("cruises.cruise_id"), nullable=False),
        sa.Column("observer_user_id", sa.Integer(), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("cast_number", sa.Integer(), nullable=False),
        sa.Column("cast_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    for column in ("ship_id", "station_id", "cruise_id", "created_at"):
        op.create_index(f"ix_ctd_cast_log_{column}", "ctd_cast_log", [column])

    op.create_table(
        "cast_sensors",
        sa.Column("cast_sensor_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("cast_log_id", sa.Integer(), sa.ForeignKey(CAST_FK, ondelete="CASCADE"), nullable=False),
        sa.Column("sensor_id", sa.Integer(), sa.ForeignKey("sensor_inventory.sensor_id"), nullable=False),
        sa.Column("position_order", sa.Integer(), nullable=False),
        sa.Column("sequence_number", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint("position_order > 0", name="ck_cast_sensors_position_order"),
        sa.CheckConstraint("sequence_number > 0", name="ck_cast_sensors_sequence_number"),
    )
    op.create_index("ix_cast_sensors_cast_log_id", "cast_sensors", ["cast_log_id"])

    # phase records, one row per cast
    op.create_table(
        "pre_cast",
        sa.Column("pre_cast_id", sa.Integer(), primary_key=True, autoincrement=True),
        _cast_link(),
        sa.Column("pre_cast_pressure_test", sa.Float(), nullable=True),
        sa.Column("pre_cast_datetime", sa.DateTime(), nullable=True),
        *_lat_lon("pre_cast"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("pre_cast_pressure_test >= 0", name="ck_pre_cast_pressure_test"),
    )

    for table, pk, prefix, depth in (
        ("beginning_position", "begin_id", "begin", "begin_depth"),
        ("at_depth_position", "at_depth_id", "at_depth", "at_depth_depth"),
        ("ending_position", "ending_id", "end", "end_depth"),
    ):
        op.create_table(
            table,
            sa.Column(pk, sa.Integer(), primary_key=True, autoincrement=True),
            _cast_link(),
            sa.Column(f"{prefix}_datetime", sa.DateTime(), nullable=True),
            *_lat_lon(prefix),
            sa.Column(depth, sa.Float(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.CheckConstraint(f"{depth} >= 0", name=f"ck_{depth}"),
        )

    op.create_table(
        "capture_start",
        sa.Column("capture_start_id", sa.Integer(), primary_key=True, autoincrement=True),
        _cast_link(),
        sa.Column("markscan_start", sa.Integer(), nullable=True),
        sa.Column("markscan_start_datetime", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("markscan_start >= 0", name="ck_capture_start_markscan"),
    )

    op.create_table(
        "bottom_depth_position",
        sa.Column("bottom_position_id", sa.Integer(), primary_key=True, autoincrement=True),
        _cast_link(),
        sa.Column("bottom_datetime", sa.DateTime(), nullable=True),
        *_lat_lon("bottom"),
        sa.Column("height_above_bottom", sa.Float(), nullable=True),
        sa.Column("max_pressure", sa.Float(), nullable=True),
        sa.Column("winch_payout", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("height_above_bottom >= 0", name="ck_bottom_height_above_bottom"),
        sa.CheckConstraint("max_pressure >= 0", name="ck_bottom_max_pressure"),
        sa.CheckConstraint("winch_payout >= 0", name="ck_bottom_winch_payout"),
    )

    op.create_table(
        "on_deck_position",
        sa.Column("on_deck_id", sa.Integer(), primary_key=True, autoincrement=True),
        _cast_link(),
        sa.Column("on_deck_datetime", sa.DateTime(), nullable=True),
        *_lat_lon("on_deck"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "post_cast",
        sa.Column("post_cast_id", sa.Integer(), primary_key=True, autoincrement=True),
        _cast_link("ctd_cast_log_id"),
        sa.Column("post_cast_pressure_check", sa.Float(), nullable=True),
        sa.Column("real_time_data_stop", sa.Boolean(), nullable=False),
        sa.Column("real_time_data_stop_datetime", sa.DateTime(), nullable=True),
        sa.Column("deck_unit_off", sa.Boolean(), nullable=False),
        sa.Column("deck_unit_off_datetime", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("post_cast_pressure_check >= 0", name="ck_post_cast_pressure_check"),
    )

    # sampling
    op.create_table(
        "sample_pressure",
        sa.Column("sample_pressure_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("cast_log_id", sa.Integer(), sa.ForeignKey(CAST_FK, ondelete="CASCADE"), nullable=False),
        sa.Column("niskin_id", sa.Integer(), sa.ForeignKey("niskin_bottles.niskin_id"), nullable=False),
        sa.Column(
            "target_depth_id",
            sa.Integer(),
            sa.ForeignKey("station_target_depths.target_depth_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("sample_pressure_value", sa.Float(), nullable=True),
        sa.Column("sample_captured", sa.Boolean(), nullable=False),
        sa.Column("sample_captured_datetime", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint("sample_pressure_value >= 0", name="ck_sample_pressure_value"),
    )
    op.create_index("ix_sample_pressure_cast_log_id", "sample_pressure", ["cast_log_id"])

    op.create_table(
        "bottles",
        sa.Column("bottle_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("niskin_id", sa.Integer(), sa.ForeignKey("niskin_bottles.niskin_id"), nullable=False),
        sa.Column("sample_type_id", sa.Integer(), sa.ForeignKey("sample_types.sample_type_id"), nullable=False),
        sa.Column("bottle_number", sa.Integer(), nullable=False),
        sa.Column("is_duplicate", sa.Boolean(), nullable=False),
        sa.Column("duplicate_sequence", sa.Integer(), nullable=True),
        sa.Column("capacity_ml", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("collected_datetime", sa.DateTime(), nullable=True),
        sa.CheckConstraint("duplicate_sequence > 0", name="ck_bottles_duplicate_sequence"),
        sa.CheckConstraint("capacity_ml > 0", name="ck_bottles_capacity_ml"),
        sa.CheckConstraint("status IN ('empty', 'filled', 'processed', 'archived')", name="ck_bottles_status"),
    )
    op.create_index("ix_bottles_niskin_id", "bottles", ["niskin_id"])

    op.create_table(
        "bottle_replacements",
        sa.Column("replacement_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("original_bottle_id", sa.Integer(), sa.ForeignKey("bottles.bottle_id"), nullable=False),
        sa.Column("replacement_bottle_id", sa.Integer(), sa.ForeignKey("bottles.bottle_id"), nullable=False),
        sa.Column("replacement_datetime", sa.DateTime(), nullable=True),
        sa.Column("reason", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )

    op.create_table(
        "sampling_session",
        sa.Column("session_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("ctd_cast_log_id", sa.Integer(), sa.ForeignKey(CAST_FK, ondelete="CASCADE"), nullable=False),
        sa.Column(
            "on_deck_position_id",
            sa.Integer(),
            sa.ForeignKey("on_deck_position.on_deck_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("sampling_start_datetime", sa.DateTime(), nullable=True),
        sa.Column("sampling_end_datetime", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_sampling_session_ctd_cast_log_id", "sampling_session", ["ctd_cast_log_id"])

    op.create_table(
        "sample_timing",
        sa.Column("timing_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("sample_type_id", sa.Integer(), sa.ForeignKey("sample_types.sample_type_id"), nullable=False),
        sa.Column(
            "session_id",
            sa.Integer(),
            sa.ForeignKey("sampling_session.session_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("set_by_user_id", sa.Integer(), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("time_limit_hours", sa.Integer(), nullable=False),
        sa.Column("deadline_datetime", sa.DateTime(), nullable=True),
        sa.Column("set_datetime", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint("time_limit_hours > 0", name="ck_sample_timing_hours"),
    )
    op.create_index("ix_sample_timing_session_id", "sample_timing", ["session_id"])


def downgrade() -> None:
    for table in (
        "sample_timing",
        "sampling_session",
        "bottle_replacements",
        "bottles",
        "sample_pressure",
        "post_cast",
        "on_deck_position",
        "ending_position",
        "bottom_depth_position",
        "capture_start",
        "at_depth_position",
        "beginning_position",
        "pre_cast",
        "cast_sensors",
        "ctd_cast_log",
        "sample_types",
        "niskin_bottles",
        "sensor_inventory",
        "station_target_depths",
        "stations",
        "cruises",
        "ships",
        "user_roles",
        "roles",
        "users",
    ):
        op.drop_table(table)
