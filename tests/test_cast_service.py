"""
Unit tests for the cast lifecycle: creation, phase upserts, derived state and deletion.
"""
from datetime import datetime

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.models import (
    BottomDepthPosition,
    CastSensor,
    PreCast,
    SamplePressure,
    SamplingSession,
    SensorInventory,
    Station,
)
from app.services import cast_service, reference_service, sampling_service
from app.services.cast_service import CastState

POSITION = {"latitude": 25.51, "longitude": -80.12}


def _cast_payload(reference, **overrides):
    payload = {
        "ship_id": reference["ship_id"],
        "station_id": reference["station_id"],
        "cruise_id": reference["cruise_id"],
        "cast_number": 1,
    }
    payload.update(overrides)
    return payload


class TestCreateCast:

    def test_observer_is_the_caller(self, db, cast, observer):
        detail = cast_service.get_cast(db, cast.ctd_cast_log_id)
        assert detail["observer_user_id"] == observer.user_id
        assert detail["observer_name"] == observer.full_name
        assert detail["station_name"] == "Florida Straits"

    def test_new_cast_is_created_state(self, db, cast):
        assert cast_service.get_cast_state(db, cast.ctd_cast_log_id) == CastState.CREATED

    @pytest.mark.parametrize("field", ["ship_id", "station_id", "cruise_id"])
    def test_unknown_reference_is_not_found(self, db, reference, observer, context_for, field):
        with pytest.raises(NotFoundError):
            cast_service.create_cast(db, _cast_payload(reference, **{field: 999}), context_for(observer))

    def test_station_must_belong_to_cruise(self, db, reference, observer, context_for):
        cruise = reference_service.create_cruise(db, {"cruise_number": 9, "cruise_name": "Other"})
        with pytest.raises(ValidationError) as excinfo:
            cast_service.create_cast(db, _cast_payload(reference, cruise_id=cruise.cruise_id), context_for(observer))
        assert excinfo.value.fields == ["station_id"]

    def test_missing_cast_number(self, db, reference, observer, context_for):
        payload = _cast_payload(reference)
        del payload["cast_number"]
        with pytest.raises(ValidationError) as excinfo:
            cast_service.create_cast(db, payload, context_for(observer))
        assert "cast_number" in excinfo.value.fields

    def test_recent_casts_newest_first(self, db, reference, observer, context_for, cast):
        second = cast_service.create_cast(db, _cast_payload(reference, cast_number=2), context_for(observer))
        ids = [c["ctd_cast_log_id"] for c in cast_service.list_recent_casts(db)]
        assert ids == [second.ctd_cast_log_id, cast.ctd_cast_log_id]


class TestPhaseUpserts:

    def test_saving_twice_keeps_one_record(self, db, cast):
        payload = {"pressure_test": 12.5, "timestamp": "2024-03-01 10:00", "notes": "ok"}
        first, _ = cast_service.save_pre_cast(db, cast.ctd_cast_log_id, payload)
        second, _ = cast_service.save_pre_cast(db, cast.ctd_cast_log_id, payload)

        assert db.query(PreCast).filter(PreCast.cast_log_id == cast.ctd_cast_log_id).count() == 1
        assert first.pre_cast_id == second.pre_cast_id
        assert second.pre_cast_pressure_test == 12.5
        assert second.pre_cast_datetime == datetime(2024, 3, 1, 10, 0)

    def test_last_write_wins_and_omitted_fields_become_null(self, db, cast):
        cast_service.save_bottom_depth(
            db, cast.ctd_cast_log_id, {"max_pressure": 120.0, "winch_payout": 130.0, "height_above_bottom": 10}
        )
        record, _ = cast_service.save_bottom_depth(db, cast.ctd_cast_log_id, {"max_pressure": 125.5})

        assert record.max_pressure == 125.5
        assert record.winch_payout is None
        assert record.height_above_bottom is None
        assert db.query(BottomDepthPosition).count() == 1

    def test_updated_at_is_stamped(self, db, cast):
        record, _ = cast_service.save_capture_start(db, cast.ctd_cast_log_id, {"markscan_start": 240})
        assert record.updated_at is not None

    def test_timestamp_defaults_to_now(self, db, cast):
        record, _ = cast_service.save_beginning_position(db, cast.ctd_cast_log_id, POSITION)
        assert record.begin_datetime is not None

    def test_gps_timestamp_with_z_suffix(self, db, cast):
        record, _ = cast_service.save_on_deck_position(
            db, cast.ctd_cast_log_id, dict(POSITION, timestamp="2024-03-01T12:30:00Z")
        )
        assert record.on_deck_datetime == datetime(2024, 3, 1, 12, 30)

    def test_out_of_order_save_succeeds_with_warnings(self, db, cast):
        record, warnings = cast_service.save_bottom_depth(db, cast.ctd_cast_log_id, {"max_pressure": 100})

        assert record.bottom_position_id is not None
        assert warnings == [
            "pre_cast has not been recorded yet",
            "beginning_position has not been recorded yet",
            "at_depth has not been recorded yet",
            "capture_start has not been recorded yet",
        ]
        assert cast_service.get_cast_state(db, cast.ctd_cast_log_id) == CastState.BOTTOM_DEPTH_RECORDED

    def test_first_phase_has_no_warnings(self, db, cast):
        _, warnings = cast_service.save_pre_cast(db, cast.ctd_cast_log_id, {})
        assert warnings == []

    @pytest.mark.parametrize(
        "phase", ["beginning_position", "at_depth", "ending_position", "on_deck"]
    )
    def test_position_phases_require_coordinates(self, db, cast, phase):
        with pytest.raises(ValidationError) as excinfo:
            cast_service.upsert_phase(db, cast.ctd_cast_log_id, phase, {"notes": "no fix"})
        assert set(excinfo.value.fields) == {"latitude", "longitude"}

    def test_blank_optional_field_is_stored_as_null(self, db, cast):
        record, _ = cast_service.upsert_phase(
            db, cast.ctd_cast_log_id, "beginning_position", {"latitude": 10.0, "longitude": -20.0, "depth": ""}
        )
        assert record.begin_latitude == 10.0
        assert record.begin_depth is None

    def test_blank_coordinates_are_still_required(self, db, cast):
        with pytest.raises(ValidationError) as excinfo:
            cast_service.upsert_phase(
                db, cast.ctd_cast_log_id, "beginning_position", {"latitude": "", "longitude": "  ", "depth": 40}
            )
        assert set(excinfo.value.fields) == {"latitude", "longitude"}

    def test_latitude_out_of_range(self, db, cast):
        with pytest.raises(ValidationError) as excinfo:
            cast_service.save_ending_position(db, cast.ctd_cast_log_id, {"latitude": 95, "longitude": 0})
        assert excinfo.value.fields == ["latitude"]

    def test_negative_pressure_rejected(self, db, cast):
        with pytest.raises(ValidationError):
            cast_service.save_bottom_depth(db, cast.ctd_cast_log_id, {"max_pressure": -5})

    def test_unknown_phase(self, db, cast):
        with pytest.raises(ValidationError):
            cast_service.upsert_phase(db, cast.ctd_cast_log_id, "lunch_break", {})

    def test_unknown_cast(self, db):
        with pytest.raises(NotFoundError):
            cast_service.save_pre_cast(db, 999, {})

    def test_post_cast_flags(self, db, cast):
        record, _ = cast_service.save_post_cast(
            db,
            cast.ctd_cast_log_id,
            {"pressure_check": 0.5, "real_time_data_stop": True, "deck_unit_off": True},
        )
        assert record.real_time_data_stop is True
        assert cast_service.get_phase(db, cast.ctd_cast_log_id, "post_cast")["ctd_cast_log_id"] == cast.ctd_cast_log_id


class TestCastState:

    def test_full_lifecycle(self, db, cast, reference):
        cast_id = cast.ctd_cast_log_id
        steps = [
            (lambda: cast_service.save_pre_cast(db, cast_id, {"pressure_test": 10}), CastState.PRE_CAST_RECORDED),
            (lambda: cast_service.save_beginning_position(db, cast_id, POSITION), CastState.BEGINNING_POSITION_RECORDED),
            (lambda: cast_service.save_at_depth_position(db, cast_id, POSITION), CastState.AT_DEPTH_RECORDED),
            (lambda: cast_service.save_capture_start(db, cast_id, {"markscan_start": 1}), CastState.CAPTURE_STARTED),
            (lambda: cast_service.save_bottom_depth(db, cast_id, {"max_pressure": 101}), CastState.BOTTOM_DEPTH_RECORDED),
            (
                lambda: sampling_service.record_sample_capture(
                    db, cast_id, {"niskin_id": reference["niskin_ids"][0], "actual_pressure": 100.2}
                ),
                CastState.SAMPLES_IN_PROGRESS,
            ),
            (lambda: cast_service.save_ending_position(db, cast_id, POSITION), CastState.ENDING_POSITION_RECORDED),
            (lambda: cast_service.save_on_deck_position(db, cast_id, POSITION), CastState.ON_DECK_RECORDED),
            (lambda: cast_service.save_post_cast(db, cast_id, {}), CastState.POST_CAST_RECORDED),
        ]
        for save, expected in steps:
            save()
            assert cast_service.get_cast_state(db, cast_id) == expected

    def test_detail_lists_every_phase(self, db, cast):
        cast_service.save_pre_cast(db, cast.ctd_cast_log_id, {"pressure_test": 10})
        detail = cast_service.get_cast_detail(db, cast.ctd_cast_log_id)
        assert set(detail["phases"]) == set(cast_service.PHASES)
        assert detail["phases"]["pre_cast"]["pre_cast_pressure_test"] == 10
        assert detail["phases"]["post_cast"] is None
        assert detail["state"] == CastState.PRE_CAST_RECORDED.value


class TestDeleteCast:

    def test_removes_owned_records_only(self, db, cast, reference, observer, context_for):
        cast_id = cast.ctd_cast_log_id
        cast_service.save_pre_cast(db, cast_id, {})
        cast_service.save_on_deck_position(db, cast_id, POSITION)
        cast_service.attach_sensor(db, cast_id, {"sensor_id": reference["sensor_id"], "position_order": 1})
        sampling_service.record_sample_capture(db, cast_id, {"niskin_id": reference["niskin_ids"][0], "actual_pressure": 5})
        sampling_service.open_sampling_session(db, cast_id)

        cast_service.delete_cast(db, cast_id, context_for(observer))

        with pytest.raises(NotFoundError):
            cast_service.get_cast(db, cast_id)
        for model in (PreCast, CastSensor, SamplePressure, SamplingSession):
            assert db.query(model).count() == 0
        assert db.get(SensorInventory, reference["sensor_id"]).in_use is False
        assert db.query(Station).count() == 2


class TestCastSensors:

    def test_attach_and_list(self, db, cast, reference):
        cast_service.attach_sensor(
            db, cast.ctd_cast_log_id, {"sensor_id": reference["sensor_id"], "position_order": 1, "sequence_number": 1}
        )
        sensors = cast_service.list_cast_sensors(db, cast.ctd_cast_log_id)
        assert [s["sensor_type"] for s in sensors] == ["SBE 43 Oxygen"]

    def test_duplicate_attach_rejected(self, db, cast, reference):
        payload = {"sensor_id": reference["sensor_id"], "position_order": 1}
        cast_service.attach_sensor(db, cast.ctd_cast_log_id, payload)
        with pytest.raises(ValidationError):
            cast_service.attach_sensor(db, cast.ctd_cast_log_id, payload)

    def test_non_operational_sensor_rejected(self, db, cast, reference):
        reference_service.update_sensor_status(db, reference["sensor_id"], {"status": "broken"})
        with pytest.raises(ValidationError):
            cast_service.attach_sensor(db, cast.ctd_cast_log_id, {"sensor_id": reference["sensor_id"], "position_order": 1})

    def test_detach(self, db, cast, reference):
        cast_sensor = cast_service.attach_sensor(
            db, cast.ctd_cast_log_id, {"sensor_id": reference["sensor_id"], "position_order": 1}
        )
        cast_service.detach_sensor(db, cast.ctd_cast_log_id, cast_sensor.cast_sensor_id)
        assert cast_service.list_cast_sensors(db, cast.ctd_cast_log_id) == []
        with pytest.raises(NotFoundError):
            cast_service.detach_sensor(db, cast.ctd_cast_log_id, cast_sensor.cast_sensor_id)

    def test_detach_keeps_sensor_in_use_while_another_cast_holds_it(self, db, cast, reference, observer, context_for):
        other = cast_service.create_cast(
            db,
            {
                "ship_id": reference["ship_id"],
                "station_id": reference["station_id"],
                "cruise_id": reference["cruise_id"],
                "cast_number": 2,
            },
            context_for(observer),
        )
        payload = {"sensor_id": reference["sensor_id"], "position_order": 1}
        first = cast_service.attach_sensor(db, cast.ctd_cast_log_id, payload)
        cast_service.attach_sensor(db, other.ctd_cast_log_id, payload)

        cast_service.detach_sensor(db, cast.ctd_cast_log_id, first.cast_sensor_id)
        assert db.get(SensorInventory, reference["sensor_id"]).in_use is True

        cast_service.delete_cast(db, other.ctd_cast_log_id)
        assert db.get(SensorInventory, reference["sensor_id"]).in_use is False
