"""Tests for the sounding session pipeline."""

from __future__ import annotations

import json
import logging

from sondeprofile.config import PipelineConfig
from sondeprofile.models import ConvectionMethod, RawFrame
from sondeprofile.pipeline import SoundingSession


def test_history_with_burst(burst_flight):
    """Only the 301 ascending frames survive; the cutoff is the 11th descent frame."""
    frames, burst_index = burst_flight
    session = SoundingSession(serial="T1234567")
    count = session.load_history(frames)

    assert count == 301
    assert session.descent_cutoff == RawFrame.model_validate(frames[burst_index]).timestamp
    assert not session.live_should_run
    assert session.latest_frame.key == 300


def test_history_without_burst(make_raw):
    session = SoundingSession(serial="T1234567")
    count = session.load_history([make_raw(i) for i in range(50)])
    assert count == 50
    assert session.descent_cutoff is None
    assert session.live_should_run


def test_history_skips_malformed_records(make_raw, caplog):
    frames = [make_raw(0), {"frame": 1, "temp": "warm"}, make_raw(2)]
    session = SoundingSession(serial="T1234567")
    with caplog.at_level(logging.WARNING):
        count = session.load_history(frames)
    assert count == 2
    assert "Skipped 1 malformed history frames" in caplog.text


def test_history_reload_resets_state(make_raw, burst_flight):
    frames, _ = burst_flight
    session = SoundingSession(serial="T1234567")
    session.load_history(frames)
    old_id = session.session_id

    count = session.load_history([make_raw(i) for i in range(5)], serial="T7654321")
    assert count == 5
    assert session.serial == "T7654321"
    assert session.session_id != old_id
    assert session.descent_cutoff is None


def test_live_json_message(make_raw):
    session = SoundingSession(serial="T1234567")
    session.load_history([make_raw(i) for i in range(10)])

    update = session.process_live(json.dumps(make_raw(10)))
    assert update.frame is not None
    assert update.frame.key == 10
    assert not update.retire
    assert len(session.store) == 11
    assert session.latest_frame.key == 10


def test_live_bytes_and_dict_payloads(make_raw):
    session = SoundingSession(serial="T1234567")
    assert session.process_live(json.dumps(make_raw(0)).encode()).frame is not None
    assert session.process_live(make_raw(1)).frame is not None
    assert session.process_live(RawFrame.model_validate(make_raw(2))).frame is not None
    assert len(session.store) == 3


def test_live_repeat_of_history_frame_not_duplicated(make_raw):
    session = SoundingSession(serial="T1234567")
    session.load_history([make_raw(i) for i in range(10)])
    session.process_live(make_raw(9))
    assert len(session.store) == 10


def test_live_render_cadence(make_raw):
    config = PipelineConfig.model_validate({"profile": {"live_render_every": 3}})
    session = SoundingSession(config, serial="T1234567")
    due = [session.process_live(make_raw(i)).render_due for i in range(7)]
    assert due == [False, False, True, False, False, True, False]


def test_live_rejected_frame_does_not_count(make_raw):
    config = PipelineConfig.model_validate({"profile": {"live_render_every": 2}})
    session = SoundingSession(config, serial="T1234567")
    session.process_live(make_raw(0))
    update = session.process_live(make_raw(1, humidity=0.0))
    assert update.frame is None
    assert not update.render_due
    assert session.live_count == 1


def test_live_stale_session_ignored(make_raw):
    session = SoundingSession(serial="T1234567")
    stale = session.session_id
    session.reset("T1234567")

    update = session.process_live(make_raw(0), session_id=stale)
    assert update.frame is None
    assert len(session.store) == 0

    update = session.process_live(make_raw(0), session_id=session.session_id)
    assert update.frame is not None


def test_live_other_serial_ignored(make_raw):
    session = SoundingSession(serial="T1234567")
    update = session.process_live(make_raw(0, serial="S9999999"))
    assert update.frame is None
    assert len(session.store) == 0


def test_live_malformed_json_logged(caplog):
    session = SoundingSession(serial="T1234567")
    with caplog.at_level(logging.WARNING):
        update = session.process_live("{not json")
    assert update.frame is None
    assert not update.retire
    assert "Live parse error" in caplog.text


def test_live_retires_after_burst(burst_flight):
    frames, burst_index = burst_flight
    session = SoundingSession(serial="T1234567")
    session.load_history(frames[: burst_index - 3])
    assert session.live_should_run

    updates = [session.process_live(f) for f in frames[burst_index - 3:]]
    assert not any(u.retire for u in updates[:3])
    assert all(u.retire for u in updates[3:])
    assert all(u.frame is None for u in updates)
    assert len(session.store) == 301


def test_reset_clears_everything(make_raw):
    session = SoundingSession(serial="T1234567")
    session.load_history([make_raw(i) for i in range(5)])
    session.process_live(make_raw(5))
    old_id = session.session_id

    session.reset("T7654321")
    assert len(session.store) == 0
    assert session.latest_frame is None
    assert session.live_count == 0
    assert session.descent_cutoff is None
    assert session.session_id != old_id
    assert session.serial == "T7654321"


def test_no_serial_means_no_live_feed():
    assert not SoundingSession().live_should_run


def test_sounding_decimation(burst_flight):
    frames, _ = burst_flight
    session = SoundingSession(serial="T1234567")
    session.load_history(frames)

    full = session.sounding(decimated=False)
    thinned = session.sounding()
    assert len(full) == 301
    assert len(thinned) == 13
    assert thinned[0] is full[0]
    assert thinned[-1] is full[-1]
    pressures = [f.pressure_hpa for f in full]
    assert pressures == sorted(pressures, reverse=True)


def test_profile_stops_at_300_hpa(make_raw):
    session = SoundingSession(serial="T1234567")
    session.load_history([make_raw(i) for i in range(0, 400, 10)])
    assert all(f.pressure_hpa >= 300 for f in session.profile())
    assert len(session.profile()) == 36


def test_convection_from_session(make_raw):
    session = SoundingSession(serial="T1234567")
    session.load_history([make_raw(i) for i in range(0, 300, 5)])

    temple = session.convection()
    assert temple.method == ConvectionMethod.TEMPLE
    parcel = session.convection(ConvectionMethod.PARCEL)
    assert parcel.method == ConvectionMethod.PARCEL


def test_history_survives_bad_physics_frames(make_raw):
    """Frames with no derivable pressure or dewpoint are dropped, not fatal."""
    frames = [make_raw(i) for i in range(5)]
    frames.append(make_raw(5, pressure=None, alt=50000.0))
    frames.append(make_raw(6, temp=-237.7))
    frames += [make_raw(i) for i in range(7, 11)]
    session = SoundingSession(serial="T1234567")

    assert session.load_history(frames) == 9
    assert 5 not in session.store
    assert 6 not in session.store
    assert session.latest_frame.key == 10


def test_live_survives_bad_physics_frames(make_raw):
    session = SoundingSession(serial="T1234567")
    session.load_history([make_raw(i) for i in range(3)])

    update = session.process_live(json.dumps(make_raw(3, pressure=None, alt=50000.0)))
    assert update.frame is None
    assert not update.retire
    update = session.process_live(make_raw(4, temp=-237.7))
    assert update.frame is None

    update = session.process_live(make_raw(5))
    assert update.frame is not None
    assert len(session.store) == 4
    assert session.live_count == 1
