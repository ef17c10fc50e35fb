# tests/test_recognition_session.py

import pytest

from grammar_detector.application.services import RecognitionSession, SessionState
from grammar_detector.core.models import single


@pytest.fixture
def session(make_config, engine_factory, scheduler):
    return RecognitionSession(make_config(), engine_factory, scheduler=scheduler)


class TestLifecycle:

    def test_start_is_idempotent(self, session, engine_factory, recorder):
        events = recorder(session)

        session.start()
        session.start()

        assert events.names() == ["start"]
        assert len(engine_factory.engines) == 1
        assert engine_factory.latest.start_calls == 1
        assert session.state == SessionState.ACTIVE

    def test_stop_is_idempotent(self, session, engine_factory):
        session.start()
        session.stop()
        session.stop()

        assert engine_factory.latest.abort_calls == 1
        assert not session.is_active

    def test_stop_before_start(self, session, engine_factory):
        session.stop()
        assert engine_factory.engines == []

    def test_engine_receives_config(self, make_config, engine_factory, scheduler):
        config = make_config(continuous=False, lang="cs-CZ", interim_results=False, max_alternatives=3)
        session = RecognitionSession(config, engine_factory, scheduler=scheduler)
        session.start()

        engine = engine_factory.latest
        assert engine.continuous is False
        assert engine.lang == "cs-CZ"
        assert engine.interim_results is False
        assert engine.max_alternatives == 3

    def test_self_end_restarts_with_fresh_handle(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()
        first = engine_factory.latest

        first.emit_end()

        assert len(engine_factory.engines) == 2
        assert engine_factory.latest.start_calls == 1
        assert session.is_active
        assert session.restart_count == 1
        assert "end" not in events.names()

    def test_end_after_stop_does_not_restart(self, session, engine_factory):
        session.start()
        session.stop()
        engine_factory.latest.emit_end()

        assert len(engine_factory.engines) == 1
        assert session.restart_count == 0

    def test_restart_clears_nothing_but_handle(self, session, engine_factory):
        session.start()
        engine_factory.latest.emit_result(single("oh bon", 0.9))
        engine_factory.latest.emit_end()

        # Rozpracovaná věta přežije restart enginu
        assert session.current_sentence.value == "oh bon"


class TestErrors:

    def test_no_speech_is_ignored(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()
        engine_factory.latest.emit_error("no-speech")

        assert events.names() == ["start"]
        assert session.is_active

    def test_aborted_goes_inactive_without_restart(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()

        engine = engine_factory.latest
        engine.emit_error("aborted")
        engine.emit_end()

        assert events.names() == ["start", "end"]
        assert not session.is_active
        assert len(engine_factory.engines) == 1

    def test_stop_then_aborted_emits_end(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()
        session.stop()
        engine_factory.latest.emit_error("aborted")

        assert events.names() == ["start", "end"]

    def test_other_error_is_forwarded_and_session_stays_active(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()
        engine_factory.latest.emit_error("network", "connection lost")

        errors = events.named("error")
        assert len(errors) == 1
        assert errors[0].kind == "network"
        assert errors[0].message == "connection lost"
        assert session.is_active

    def test_start_failure_reports_error_and_stays_inactive(self, make_config, failing_engine_factory, scheduler, recorder):
        session = RecognitionSession(make_config(), failing_engine_factory, scheduler=scheduler)
        events = recorder(session)

        session.start()

        assert events.names() == ["error"]
        assert events.named("error")[0].kind == "engine-exception"
        assert not session.is_active

    def test_factory_failure(self, make_config, scheduler, recorder):
        def broken_factory():
            raise RuntimeError("no engine")

        session = RecognitionSession(make_config(), broken_factory, scheduler=scheduler)
        events = recorder(session)
        session.start()

        assert events.names() == ["error"]
        assert not session.is_active

    def test_listener_exception_does_not_break_dispatch(self, session, engine_factory):
        seen = []

        def broken(_payload):
            raise RuntimeError("listener bug")

        session.on("match", broken)
        session.on("match", lambda s: seen.append(s.value))
        session.start()
        engine_factory.latest.emit_result(single("salut", 0.9))

        assert seen == ["salut"]


class TestStaleHandles:

    def test_callbacks_from_replaced_handle_are_ignored(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()
        old = engine_factory.latest
        old.emit_end()

        old.emit_result(single("bonjour", 0.9, is_final=True))
        old.emit_error("network")
        old.emit_end()

        assert events.names() == ["start"]
        assert len(engine_factory.engines) == 2

    def test_results_after_stop_are_ignored(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()
        session.stop()
        engine_factory.latest.emit_result(single("bonjour", 0.9, is_final=True))

        assert events.named("match") == []


class TestResults:

    def test_match_then_sentence_on_final(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()
        engine = engine_factory.latest

        engine.emit_result(single("oh bonjour", 0.9))
        engine.emit_result(single("oh bonjour monsieur", 0.9, is_final=True))

        assert events.names() == ["start", "match", "sentence", "sentence"]
        assert events.named("match")[0].value == "oh bonjour"
        sentence = events.named("sentence")[-1]
        assert sentence.value == "oh bonjour monsieur"
        assert sentence.matched and sentence.is_final

    def test_match_before_sentence_same_callback(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()
        engine_factory.latest.emit_result(single("salut les amis", 0.9, is_final=True))

        assert events.names() == ["start", "match", "sentence"]

    def test_repeat_final_dropped(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()
        engine = engine_factory.latest
        engine.emit_result(single("il fait beau", 0.9, is_final=True))
        engine.emit_result(single("il fait beau.", 0.9, is_final=True))

        assert len(events.named("sentence")) == 1

    def test_payload_is_snapshot(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()
        engine = engine_factory.latest
        engine.emit_result(single("salut", 0.9))
        engine.emit_result(single("salut toi", 0.9))

        assert events.named("match")[0].value == "salut"

    def test_windowed_policy_repeats_match(self, make_config, engine_factory, scheduler, recorder):
        config = make_config(selection_policy="windowed_concatenation")
        session = RecognitionSession(config, engine_factory, scheduler=scheduler)
        events = recorder(session)
        session.start()
        engine = engine_factory.latest

        engine.emit_result(single("salut"))
        engine.emit_result(single("salut les"))
        engine.emit_result(single("salut les amis", is_final=True))

        assert len(events.named("match")) == 3
        assert len(events.named("sentence")) == 3
        assert events.named("sentence")[-1].is_final


class TestWatchdog:

    def test_stall_forces_single_stop_then_restart(self, session, engine_factory, scheduler, recorder):
        events = recorder(session)
        session.start()
        engine = engine_factory.latest
        engine.emit_result(single("oh bon", 0.9))

        scheduler.advance(2.0)
        assert engine.stop_calls == 1

        scheduler.advance(10.0)
        assert engine.stop_calls == 1

        engine.emit_end()
        assert len(engine_factory.engines) == 2
        assert session.is_active
        assert "end" not in events.names()

    def test_results_rearm(self, session, engine_factory, scheduler):
        session.start()
        engine = engine_factory.latest
        for _ in range(5):
            engine.emit_result(single("il fait", 0.9))
            scheduler.advance(1.5)

        assert engine.stop_calls == 0

    def test_not_armed_before_first_result(self, session, engine_factory, scheduler):
        session.start()
        scheduler.advance(10.0)
        assert engine_factory.latest.stop_calls == 0

    def test_cancelled_on_stop(self, session, engine_factory, scheduler):
        session.start()
        engine = engine_factory.latest
        engine.emit_result(single("oh bon", 0.9))
        session.stop()

        scheduler.advance(5.0)
        assert engine.stop_calls == 0
        assert scheduler.pending == 0

    def test_disabled(self, make_config, engine_factory, scheduler):
        session = RecognitionSession(make_config(watchdog_interval=None), engine_factory, scheduler=scheduler)
        session.start()
        engine_factory.latest.emit_result(single("oh bon", 0.9))

        assert scheduler.pending == 0

    def test_stop_refused_restarts_directly(self, session, engine_factory, scheduler):
        session.start()
        engine = engine_factory.latest

        def refuse():
            raise RuntimeError("stuck")

        engine.stop = refuse
        engine.emit_result(single("oh bon", 0.9))
        scheduler.advance(2.0)

        assert len(engine_factory.engines) == 2
        assert session.is_active

    def test_interim_sentence_emitted_every_callback(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()
        engine = engine_factory.latest
        engine.emit_result(single("il fait", 0.9))
        engine.emit_result(single("il fait beau", 0.9))

        sentences = events.named("sentence")
        assert [s.value for s in sentences] == ["il fait", "il fait beau"]
        assert not any(s.is_final for s in sentences)


class TestWithoutEventLoop:

    def test_default_scheduler_outside_loop_routes_result(self, make_config, engine_factory, recorder):
        session = RecognitionSession(make_config(watchdog_interval=5.0), engine_factory)
        events = recorder(session)
        session.start()

        engine_factory.latest.emit_result(single("oh bonjour", 0.9))
        session.stop()

        assert [s.value for s in events.named("match")] == ["oh bonjour"]
        assert events.names() == ["start", "match", "sentence", "end"]

    def test_failing_scheduler_does_not_lose_result(self, make_config, engine_factory, recorder):
        def broken_scheduler(delay, callback):
            raise RuntimeError("no timers here")

        session = RecognitionSession(make_config(), engine_factory, scheduler=broken_scheduler)
        events = recorder(session)
        session.start()
        engine_factory.latest.emit_result(single("salut", 0.9, is_final=True))

        assert [s.value for s in events.named("sentence")] == ["salut"]
        assert session.is_active


class TestStopStart:

    def test_stop_reports_end_immediately(self, session, recorder):
        events = recorder(session)
        session.start()
        session.stop()

        assert events.names() == ["start", "end"]

    def test_late_aborted_after_restart_by_caller(self, session, engine_factory, recorder):
        events = recorder(session)
        session.start()
        old = engine_factory.latest
        session.stop()
        session.start()

        # Stará instance potvrdí abort až po novém startu
        old.emit_error("aborted")
        old.emit_end()

        assert events.names() == ["start", "end", "start"]
        assert session.is_active
        assert len(engine_factory.engines) == 2
