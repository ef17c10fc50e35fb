# tests/test_container.py

import pytest
import yaml

from grammar_detector.core.config.container import Container, setup_container
from grammar_detector.core.config.detector_config import SelectionPolicyName
from grammar_detector.core.config.user_config import UserConfig
from grammar_detector.core.exceptions import ContainerInitializationError
from grammar_detector.core.models import single


def user_config(**sections):
    data = {
        'grammar': {'phrases': ['bonjour', 'salut']},
        'recognition': {'engine': 'replay', 'lang': 'fr-FR', 'interim_results': True, 'watchdog_interval': 0},
        'throttle': {'cooldown': 30.0},
    }
    for name, values in sections.items():
        data.setdefault(name, {}).update(values)
    return UserConfig.from_dict(data)


@pytest.fixture(autouse=True)
def no_replay_override(monkeypatch):
    monkeypatch.delenv("GRAMMAR_DETECTOR_REPLAY", raising=False)
    monkeypatch.delenv("GRAMMAR_DETECTOR_CONFIG", raising=False)


class TestContainer:

    def test_wires_injected_engine(self, engine_factory):
        container = Container(user_config=user_config(), engine_factory=engine_factory)

        assert container.engine.name == "injected"
        assert container.detector_config.lang == "fr-FR"
        assert container.detector_config.watchdog_interval is None
        assert container.matcher.test("Oh, bonjour")
        assert container.throttle.cooldown == 30.0
        assert container.throttle.include_finality is False

    def test_match_reaches_application_callback(self, engine_factory):
        received = []
        container = setup_container(
            user_config=user_config(),
            engine_factory=engine_factory,
            on_match=lambda *args: received.append(args)
        )

        container.session.start()
        engine_factory.latest.emit_result(single("salut les amis", 0.9, is_final=True))
        engine_factory.latest.emit_result(single("bonjour tout le monde", 0.9, is_final=True))

        assert received == [("salut les amis",)]
        assert container.console_ui.total_notified == 1
        assert container.throttle.get_stats()['discarded'] == 1

    def test_windowed_policy_passes_finality(self, engine_factory):
        received = []
        container = Container(
            user_config=user_config(recognition={'selection_policy': 'windowed_concatenation'}),
            engine_factory=engine_factory,
            on_match=lambda *args: received.append(args)
        )
        assert container.detector_config.selection_policy == SelectionPolicyName.WINDOWED_CONCATENATION

        container.session.start()
        engine_factory.latest.emit_result(single("salut"))

        assert received == [("salut", False)]

    def test_unknown_engine(self):
        with pytest.raises(ContainerInitializationError):
            Container(user_config=user_config(recognition={'engine': 'cloud'}))

    def test_missing_replay_script(self, tmp_path):
        with pytest.raises(ContainerInitializationError):
            Container(user_config=user_config(replay={'script': str(tmp_path / "missing.yaml")}))

    def test_no_phrases(self, engine_factory):
        with pytest.raises(ContainerInitializationError):
            Container(user_config=user_config(grammar={'phrases': []}), engine_factory=engine_factory)


class TestConsoleRun:

    @pytest.mark.asyncio
    async def test_replay_run_prints_summary(self, tmp_path, capsys):
        script = tmp_path / "script.yaml"
        script.write_text(yaml.dump({'steps': [
            {'say': 'oh bonjour', 'confidence': 0.9},
            {'say': 'oh bonjour monsieur', 'confidence': 0.9, 'is_final': True},
            {'say': 'il fait beau', 'confidence': 0.9, 'is_final': True},
        ]}), encoding='utf-8')

        container = Container(user_config=user_config(replay={'script': str(script), 'speed': 10.0}))
        container.console_ui.grace_period = 0.01

        await container.console_ui.run()

        output = capsys.readouterr().out
        assert container.console_ui.matched_sentences == 1
        assert container.console_ui.total_notified == 1
        assert container.console_ui.history == ['oh bonjour monsieur']
        assert "Matched sentences: 1" in output
        assert not container.session.is_active


class TestContainerCoercion:

    def test_float_max_alternatives_becomes_int(self, engine_factory):
        container = Container(
            user_config=user_config(recognition={'max_alternatives': 2.0}),
            engine_factory=engine_factory
        )
        assert container.detector_config.max_alternatives == 2
        assert isinstance(container.detector_config.max_alternatives, int)
