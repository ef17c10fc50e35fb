# grammar_detector/core/config/container.py

"""
Dependency Injection Container
"""

import os
from typing import Callable, Optional

import structlog
from dotenv import load_dotenv

from grammar_detector.core.config.detector_config import DetectorConfig, SelectionPolicyName
from grammar_detector.core.config.user_config import DEFAULT_CONFIG_PATH, UserConfig, get_user_config
from grammar_detector.core.exceptions import ContainerInitializationError
from grammar_detector.core.ports.i_recognition_engine import EngineFactory

from grammar_detector.application.services.match_throttle import DEFAULT_COOLDOWN, MatchThrottle
from grammar_detector.application.services.recognition_session import RecognitionSession
from grammar_detector.infrastructure.adapters.recognition import EngineBinding, resolve_engine
from grammar_detector.infrastructure.adapters.recognition.functionality import GrammarMatcher
from grammar_detector.interfaces.cli.console_ui import ConsoleUI

logger = structlog.get_logger()


class Container:
    """
    Dependency Injection Container
    Builds the detector pipeline: grammar -> config -> engine -> session -> throttle -> UI.
    """

    def __init__(
            self,
            user_config: Optional[UserConfig] = None,
            engine_factory: Optional[EngineFactory] = None,
            on_match: Optional[Callable[..., None]] = None
    ):
        """
        Args:
            user_config: Explicit config (default: file from env / config/detector.yaml)
            engine_factory: Explicit engine factory (skips the registry lookup)
            on_match: Application callback for throttled matches
        """
        logger.info("container_initialization_started")
        self.on_match = on_match

        try:
            # Step 1: Environment and configuration
            self._load_environment()
            self.user_config = user_config or self._load_user_config()

            # Step 2: Grammar + detector config
            self.matcher = self._create_matcher()
            self.detector_config = self._create_detector_config()

            # Step 3: Engine capability (fatal if absent)
            self.engine = self._create_engine_binding(engine_factory)

            # Step 4: Session
            self.session = self._create_session()

            # Step 5: Interface + throttle
            self.console_ui = self._create_console_ui()
            self.throttle = self._create_throttle()

            logger.info("container_initialization_completed")

        except Exception as e:
            logger.error("container_initialization_failed", error=str(e), exc_info=True)
            raise ContainerInitializationError(f"Failed to initialize container: {e}") from e

    # ========================================
    # ENVIRONMENT & CONFIG
    # ========================================

    def _load_environment(self) -> None:
        """Load environment variables from .env file"""
        load_dotenv()
        logger.info(
            "environment_loaded",
            config_override=bool(os.getenv("GRAMMAR_DETECTOR_CONFIG")),
            replay_override=bool(os.getenv("GRAMMAR_DETECTOR_REPLAY"))
        )

    def _load_user_config(self) -> UserConfig:
        """Load and validate user configuration"""
        path = os.getenv("GRAMMAR_DETECTOR_CONFIG", DEFAULT_CONFIG_PATH)
        config = get_user_config(path)
        logger.info("user_config_loaded", path=path, valid=config.is_valid())
        return config

    # ========================================
    # GRAMMAR & DETECTOR CONFIG
    # ========================================

    def _create_matcher(self) -> GrammarMatcher:
        """Compile the target phrases"""
        phrases = self.user_config.get('grammar.phrases', [])
        matcher = GrammarMatcher.from_phrases(phrases)
        logger.debug("grammar_matcher_created", pattern=matcher.pattern)
        return matcher

    def _create_detector_config(self) -> DetectorConfig:
        """Map user config onto the immutable detector config"""
        get = self.user_config.get
        config = DetectorConfig(
            pattern=self.matcher,
            continuous=get('recognition.continuous', True),
            lang=get('recognition.lang', 'en-US'),
            interim_results=get('recognition.interim_results', False),
            max_alternatives=int(get('recognition.max_alternatives', 1)),
            confidence=float(get('recognition.confidence', 0.8)),
            same_sentence_tolerance=float(get('recognition.same_sentence_tolerance', 0.5)),
            selection_policy=get('recognition.selection_policy', SelectionPolicyName.CONFIDENCE_SCAN.value),
            watchdog_interval=float(get('recognition.watchdog_interval', 2.0)) or None
        )
        logger.debug("detector_config_created", **config.to_dict())
        return config

    # ========================================
    # ENGINE & SESSION
    # ========================================

    def _create_engine_binding(self, engine_factory: Optional[EngineFactory]) -> EngineBinding:
        """Resolve the engine once; the session only ever sees the factory"""
        if engine_factory is not None:
            logger.debug("engine_factory_injected")
            return EngineBinding(name="injected", factory=engine_factory)

        name = self.user_config.get('recognition.engine', 'replay')
        return resolve_engine(name, self.user_config)

    def _create_session(self) -> RecognitionSession:
        session = RecognitionSession(
            config=self.detector_config,
            engine_factory=self.engine.factory
        )
        logger.debug("recognition_session_created", engine=self.engine.name)
        return session

    def _create_console_ui(self) -> ConsoleUI:
        grace = (self.detector_config.watchdog_interval or 0.0) + 0.5
        ui = ConsoleUI(
            session=self.session,
            user_config=self.user_config,
            finished=self.engine.finished,
            grace_period=grace
        )
        logger.debug("console_ui_created")
        return ui

    def _create_throttle(self) -> MatchThrottle:
        cooldown = float(self.user_config.get('throttle.cooldown', DEFAULT_COOLDOWN))
        include_finality = self.detector_config.selection_policy == SelectionPolicyName.WINDOWED_CONCATENATION

        throttle = MatchThrottle(
            on_match=self._deliver_match,
            cooldown=cooldown,
            include_finality=include_finality
        )
        throttle.attach(self.session)
        logger.debug("match_throttle_created", cooldown=cooldown, include_finality=include_finality)
        return throttle

    def _deliver_match(self, value: str, *args) -> None:
        """Fan out an accepted match to the UI and the application callback"""
        self.console_ui.on_accepted_match(value, *args)
        if self.on_match is not None:
            self.on_match(value, *args)


def setup_container(**kwargs) -> Container:
    """
    Setup and initialize dependency injection container

    Raises:
        ContainerInitializationError: If initialization fails
    """
    return Container(**kwargs)
