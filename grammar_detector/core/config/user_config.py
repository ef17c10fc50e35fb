"""
User Configuration Manager
Načítá a spravuje uživatelskou konfiguraci detektoru s validací
"""

import yaml
import structlog
from pathlib import Path
from typing import Dict, Any, Optional, TypeVar

from grammar_detector.core.config.detector_config import SelectionPolicyName

logger = structlog.get_logger()

T = TypeVar('T')

DEFAULT_CONFIG_PATH = "config/detector.yaml"


class ConfigValidationError(Exception):
    """Raised when configuration cannot be loaded or created"""
    pass


def _default_config() -> Dict[str, Any]:
    return {
        'grammar': {
            'phrases': ['bonjour', 'salut']
        },
        'recognition': {
            'engine': 'replay',
            'lang': 'fr-FR',
            'continuous': True,
            'interim_results': True,
            'max_alternatives': 1,
            'confidence': 0.8,
            'same_sentence_tolerance': 0.5,
            'selection_policy': SelectionPolicyName.CONFIDENCE_SCAN.value,
            'watchdog_interval': 2.0
        },
        'throttle': {
            'cooldown': 30.0
        },
        'replay': {
            'script': 'config/replay/demo.yaml',
            'speed': 1.0
        }
    }


class UserConfig:
    """Manager pro uživatelskou konfiguraci s validací"""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        """
        Args:
            config_path: Cesta ke konfiguračnímu souboru
        """
        self.config_path = Path(config_path)
        self.config: Dict[str, Any] = {}
        self.validation_errors: list = []
        self._load_config()
        self._validate_config()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserConfig":
        """In-memory config (no file), e.g. for tests or embedding."""
        instance = cls.__new__(cls)
        instance.config_path = None
        instance.config = data or {}
        instance.validation_errors = []
        instance._validate_config()
        return instance

    def _load_config(self) -> None:
        """Načti konfiguraci ze souboru"""
        try:
            if not self.config_path.exists():
                logger.warning("config_not_found", path=str(self.config_path))
                self._create_default_config()
                return

            with open(self.config_path, 'r', encoding='utf-8') as f:
                self.config = yaml.safe_load(f) or {}

            logger.info("user_config_loaded",
                        path=str(self.config_path),
                        phrases=len(self.config.get('grammar', {}).get('phrases', []) or []))

        except Exception as e:
            logger.error("config_load_error", error=str(e))
            raise ConfigValidationError(f"Failed to load config: {e}") from e

    def _validate_config(self) -> None:
        """Validuj konfiguraci"""
        self.validation_errors = []

        self._validate_grammar_config()
        self._validate_recognition_config()
        self._validate_throttle_config()

        if self.validation_errors:
            logger.warning("config_validation_warnings",
                           errors=self.validation_errors,
                           count=len(self.validation_errors))

    def _validate_grammar_config(self) -> None:
        """Validace grammar konfigurace"""
        phrases = self.get('grammar.phrases', [])
        if not isinstance(phrases, list):
            self.validation_errors.append(
                f"grammar.phrases must be a list, got {type(phrases).__name__}"
            )
        elif not [p for p in phrases if isinstance(p, str) and p.strip()]:
            self.validation_errors.append("grammar.phrases must contain at least one phrase")
        elif not all(isinstance(p, str) for p in phrases):
            self.validation_errors.append("grammar.phrases must contain only strings")

    def _validate_recognition_config(self) -> None:
        """Validace recognition konfigurace"""
        for key in ['confidence', 'same_sentence_tolerance']:
            value = self.get(f'recognition.{key}', 0.5)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                self.validation_errors.append(
                    f"recognition.{key} must be number, got {type(value).__name__}"
                )
            elif value < 0.0 or value > 1.0:
                self.validation_errors.append(
                    f"recognition.{key} must be between 0.0-1.0, got {value}"
                )

        max_alternatives = self.get('recognition.max_alternatives', 1)
        if not isinstance(max_alternatives, int) or max_alternatives < 1:
            self.validation_errors.append(
                f"recognition.max_alternatives must be integer >= 1, got {max_alternatives!r}"
            )

        policy = self.get('recognition.selection_policy', SelectionPolicyName.CONFIDENCE_SCAN.value)
        valid_policies = [p.value for p in SelectionPolicyName]
        if policy not in valid_policies:
            self.validation_errors.append(
                f"recognition.selection_policy must be one of {valid_policies}, got '{policy}'"
            )

        watchdog = self.get('recognition.watchdog_interval', 2.0)
        if watchdog is not None and (not isinstance(watchdog, (int, float)) or watchdog < 0):
            self.validation_errors.append(
                f"recognition.watchdog_interval must be number >= 0, got {watchdog!r}"
            )

    def _validate_throttle_config(self) -> None:
        """Validace throttle konfigurace"""
        cooldown = self.get('throttle.cooldown', 30.0)
        if not isinstance(cooldown, (int, float)) or cooldown < 0:
            self.validation_errors.append(
                f"throttle.cooldown must be number >= 0, got {cooldown!r}"
            )

    def _create_default_config(self) -> None:
        """Vytvoř výchozí konfigurační soubor"""
        default_config = _default_config()

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_path, 'w', encoding='utf-8') as f:
                yaml.dump(default_config, f, allow_unicode=True, default_flow_style=False)

            self.config = default_config
            logger.info("default_config_created", path=str(self.config_path))

        except Exception as e:
            logger.error("config_create_error", error=str(e))
            raise ConfigValidationError(f"Failed to create default config: {e}") from e

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Získej hodnotu z konfigurace pomocí tečkové notace.

        Args:
            key_path: Cesta ke klíči (např. "recognition.lang")
            default: Výchozí hodnota, pokud klíč neexistuje

        Returns:
            Hodnota z konfigurace nebo default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    return default
            else:
                return default

        # Simple type checking (int a float jsou zaměnitelné)
        if value is not None and default is not None:
            numeric = (int, float)
            both_numeric = (isinstance(value, numeric) and isinstance(default, numeric)
                            and not isinstance(value, bool) and not isinstance(default, bool))
            if not both_numeric and type(value) != type(default):
                logger.warning(
                    "config_type_mismatch",
                    key=key_path,
                    expected=type(default).__name__,
                    got=type(value).__name__,
                    value=str(value)[:100]
                )
                return default

        return value

    def reload(self) -> None:
        """Znovu načti konfiguraci ze souboru"""
        if self.config_path is None:
            return
        logger.info("reloading_config")
        self._load_config()
        self._validate_config()

    def is_valid(self) -> bool:
        """Check if configuration is valid"""
        return len(self.validation_errors) == 0

    def get_validation_errors(self) -> list:
        """Get list of validation errors"""
        return self.validation_errors.copy()


# Singleton instance
_user_config: Optional[UserConfig] = None


def get_user_config(config_path: str = DEFAULT_CONFIG_PATH) -> UserConfig:
    """
    Získej globální instanci UserConfig.

    Raises:
        ConfigValidationError: If config cannot be loaded
    """
    global _user_config
    if _user_config is None:
        _user_config = UserConfig(config_path)
    return _user_config
