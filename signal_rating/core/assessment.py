"""
Static configuration loaders.

Reads wizard_questions.json (question copy and the rating -> metric lookup
tables) and fix_library.json (report fixes) into frozen Pydantic models.

Both loaders run once in the application lifespan. Any problem (missing file,
invalid JSON, wrong shape, a bundle without all five rating keys) raises
ConfigurationError so the server refuses to start in an inconsistent state.

Expected wizard_questions.json shape:
    {
      "title": "...",
      "version": "1.0",
      "questions": {
        "question_1_pipeline_health": {
          "category": "pipeline",
          "prompt": "...",
          "options": {"1": "...", ..., "5": "..."},
          "maps_to_metrics": {"1": {...metrics...}, ..., "5": {...}}
        },
        ...
        "question_5_top_challenge": {"prompt": "...", "choices": [{"value": ..., "label": ...}]}
      }
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from signal_rating.core.exceptions import ConfigurationError
from signal_rating.models.enums import Category
from signal_rating.models.schemas import (
    AssessmentConfig,
    ChallengeQuestion,
    FixLibrary,
    MetricBundles,
    RatingQuestion,
)


logger = logging.getLogger(__name__)


# Answer keys of the wizard questions, in wizard order
QUESTION_KEYS: Dict[Category, str] = {
    Category.PIPELINE: "question_1_pipeline_health",
    Category.CONVERSION: "question_2_sales_conversion",
    Category.EXPANSION: "question_3_customer_success",
    Category.ECONOMICS: "question_4_economics_and_efficiency",
}
TOP_CHALLENGE_KEY = "question_5_top_challenge"


def _read_json(path: Path, label: str) -> Any:
    try:
        with open(path, encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as e:
        raise ConfigurationError(f"{label} not found at {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{label} at {path} is not valid JSON: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Could not read {label} at {path}: {e}") from e


def parse_assessment_config(data: Any) -> AssessmentConfig:
    """
    Build an AssessmentConfig from already-decoded JSON.

    Args:
        data: Decoded wizard_questions.json content.

    Returns:
        AssessmentConfig with question copy and metric bundles.

    Raises:
        ConfigurationError: If a question is missing or the metric tables are
            malformed.
    """
    if not isinstance(data, dict) or not isinstance(data.get("questions"), dict):
        raise ConfigurationError("Assessment config must contain a 'questions' object")

    questions = data["questions"]
    bundles: Dict[str, Any] = {}
    rating_questions = []

    try:
        for category, key in QUESTION_KEYS.items():
            question = questions.get(key)
            if not isinstance(question, dict):
                raise ConfigurationError(f"Assessment config is missing question '{key}'")
            if "maps_to_metrics" not in question:
                raise ConfigurationError(f"Question '{key}' has no 'maps_to_metrics' table")

            bundles[category.value] = question["maps_to_metrics"]
            rating_questions.append(
                RatingQuestion(
                    id=key,
                    category=category,
                    prompt=question.get("prompt", ""),
                    options=question.get("options", {}),
                )
            )

        challenge = questions.get(TOP_CHALLENGE_KEY) or {}
        top_challenge_question = ChallengeQuestion(
            id=TOP_CHALLENGE_KEY,
            prompt=challenge.get("prompt", ""),
            choices=challenge.get("choices", []),
        )

        return AssessmentConfig(
            title=data.get("title", "Alpine Signal Rating"),
            version=str(data.get("version", "1.0")),
            rating_questions=rating_questions,
            top_challenge_question=top_challenge_question,
            metric_bundles=MetricBundles.model_validate(bundles),
        )
    except PydanticValidationError as e:
        raise ConfigurationError(f"Assessment config is malformed: {e}") from e


def load_assessment_config(path: Path) -> AssessmentConfig:
    """
    Load and validate wizard_questions.json.

    Args:
        path: Location of the assessment config file.

    Returns:
        Frozen AssessmentConfig.

    Raises:
        ConfigurationError: If the file is missing or malformed.
    """
    config = parse_assessment_config(_read_json(path, "Assessment config"))
    logger.info(f"Loaded assessment config from {path} (version {config.version})")
    return config


def load_fix_library(path: Path) -> FixLibrary:
    """
    Load and validate fix_library.json.

    Args:
        path: Location of the fix library file.

    Returns:
        Frozen FixLibrary.

    Raises:
        ConfigurationError: If the file is missing, malformed, or a fix list is
            too short for the positions the report selects.
    """
    data = _read_json(path, "Fix library")
    try:
        library = FixLibrary.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Fix library is malformed: {e}") from e
    logger.info(f"Loaded fix library from {path}")
    return library
