"""Agent instructions loader from YAML files.

Supports prompts that are too long or too multi-line for environment variables.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import structlog
import yaml


logger = structlog.get_logger(__name__)


DEFAULT_INSTRUCTIONS = """Ти си кратък гласов асистент за градски транспорт в България.
Говори на езика на обаждащия. Питай откъде, докъде, кога.
Кратки изречения. Предложи такси при нужда.
Накрая попитай: "Да изпратя ли маршрута по SMS?" и "Да извикам ли такси?\""""


@dataclass
class AgentConfig:
    """Agent configuration sent to the model in ``session.update``.

    Fields:
        instructions: System prompt for the assistant persona (required)
        metadata: Optional metadata for documentation purposes
    """

    instructions: str = DEFAULT_INSTRUCTIONS
    metadata: Optional[Dict] = None

    @classmethod
    def from_yaml(cls, file_path: str | Path) -> "AgentConfig":
        """Load agent configuration from YAML file.

        Args:
            file_path: Path to YAML configuration file

        Returns:
            AgentConfig instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ValueError: If YAML file is invalid
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Agent config file not found: {file_path}")

        logger.info("Loading agent config from YAML", file_path=str(file_path))

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML file: {e}") from e

        if not isinstance(data, dict):
            raise ValueError("YAML file must contain a dictionary")

        instructions = data.get("instructions")
        metadata = data.get("metadata")

        if not instructions:
            raise ValueError("'instructions' field is required in YAML config")
        if not isinstance(instructions, str):
            raise ValueError("'instructions' field must be a string")

        instructions = instructions.strip()

        logger.info(
            "Agent config loaded successfully",
            instructions_length=len(instructions),
            metadata=metadata
        )

        return cls(instructions=instructions, metadata=metadata)

    @classmethod
    def load(cls, file_path: Optional[str | Path]) -> "AgentConfig":
        """Load agent config from YAML file, or the built-in prompt if none given.

        If file_path is specified, loading must succeed: there is no fallback
        to the default prompt for a broken file.

        Args:
            file_path: Optional path to YAML configuration file

        Returns:
            AgentConfig instance
        """
        if not file_path:
            logger.info("No agent config file specified, using built-in instructions")
            return cls()

        return cls.from_yaml(file_path)

    def to_dict(self) -> Dict:
        """Convert to dictionary for logging."""
        return {
            "instructions": self.instructions[:100] + "..." if len(self.instructions) > 100 else self.instructions,
            "metadata": self.metadata,
            "instructions_length": len(self.instructions),
        }
