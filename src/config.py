"""
Runtime settings read from the environment
"""
import os
from typing import Optional

from pydantic import BaseModel

class Settings(BaseModel):
    """Settings for the repair agent and its language model"""
    rules_file: str = 'config/rules.json'
    openai_api_key: Optional[str] = None
    openai_model: str = 'gpt-4o-mini'
    openai_timeout: float = 60.0
    max_steps: int = 5

    @classmethod
    def from_env(cls) -> 'Settings':
        """Build settings from environment variables, falling back to defaults"""
        values = {
            'rules_file': os.getenv('RULES_FILE'),
            'openai_api_key': os.getenv('OPENAI_API_KEY'),
            'openai_model': os.getenv('OPENAI_MODEL'),
            'openai_timeout': os.getenv('OPENAI_TIMEOUT'),
            'max_steps': os.getenv('REPAIR_MAX_STEPS'),
        }
        return cls(**{key: value for key, value in values.items() if value is not None})
