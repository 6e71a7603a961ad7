"""
Application settings and configuration
"""

import json
import os
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Optional

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _load_department_map(raw: str) -> Dict[str, int]:
    """Parse USER_DEPARTMENT_MAP (JSON object of user id -> department code)"""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"USER_DEPARTMENT_MAP is not valid JSON: {e}")
    return {str(user_id): int(code) for user_id, code in parsed.items()}


class Settings:
    """Application settings loaded from environment variables"""
    
    # Dataverse (Data Provider)
    DATAVERSE_BASE_URL: str = os.getenv("DATAVERSE_BASE_URL", "")
    DATAVERSE_TOKEN_URL: str = os.getenv("DATAVERSE_TOKEN_URL", "")
    DATAVERSE_ACCESS_TOKEN: Optional[str] = os.getenv("DATAVERSE_ACCESS_TOKEN", None)
    DATAVERSE_TIMEOUT: int = int(os.getenv("DATAVERSE_TIMEOUT", "30"))
    
    # OpenAI (Text Generator)
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: Optional[str] = os.getenv("OPENAI_MODEL", None)
    OPENAI_DOCS_MODEL: Optional[str] = os.getenv("OPENAI_DOCS_MODEL", None)
    
    # Impersonation: user id -> department option code
    USER_DEPARTMENT_MAP: Dict[str, int] = _load_department_map(os.getenv("USER_DEPARTMENT_MAP", ""))
    
    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    WEB_PORT: int = int(os.getenv("WEB_PORT", "8000"))
    
    @classmethod
    def validate(cls) -> bool:
        """Validate that all required settings are present"""
        required = {
            "DATAVERSE_BASE_URL": cls.DATAVERSE_BASE_URL,
            "OPENAI_API_KEY": cls.OPENAI_API_KEY,
        }
        
        missing = [name for name, value in required.items() if not value]
        
        if not cls.DATAVERSE_ACCESS_TOKEN and not cls.DATAVERSE_TOKEN_URL:
            missing.append("DATAVERSE_TOKEN_URL or DATAVERSE_ACCESS_TOKEN")
        
        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
        
        return True


# Global settings instance
settings = Settings()
