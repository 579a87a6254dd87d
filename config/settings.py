"""
Centralized configuration for the Reobote lead agent.

All settings are loaded from environment variables via .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    # Brand
    brand_name: str = Field(default="Reobote Consórcios")
    agent_name: str = Field(default="Ana")
    whatsapp_number: str = Field(default="5585988887777")

    # LLM provider selection
    llm_provider: str = Field(default="groq")  # groq | openai | bedrock
    max_tokens: int = Field(default=512)
    temperature: float = Field(default=0.7)

    # Groq (OpenAI-compatible endpoint)
    groq_api_key: Optional[str] = Field(default=None)
    groq_base_url: str = Field(default="https://api.groq.com/openai/v1")
    groq_llm_model: str = Field(default="llama-3.3-70b-versatile")

    # OpenAI
    openai_api_key: Optional[str] = Field(default=None)
    openai_llm_model: str = Field(default="gpt-4o-mini")

    # AWS / Bedrock
    aws_region: str = Field(default="us-east-1")
    bedrock_llm_model_id: str = Field(
        default="us.anthropic.claude-sonnet-4-20250514-v1:0"
    )

    # Database (in-memory attendance store when unset)
    database_url: Optional[str] = Field(default=None)

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_title: str = Field(default="Reobote Lead Agent API")
    api_version: str = Field(default="1.0.0")
    cors_origins: str = Field(default="*")

    # Logging
    log_level: str = Field(default="INFO")
    debug: bool = Field(default=False)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_groq(self) -> bool:
        return self.llm_provider.lower() == "groq"

    @property
    def is_openai(self) -> bool:
        return self.llm_provider.lower() == "openai"

    @property
    def is_bedrock(self) -> bool:
        return self.llm_provider.lower() == "bedrock"

    @property
    def llm_model_id(self) -> str:
        if self.is_openai:
            return self.openai_llm_model
        if self.is_bedrock:
            return self.bedrock_llm_model_id
        return self.groq_llm_model

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
