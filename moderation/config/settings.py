from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "sharebuddy"
    db_username: str = "sharebuddy"
    db_password: str = "secret"
    db_connect_timeout_seconds: float = 10.0

    queue_backend: str = "postgres"
    worker_pool_size: int = 4
    job_poll_interval_seconds: float = 2.0
    job_timeout_seconds: float = 120.0
    max_job_attempts: int = 3
    retry_backoff_seconds: float = 2.0
    retry_backoff_max_seconds: float = 300.0
    drain_timeout_seconds: float = 30.0

    max_excerpt_chars: int = 1000
    pdf_engine: str = "pdfplumber"

    approve_threshold: float = 0.7
    reject_threshold: float = 0.4
    rule_blocklist_terms: list[str] = []

    toxicity_provider: str = "disabled"
    toxicity_threshold: float = 0.7
    toxicity_max_input_chars: int = 512
    toxicity_model_name: str = "unitary/toxic-bert"
    toxicity_openai_api_key: str = ""
    toxicity_openai_model_name: str = "omni-moderation-latest"
    toxicity_openai_timeout_seconds: int = 30

    fusion_ai_weight: float = 0.7
    fusion_rule_weight: float = 0.3
    toxicity_damping: float = 0.8
    toxicity_disabled_score: float = 0.8
    toxicity_error_score: float = 0.7

    decision_sink: str = "database"
    webhook_url: str = "http://localhost:5000/api/webhooks/moderation"
    webhook_secret: str = ""
    webhook_timeout_seconds: int = 10

    @model_validator(mode="after")
    def _check_policy(self) -> "Settings":
        if not 0.0 <= self.reject_threshold < self.approve_threshold <= 1.0:
            raise ValueError(
                "thresholds must satisfy 0 <= reject_threshold < approve_threshold <= 1"
            )
        if abs(self.fusion_ai_weight + self.fusion_rule_weight - 1.0) > 1e-9:
            raise ValueError("fusion_ai_weight + fusion_rule_weight must equal 1.0")
        if not 0.0 < self.toxicity_damping < 1.0:
            raise ValueError("toxicity_damping must be in (0, 1)")
        if self.worker_pool_size < 1:
            raise ValueError("worker_pool_size must be at least 1")
        if self.max_job_attempts < 1:
            raise ValueError("max_job_attempts must be at least 1")
        return self
